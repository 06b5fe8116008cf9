from __future__ import annotations
"""genhub: FastAPI application entry point.

Mounts all API routes, configures CORS, and builds the generation hub
(shared HTTP pool, job client, fallback chains) for the app lifetime.
"""

import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from genhub.api.dispatch import router as dispatch_router
from genhub.api.errors import register_error_handlers
from genhub.api.router import api_router
from genhub.config import get_settings
from genhub.services import llm_client
from genhub.services.hub import GenerationHub

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: one HTTP pool and hub per process."""
    logger.info("genhub starting up...")
    http_client = httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT)
    app.state.hub = GenerationHub(settings, http_client)

    yield

    await app.state.hub.aclose()
    await http_client.aclose()
    await llm_client.close_client()
    logger.info("genhub shut down")


app = FastAPI(
    title="genhub API",
    description="Generation job orchestrator: fallback chains, degradation cascade, batch variants",
    version="0.1.0",
    lifespan=lifespan,
    redirect_slashes=False,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

# Mount API routes
app.include_router(api_router)
app.include_router(dispatch_router, tags=["Dispatch"])


@app.get("/health")
async def health():
    """Liveness check."""
    return {
        "ok": True,
        "status": "healthy",
        "replicate_configured": bool(settings.REPLICATE_API_TOKEN),
    }
