from __future__ import annotations
"""Master API router: mounts all sub-routers."""

from fastapi import APIRouter

from genhub.api.image_studio import router as image_studio_router
from genhub.api.video_studio import router as video_studio_router
from genhub.api.reels import router as reels_router
from genhub.api.brand_post import router as brand_post_router
from genhub.api.metrics import router as metrics_router
from genhub.api.system import router as system_router
from genhub.api.models import router as models_router

api_router = APIRouter(prefix="/api", redirect_slashes=False)

api_router.include_router(image_studio_router, tags=["Image Studio"])
api_router.include_router(video_studio_router, tags=["Video Studio"])
api_router.include_router(reels_router, tags=["Video Reels"])
api_router.include_router(brand_post_router, tags=["Brand Post"])
api_router.include_router(metrics_router, prefix="/metrics", tags=["Metrics"])
api_router.include_router(system_router, prefix="/system", tags=["System"])
api_router.include_router(models_router, prefix="/models", tags=["Models"])
