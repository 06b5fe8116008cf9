"""System status endpoints: configured identities, never their values."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from genhub.api.deps import get_hub
from genhub.config import Settings, get_settings
from genhub.services.hub import GenerationHub

router = APIRouter()


@router.get("/env-check")
async def env_check(
    hub: GenerationHub = Depends(get_hub),
    settings: Settings = Depends(get_settings),
) -> dict[str, Any]:
    """Which provider identities are configured (booleans only)."""
    return {
        "ok": True,
        "replicate": hub.config.env_summary(),
        "caption_llm": bool(settings.LLM_API_KEY),
        "poll": {
            "image_interval": settings.IMAGE_POLL_INTERVAL,
            "image_timeout": settings.IMAGE_POLL_TIMEOUT,
            "video_interval": settings.VIDEO_POLL_INTERVAL,
            "video_tries": settings.VIDEO_POLL_TRIES,
        },
        "batch_concurrency": settings.BATCH_CONCURRENCY,
    }
