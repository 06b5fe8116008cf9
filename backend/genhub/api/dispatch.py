"""Root dispatch: ``POST /`` routes a body by its ``action`` field."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends

from genhub.api.brand_post import run_brand_post
from genhub.api.deps import get_hub
from genhub.api.image_studio import run_image_studio
from genhub.api.video_studio import run_video_studio
from genhub.config import Settings, get_settings
from genhub.schemas.studio import (
    IMAGE_ACTIONS,
    VIDEO_ACTIONS,
    BrandPostRequest,
    ImageStudioRequest,
    VideoStudioRequest,
)
from genhub.services.hub import GenerationHub

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/")
async def dispatch(
    payload: dict[str, Any] = Body(...),
    hub: GenerationHub = Depends(get_hub),
    settings: Settings = Depends(get_settings),
):
    """Image actions go to the image studio, video actions to the video
    studio, anything else to brand-post."""
    action = str(payload.get("action") or "").lower()
    logger.info("POST / dispatch action=%s", action or "(none)")
    if action in IMAGE_ACTIONS:
        return await run_image_studio(ImageStudioRequest.model_validate(payload), hub, settings)
    if action in VIDEO_ACTIONS:
        return await run_video_studio(VideoStudioRequest.model_validate(payload), hub, settings)
    return await run_brand_post(BrandPostRequest.model_validate(payload), hub, settings)
