"""Video reels API."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Header

from genhub.api.deps import get_hub, with_deadline
from genhub.config import Settings, get_settings
from genhub.schemas.studio import ReelsRequest
from genhub.services.hub import GenerationHub

router = APIRouter()


async def run_reels(
    body: ReelsRequest,
    hub: GenerationHub,
    settings: Settings,
    force_video_header: str | None = None,
    text_only_header: str | None = None,
) -> dict[str, Any]:
    caption_req = body.to_caption_request()
    force_video = body.wants_forced_video(force_video_header)
    reel = await with_deadline(
        hub.reels.create(
            caption_req,
            model_hint=body.image_model_hint.lower(),
            duration_seconds=body.seconds,
            video_slug=body.video_slug,
            text_only=body.wants_text_only(text_only_header),
            image_only=body.image_only,
            force_video=force_video,
            want_image=body.options.image and not force_video,
        ),
        settings.REQUEST_TIMEOUT,
    )
    return reel.to_dict()


@router.post("/video-reels")
async def video_reels(
    body: ReelsRequest,
    hub: GenerationHub = Depends(get_hub),
    settings: Settings = Depends(get_settings),
    x_force_video: str | None = Header(None),
    x_text_only: str | None = Header(None),
):
    """Caption plus reel video; ``mode`` says what was actually produced."""
    return await run_reels(body, hub, settings, x_force_video, x_text_only)
