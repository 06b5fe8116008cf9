"""Video studio API: image-to-video, plus text-to-video with its still fallback."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from genhub.api.deps import get_hub, with_deadline
from genhub.api.errors import error_response
from genhub.config import Settings, get_settings
from genhub.models.generation import ArtifactKind
from genhub.schemas.studio import VideoStudioRequest
from genhub.services.hub import GenerationHub
from genhub.services.video_cascade import VideoOutcome

router = APIRouter()


def video_response(action: str, outcome: VideoOutcome) -> dict[str, Any] | JSONResponse:
    if outcome.kind is ArtifactKind.NONE:
        return error_response(502, f"{action}: no available models", attempts=outcome.attempts)
    return {
        "ok": True,
        "mode": outcome.kind.value,
        "video_url": outcome.video_url,
        "image_url": outcome.image_url,
        "model": outcome.candidate,
        "seconds": outcome.seconds,
        "attempts": outcome.attempts,
    }


async def run_video_studio(
    body: VideoStudioRequest, hub: GenerationHub, settings: Settings,
) -> dict[str, Any] | JSONResponse:
    request = body.to_generation_request()
    hub.client.require_credentials()
    if body.is_text_to_video:
        flow = hub.cascade.text_to_video(request, idea=body.idea or request.prompt)
    else:
        flow = hub.cascade.image_to_video(request)
    outcome = await with_deadline(flow, settings.REQUEST_TIMEOUT)
    return video_response(request.action.value, outcome)


@router.post("/video-studio")
async def video_studio(
    body: VideoStudioRequest,
    hub: GenerationHub = Depends(get_hub),
    settings: Settings = Depends(get_settings),
):
    """Duration is snapped to 5 or 10 seconds before submission."""
    return await run_video_studio(body, hub, settings)
