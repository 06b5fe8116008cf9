"""Image studio API: still-image actions, single or batched."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from genhub.api.deps import get_hub, with_deadline
from genhub.api.errors import error_response
from genhub.config import Settings, get_settings
from genhub.schemas.studio import ImageStudioRequest
from genhub.services.hub import GenerationHub
from genhub.services.image_studio import StudioResult

router = APIRouter()


def studio_response(result: StudioResult) -> dict[str, Any] | JSONResponse:
    if result.batch is not None:
        return {
            "ok": True,
            "mode": result.mode,
            "batch": [entry.to_dict() for entry in result.batch.entries],
            "image_url": result.url,
        }
    if result.exhausted:
        return error_response(502, result.error or "no available models", attempts=result.attempts)
    return {
        "ok": True,
        "mode": result.mode,
        "model": result.model,
        "image_url": result.url,
        "attempts": result.attempts,
    }


async def run_image_studio(
    body: ImageStudioRequest, hub: GenerationHub, settings: Settings,
) -> dict[str, Any] | JSONResponse:
    request = body.to_generation_request()
    result = await with_deadline(hub.studio.generate(request), settings.REQUEST_TIMEOUT)
    return studio_response(result)


@router.post("/image-studio")
async def image_studio(
    body: ImageStudioRequest,
    hub: GenerationHub = Depends(get_hub),
    settings: Settings = Depends(get_settings),
):
    """text2img / img2img / inpaint / remove_bg / upscale / add_object."""
    return await run_image_studio(body, hub, settings)
