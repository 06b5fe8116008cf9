"""Brand post API."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from genhub.api.deps import get_hub, with_deadline
from genhub.config import Settings, get_settings
from genhub.schemas.studio import BrandPostRequest
from genhub.services.hub import GenerationHub

router = APIRouter()


async def run_brand_post(
    body: BrandPostRequest, hub: GenerationHub, settings: Settings,
) -> dict[str, Any]:
    post = await with_deadline(
        hub.brand_posts.create(
            body.to_caption_request(),
            model_hint=body.image_model_hint.lower(),
            want_image=body.options.image,
            image_only=body.image_only,
            text_only=body.text_only,
        ),
        settings.REQUEST_TIMEOUT,
    )
    return post.to_dict()


@router.post("/brand-post")
async def brand_post(
    body: BrandPostRequest,
    hub: GenerationHub = Depends(get_hub),
    settings: Settings = Depends(get_settings),
):
    return await run_brand_post(body, hub, settings)
