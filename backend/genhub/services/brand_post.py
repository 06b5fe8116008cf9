"""Brand post: caption plus one routed still image."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

from genhub.models.generation import GenerationContext
from genhub.services.caption_writer import (
    CaptionRequest,
    CaptionResult,
    styled_visual_prompt,
    write_caption,
)
from genhub.services.fallback_chain import ExhaustionPolicy, FallbackChain
from genhub.services.model_catalog import ModelCatalog
from genhub.services.model_router import choose_model

logger = logging.getLogger(__name__)


@dataclass
class BrandPost:
    caption: str | None
    vprompt: str
    image_url: str | None
    model_used: str
    model_tried: list[str] = field(default_factory=list)
    model_error: str | None = None
    attempts: list[dict[str, Any]] = field(default_factory=list)
    gpt_used: bool = False
    length: str = "medium"
    mode: str = "full"

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": True,
            "caption": self.caption,
            "vprompt": self.vprompt,
            "image_url": self.image_url,
            "model_used": self.model_used,
            "model_tried": self.model_tried,
            "model_error": self.model_error,
            "attempts": self.attempts,
            "gpt_used": self.gpt_used,
            "length": self.length,
            "mode": self.mode,
        }


class BrandPostService:
    def __init__(
        self,
        catalog: ModelCatalog,
        still_chain: FallbackChain,
        caption_fn: Callable[[CaptionRequest], Awaitable[CaptionResult]] = write_caption,
    ) -> None:
        self.catalog = catalog
        self.still_chain = still_chain
        self.caption_fn = caption_fn

    async def create(
        self,
        req: CaptionRequest,
        *,
        model_hint: str = "auto",
        want_image: bool = True,
        image_only: bool = False,
        text_only: bool = False,
    ) -> BrandPost:
        model_key = choose_model(req.idea, req.style, model_hint)

        if image_only:
            copy = CaptionResult(None, styled_visual_prompt(req.idea, req.style, req.ratio))
        else:
            copy = await self.caption_fn(req)

        post = BrandPost(
            caption=copy.caption,
            vprompt=copy.visual_prompt,
            image_url=None,
            model_used=model_key.upper(),
            gpt_used=copy.gpt_used,
            length=req.length,
            mode="image_only" if image_only else "text_only" if text_only else "full",
        )

        if not want_image or text_only:
            return post

        candidates = self.catalog.still_image(model_key)
        ctx = GenerationContext(prompt=copy.visual_prompt, aspect_ratio=req.ratio)
        result = await self.still_chain.run(candidates, ctx, ExhaustionPolicy.SOFT, action="brand_post")

        post.image_url = result.url
        post.model_tried = result.tried
        post.attempts = result.attempt_log()
        if not result.ok:
            post.model_error = result.first_error or "no image model configured"
            logger.warning("brand_post: no image (%s)", post.model_error)
        return post
