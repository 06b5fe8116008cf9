"""Video reels: caption plus text-to-video with the still-image cascade."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

from genhub.models.generation import Action, ArtifactKind, GenerationContext, GenerationRequest
from genhub.services.caption_writer import CaptionRequest, CaptionResult, write_caption
from genhub.services.errors import ChainExhaustedError
from genhub.services.fallback_chain import ExhaustionPolicy, FallbackChain
from genhub.services.model_catalog import ModelCatalog
from genhub.services.model_router import choose_model
from genhub.services.video_cascade import VideoCascade, snap_duration, still_dimensions, video_size

logger = logging.getLogger(__name__)


@dataclass
class Reel:
    caption: str | None
    vprompt: str
    ratio: str
    seconds: int
    mode: str
    video_url: str | None = None
    image_url: str | None = None
    gpt_used: bool = False
    attempts: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": True,
            "caption": self.caption,
            "vprompt": self.vprompt,
            "video_url": self.video_url,
            "image_url": self.image_url,
            "gpt_used": self.gpt_used,
            "ratio": self.ratio,
            "seconds": self.seconds,
            "size_used": video_size(self.ratio),
            "mode": self.mode,
            "attempts": self.attempts,
        }


class ReelsService:
    def __init__(
        self,
        catalog: ModelCatalog,
        cascade: VideoCascade,
        still_chain: FallbackChain,
        caption_fn: Callable[[CaptionRequest], Awaitable[CaptionResult]] = write_caption,
    ) -> None:
        self.catalog = catalog
        self.cascade = cascade
        self.still_chain = still_chain
        self.caption_fn = caption_fn

    async def create(
        self,
        req: CaptionRequest,
        *,
        model_hint: str = "auto",
        duration_seconds: int = 5,
        video_slug: str | None = None,
        text_only: bool = False,
        image_only: bool = False,
        force_video: bool = False,
        want_image: bool = True,
    ) -> Reel:
        """Run one reel request.

        Forced video never degrades to a still and raises ChainExhaustedError
        when no video comes back.
        """
        seconds = snap_duration(duration_seconds)
        if image_only:
            copy = CaptionResult(None, f"{req.idea}. Clean. AR {req.ratio}.")
        else:
            copy = await self.caption_fn(req)

        reel = Reel(
            caption=copy.caption,
            vprompt=copy.visual_prompt,
            ratio=req.ratio,
            seconds=seconds,
            mode="text_only",
            gpt_used=copy.gpt_used,
        )
        if text_only:
            return reel

        request = GenerationRequest(
            action=Action.TEXT2VIDEO,
            prompt=copy.visual_prompt,
            style=req.style,
            aspect_ratio=req.ratio,
            model_hint=model_hint,
            duration_seconds=seconds,
            video_slug=video_slug,
        )

        if force_video:
            outcome = await self.cascade.text_to_video(request, idea=req.idea, allow_still=False)
            reel.attempts = outcome.attempts
            if outcome.kind is not ArtifactKind.VIDEO:
                raise ChainExhaustedError("text2video", outcome.attempts)
            reel.video_url = outcome.url
            reel.mode = "video"
            return reel

        if image_only:
            if want_image:
                await self._still_only(reel, req, model_hint)
            reel.mode = "image_only"
            return reel

        outcome = await self.cascade.text_to_video(request, idea=req.idea, allow_still=want_image)
        reel.attempts = outcome.attempts
        reel.video_url = outcome.video_url
        reel.image_url = outcome.image_url
        if outcome.kind is ArtifactKind.VIDEO:
            reel.mode = "video"
        elif outcome.kind is ArtifactKind.FALLBACK_IMAGE:
            reel.mode = "image_fallback"
        return reel

    async def _still_only(self, reel: Reel, req: CaptionRequest, model_hint: str) -> None:
        model_key = choose_model(req.idea, req.style, model_hint)
        candidates = self.catalog.pinned_still_image(model_key)
        width, height = still_dimensions(req.ratio)
        ctx = GenerationContext(
            prompt=reel.vprompt,
            aspect_ratio=req.ratio,
            extras={"width": width, "height": height},
        )
        result = await self.still_chain.run(candidates, ctx, ExhaustionPolicy.SOFT, action="reel_still")
        reel.image_url = result.url
        reel.attempts = result.attempt_log()
