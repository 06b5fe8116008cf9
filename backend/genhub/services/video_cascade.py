"""Video generation with a still-image degradation path.

text-to-video:  video slug → video version → (optional) pinned still image,
                reported as ``image_fallback`` so callers never present a
                still as the requested video.
image-to-video: the source image is normalized before anything is submitted.
"""

from __future__ import annotations

import base64
import binascii
import logging
import re
from dataclasses import dataclass, field
from typing import Any

from genhub.models.generation import ArtifactKind, GenerationContext, GenerationRequest
from genhub.services.errors import ConfigurationError, InvalidInputError
from genhub.services.fallback_chain import ExhaustionPolicy, FallbackChain
from genhub.services.model_catalog import ModelCatalog
from genhub.services.model_router import choose_model
from genhub.services.output_extractor import is_url

logger = logging.getLogger(__name__)

DEFAULT_I2V_PROMPT = "cinematic lighting, no text, no watermark, no subtitles"

_DATA_URL_RE = re.compile(r"^data:[^;,]+;base64,", re.IGNORECASE)
_DATA_PREFIX_RE = re.compile(r"^data:[^,]*,", re.IGNORECASE)

_VIDEO_SIZES = {"9:16": "1080*1920", "16:9": "1920*1080"}
_STILL_SIZES = {"9:16": (1080, 1920), "16:9": (1920, 1080)}


def normalize_image_payload(raw: str | None) -> str:
    """Return a URL or canonical base64 data URI, or raise InvalidInputError.

    A data URI missing its ``;base64`` marker (or bare base64 with no
    prefix at all) is repaired to ``data:image/png;base64,...`` when the
    payload decodes cleanly.
    """
    value = str(raw or "").strip()
    if not value:
        raise InvalidInputError("Missing image_data_url")
    if is_url(value):
        return value
    if _DATA_URL_RE.match(value):
        return value

    payload = _DATA_PREFIX_RE.sub("", value) if value.lower().startswith("data:") else value
    payload = re.sub(r"\s+", "", payload)
    if not payload:
        raise InvalidInputError("Bad data URL")
    try:
        base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidInputError("Bad data URL") from e

    logger.info("Repaired image payload missing its base64 marker")
    return f"data:image/png;base64,{payload}"


def snap_duration(requested: Any) -> int:
    """Providers accept 5 or 10 seconds only."""
    try:
        seconds = int(float(requested))
    except (TypeError, ValueError):
        seconds = 5
    return 5 if seconds <= 5 else 10


def video_size(ratio: str) -> str:
    return _VIDEO_SIZES.get(ratio, "1080*1080")


def still_dimensions(ratio: str) -> tuple[int, int]:
    return _STILL_SIZES.get(ratio, (1080, 1080))


def still_prompt(prompt: str) -> str:
    """Adapt a motion prompt for a single frame."""
    base = prompt.strip().rstrip(".")
    return f"{base}. Single still frame, no motion blur, no text."


@dataclass
class VideoOutcome:
    """What a video flow produced, with the attempt log of every chain run."""
    url: str | None
    kind: ArtifactKind
    candidate: str | None = None
    seconds: int = 5
    attempts: list[dict[str, Any]] = field(default_factory=list)

    @property
    def video_url(self) -> str | None:
        return self.url if self.kind is ArtifactKind.VIDEO else None

    @property
    def image_url(self) -> str | None:
        return self.url if self.kind is ArtifactKind.FALLBACK_IMAGE else None


class VideoCascade:
    """Primary video chain with a still-image substitute."""

    def __init__(
        self,
        catalog: ModelCatalog,
        video_chain: FallbackChain,
        still_chain: FallbackChain,
    ) -> None:
        self.catalog = catalog
        self.video_chain = video_chain
        self.still_chain = still_chain

    async def text_to_video(
        self,
        request: GenerationRequest,
        *,
        idea: str = "",
        allow_still: bool = True,
    ) -> VideoOutcome:
        seconds = snap_duration(request.duration_seconds)
        attempts: list[dict[str, Any]] = []

        candidates = self.catalog.text_to_video(request.video_slug)
        if candidates:
            ctx = GenerationContext(
                prompt=request.prompt,
                aspect_ratio=request.aspect_ratio,
                extras={"size": video_size(request.aspect_ratio), "duration": seconds},
            )
            result = await self.video_chain.run(
                candidates, ctx, ExhaustionPolicy.SOFT, action="text2video",
            )
            attempts.extend(result.attempt_log())
            if result.ok:
                return VideoOutcome(result.url, ArtifactKind.VIDEO, result.candidate, seconds, attempts)
        else:
            logger.info("text2video: no video model configured")

        if not allow_still:
            return VideoOutcome(None, ArtifactKind.NONE, seconds=seconds, attempts=attempts)

        model_key = choose_model(idea or request.prompt, request.style, request.model_hint)
        stills = self.catalog.pinned_still_image(model_key)
        if not stills:
            return VideoOutcome(None, ArtifactKind.NONE, seconds=seconds, attempts=attempts)

        logger.warning("text2video: degrading to still image via %s", stills[0].name)
        width, height = still_dimensions(request.aspect_ratio)
        ctx = GenerationContext(
            prompt=still_prompt(request.prompt),
            aspect_ratio=request.aspect_ratio,
            extras={"width": width, "height": height},
        )
        result = await self.still_chain.run(stills, ctx, ExhaustionPolicy.SOFT, action="still_fallback")
        attempts.extend(result.attempt_log())
        if result.ok:
            return VideoOutcome(result.url, ArtifactKind.FALLBACK_IMAGE, result.candidate, seconds, attempts)
        return VideoOutcome(None, ArtifactKind.NONE, seconds=seconds, attempts=attempts)

    async def image_to_video(self, request: GenerationRequest) -> VideoOutcome:
        image = normalize_image_payload(request.image)
        candidates = self.catalog.image_to_video()
        if not candidates:
            raise ConfigurationError("No I2V model configured.")

        seconds = snap_duration(request.duration_seconds)
        ctx = GenerationContext(
            prompt=request.prompt.strip() or DEFAULT_I2V_PROMPT,
            aspect_ratio=request.aspect_ratio,
            image=image,
            extras={"resolution": "720p", "duration": seconds},
        )
        result = await self.video_chain.run(candidates, ctx, ExhaustionPolicy.SOFT, action="image2video")
        kind = ArtifactKind.VIDEO if result.ok else ArtifactKind.NONE
        return VideoOutcome(result.url, kind, result.candidate, seconds, result.attempt_log())
