"""Pydantic v2 request schemas for the generation routes.

Bodies are forgiving: unknown keys are ignored and the legacy field aliases
the web clients still send (``image_data``, ``video_seconds``...) are folded
into one GenerationRequest / CaptionRequest.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator

from genhub.models.generation import Action, GenerationRequest
from genhub.services.caption_writer import CaptionRequest
from genhub.services.errors import InvalidInputError

IMAGE_ACTIONS = frozenset({"text2img", "img2img", "inpaint", "remove_bg", "upscale", "add_object"})
VIDEO_ACTIONS = frozenset({"text2video", "image2video"})


def _clean(value: str | None) -> str | None:
    value = (value or "").strip()
    return value or None


def _seconds(*values: Any) -> int:
    for value in values:
        if value is None or value == "":
            continue
        try:
            return int(float(value))
        except (TypeError, ValueError):
            continue
    return 5


class ImageStudioRequest(BaseModel):
    """Body of POST /api/image-studio."""

    action: str | None = None
    prompt: str = ""
    aspect_ratio: str = "1:1"
    style: str = "auto"
    model_hint: str = "auto"
    image: str | None = None
    image_data: str | None = None
    mask: str | None = None
    mask_data: str | None = None
    strength: float = 0.6
    seed: int | None = None
    seed_lock: bool = False
    batch_count: int = Field(1, ge=1)
    camera_path: str = "none"
    angles: list[str] = Field(default_factory=list)
    max_wait_ms: int | None = Field(None, gt=0)

    model_config = {"extra": "ignore"}

    @field_validator("batch_count", mode="before")
    @classmethod
    def _clamp_batch(cls, v: Any) -> int:
        try:
            return max(1, min(8, int(v or 1)))
        except (TypeError, ValueError):
            return 1

    def resolve_action(self) -> Action:
        raw = (self.action or ("img2img" if self.image or self.image_data else "text2img")).lower()
        if raw not in IMAGE_ACTIONS:
            raise InvalidInputError(f"unknown action: {raw}")
        return Action(raw)

    def to_generation_request(self) -> GenerationRequest:
        return GenerationRequest(
            action=self.resolve_action(),
            prompt=self.prompt.strip(),
            style=self.style.lower(),
            aspect_ratio=self.aspect_ratio,
            model_hint=self.model_hint.lower(),
            image=_clean(self.image_data) or _clean(self.image),
            mask=_clean(self.mask_data) or _clean(self.mask),
            strength=self.strength,
            seed=self.seed,
            seed_lock=self.seed_lock,
            batch_count=self.batch_count,
            camera_path=self.camera_path.lower(),
            angles=tuple(self.angles),
            max_wait=self.max_wait_ms / 1000 if self.max_wait_ms else None,
        )


class VideoStudioRequest(BaseModel):
    """Body of POST /api/video-studio."""

    mode: str = ""
    action: str | None = None
    prompt: str = ""
    idea: str = ""
    style: str = "auto"
    aspect_ratio: str = "9:16"
    image_model_hint: str = "auto"
    image_data_url: str | None = None
    image_url: str | None = None
    image: str | None = None
    video_seconds: Any = None
    duration_seconds: Any = None
    video_model_slug: str | None = None

    model_config = {"extra": "ignore"}

    @property
    def is_text_to_video(self) -> bool:
        return self.mode.lower() in ("t2v", "text2video") or (self.action or "").lower() == "text2video"

    def to_generation_request(self) -> GenerationRequest:
        action = Action.TEXT2VIDEO if self.is_text_to_video else Action.IMAGE2VIDEO
        return GenerationRequest(
            action=action,
            prompt=(self.prompt or self.idea).strip(),
            style=self.style.lower(),
            aspect_ratio=self.aspect_ratio.replace("-", ":"),
            model_hint=self.image_model_hint.lower(),
            image=_clean(self.image_data_url) or _clean(self.image_url) or _clean(self.image),
            duration_seconds=_seconds(self.video_seconds, self.duration_seconds),
            video_slug=_clean(self.video_model_slug),
        )


class CaptionOptions(BaseModel):
    image: bool = True
    emojis: bool = False
    auto_hashtags: bool = False

    model_config = {"extra": "ignore"}


class CaptionedPostRequest(BaseModel):
    """Fields shared by brand-post and video-reels bodies."""

    idea: str = ""
    prompt: str = ""
    style: str = "auto"
    ratio: str = "1:1"
    preset: str = "neutral"
    cta: str = "Learn more"
    category: str = "General"
    subcategory: str = ""
    length: str = "medium"
    options: CaptionOptions = Field(default_factory=CaptionOptions)
    image_only: bool = False
    text_only: bool = False
    image_model_hint: str = "auto"

    model_config = {"extra": "ignore"}

    @field_validator("options", mode="before")
    @classmethod
    def _options_object(cls, v: Any) -> Any:
        return v if isinstance(v, dict) else {}

    @field_validator("ratio", mode="before")
    @classmethod
    def _normalize_ratio(cls, v: Any) -> str:
        return str(v or "1:1").replace("-", ":")

    def to_caption_request(self) -> CaptionRequest:
        idea = (self.idea or self.prompt).strip()
        if not idea:
            raise InvalidInputError("Missing 'idea' (or 'prompt')")
        return CaptionRequest(
            idea=idea,
            style=self.style.lower(),
            ratio=self.ratio,
            preset=self.preset,
            cta=self.cta,
            category=self.category,
            subcategory=self.subcategory,
            length=self.length.lower(),
            emojis=self.options.emojis,
            hashtags=self.options.auto_hashtags,
        )


class BrandPostRequest(CaptionedPostRequest):
    """Body of POST /api/brand-post."""


class ReelsRequest(CaptionedPostRequest):
    """Body of POST /api/video-reels."""

    ratio: str = "9:16"
    mode: str = ""
    force_text_only: bool = False
    video_seconds: Any = None
    duration_seconds: Any = None
    video_model_slug: str | None = None
    replicate_video_slug: str | None = None

    @property
    def seconds(self) -> int:
        return _seconds(self.video_seconds, self.duration_seconds)

    @property
    def video_slug(self) -> str | None:
        return _clean(self.video_model_slug) or _clean(self.replicate_video_slug)

    def wants_forced_video(self, header: str | None = None) -> bool:
        return (header or "").strip() == "1" or self.mode.lower() in ("text2video", "video", "reels")

    def wants_text_only(self, header: str | None = None) -> bool:
        return (header or "").strip() == "1" or self.text_only or self.force_text_only
