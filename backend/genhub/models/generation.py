"""Domain values shared by the orchestrator services.

These are plain dataclasses; the pydantic schemas in genhub.schemas convert
HTTP bodies into them and nothing provider-specific leaks through here.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace
from typing import Any


class Action(str, enum.Enum):
    """Requested creative operation."""
    TEXT2IMG = "text2img"
    IMG2IMG = "img2img"
    INPAINT = "inpaint"
    REMOVE_BG = "remove_bg"
    UPSCALE = "upscale"
    ADD_OBJECT = "add_object"
    TEXT2VIDEO = "text2video"
    IMAGE2VIDEO = "image2video"

    @property
    def is_image_edit(self) -> bool:
        return self in (Action.IMG2IMG, Action.INPAINT)

    @property
    def is_video(self) -> bool:
        return self in (Action.TEXT2VIDEO, Action.IMAGE2VIDEO)


class ArtifactKind(str, enum.Enum):
    """What the produced URL actually points at."""
    VIDEO = "video"
    FALLBACK_IMAGE = "image_fallback"
    NONE = "none"


@dataclass(frozen=True)
class GenerationRequest:
    """One user intent, borrowed read-only by the orchestrator."""
    action: Action
    prompt: str = ""
    style: str = "auto"
    aspect_ratio: str = "1:1"
    model_hint: str = "auto"
    image: str | None = None
    mask: str | None = None
    strength: float = 0.6
    seed: int | None = None
    seed_lock: bool = False
    batch_count: int = 1
    camera_path: str = "none"
    angles: tuple[str, ...] = ()
    duration_seconds: int = 5
    video_slug: str | None = None
    max_wait: float | None = None

    def with_sources(self, image: str | None, mask: str | None) -> GenerationRequest:
        return replace(self, image=image, mask=mask)


@dataclass(frozen=True)
class GenerationContext:
    """Inputs a candidate's builder turns into a provider payload."""
    prompt: str = ""
    aspect_ratio: str = "1:1"
    image: str | None = None
    mask: str | None = None
    strength: float | None = None
    seed: int | None = None
    extras: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class BatchTask:
    """One derived variant of a request."""
    index: int
    prompt: str
    strength: float
    seed: int | None
    image: str | None = None
    mask: str | None = None
    angle: str = ""

    def to_context(self, aspect_ratio: str) -> GenerationContext:
        return GenerationContext(
            prompt=self.prompt,
            aspect_ratio=aspect_ratio,
            image=self.image,
            mask=self.mask,
            strength=self.strength,
            seed=self.seed,
        )


@dataclass
class TaskOutcome:
    """Result slot of one batch task."""
    index: int
    ok: bool
    url: str | None = None
    model: str | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        if self.ok:
            return {"ok": True, "image_url": self.url, "model": self.model}
        return {"ok": False, "error": self.error}


@dataclass
class BatchResult:
    """Per-task outcomes in task order.

    ``ok`` only says the run completed; callers inspect ``entries`` for
    partial or total failure.
    """
    entries: list[TaskOutcome]
    ok: bool = True

    @property
    def first_url(self) -> str | None:
        for entry in self.entries:
            if entry.ok and entry.url:
                return entry.url
        return None

    @property
    def succeeded(self) -> int:
        return sum(1 for e in self.entries if e.ok)
