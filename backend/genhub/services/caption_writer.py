"""Caption + visual prompt writer.

One chat-completion round trip, JSON pulled out of the reply, caption cut to
its character budget. Never raises: any failure yields the fallback copy.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from genhub.services.llm_client import LLMError, llm_call

logger = logging.getLogger(__name__)

LENGTH_TARGETS = {"short": 120, "medium": 220, "long": 400}
DEFAULT_LENGTH = "medium"

_STYLE_LOOKS = {
    "cartoon3d": "3D toon-shaded / flat illustrated, rounded forms, cel shading edges.",
    "illustrated": "3D toon-shaded / flat illustrated, rounded forms, cel shading edges.",
    "futuristic": "Futuristic neon, glassmorphism, volumetric lights.",
    "realistic": "Photorealistic warm golden light, shallow DOF.",
}
_DEFAULT_LOOK = "Let AI choose best style; clean composition."

CAPTION_PROMPT = """Write a short social media caption and a clean visual prompt for an image generator.

Constraints:
- Tone preset: {preset}
- CTA text: {cta}
- Category: {category}
- Emojis: {emojis}
- Hashtags: {hashtags}
- Do NOT include any URLs in the caption.
- Aim for ~{max_chars} characters (hard cap: {hard_cap}).
- Visual prompt must forbid text/letters/logos in image and keep text-safe area.
- Aspect ratio primary: {ratio}
- Style hint: {style}

Event idea: "{idea}"

Return STRICT JSON:
{{
  "caption": "one paragraph under {hard_cap} chars, CTA included, obey emoji/hashtag flags, no URLs",
  "visual_prompt": "clean prompt for image generator without text in image"
}}"""


@dataclass(frozen=True)
class CaptionRequest:
    idea: str
    style: str = "auto"
    ratio: str = "1:1"
    preset: str = "neutral"
    cta: str = "Learn more"
    category: str = "General"
    subcategory: str = ""
    length: str = DEFAULT_LENGTH
    emojis: bool = False
    hashtags: bool = False

    @property
    def max_chars(self) -> int:
        return LENGTH_TARGETS.get(self.length, LENGTH_TARGETS[DEFAULT_LENGTH])

    @property
    def hard_cap(self) -> int:
        return round(self.max_chars * 1.1)


@dataclass(frozen=True)
class CaptionResult:
    caption: str | None
    visual_prompt: str
    gpt_used: bool = False


def extract_json(text: str) -> dict[str, Any]:
    """Parse the outermost {...} span of a model reply; {} if there is none."""
    start, end = text.find("{"), text.rfind("}")
    if start < 0 or end < start:
        return {}
    try:
        data = json.loads(text[start:end + 1])
    except json.JSONDecodeError:
        return {}
    return data if isinstance(data, dict) else {}


def truncate_caption(caption: str, hard_cap: int) -> str:
    """Cut at a sentence or word boundary in the last tenth, then add an ellipsis."""
    if len(caption) <= hard_cap:
        return caption
    cut = caption[:hard_cap]
    idx = max(cut.rfind(". "), cut.rfind(" "), int(len(cut) * 0.9))
    return cut[:idx].strip() + "…"


def fallback_caption(idea: str, cta: str, max_chars: int) -> str:
    return f"✨ {idea}\nLearn more and take action today.\n\n➡️ {cta}"[:max_chars]


def fallback_visual_prompt(idea: str, ratio: str) -> str:
    return f"{idea}. Modern minimalist beige & orange, warm light, clean bg, no text. AR {ratio}."


def styled_visual_prompt(idea: str, style: str, ratio: str) -> str:
    """Template prompt used when the caption step is skipped."""
    look = _STYLE_LOOKS.get(style, _DEFAULT_LOOK)
    return f"{idea}. {look} No text/logos on image. Aspect ratio {ratio}. High detail."


def build_prompt(req: CaptionRequest) -> str:
    category = f"{req.category} / {req.subcategory}" if req.subcategory else req.category
    return CAPTION_PROMPT.format(
        preset=req.preset,
        cta=req.cta,
        category=category,
        emojis="ON (use 1-3 emojis total)" if req.emojis else "OFF (no emojis)",
        hashtags="ON (2-4 relevant at end)" if req.hashtags else "OFF (no hashtags)",
        max_chars=req.max_chars,
        hard_cap=req.hard_cap,
        ratio=req.ratio,
        style=req.style,
        idea=req.idea,
    )


async def write_caption(
    req: CaptionRequest,
    *,
    llm: Callable[..., Awaitable[str]] = llm_call,
) -> CaptionResult:
    """Caption and visual prompt for *req*, falling back to template copy."""
    try:
        text = await llm(build_prompt(req), caller="caption")
        parsed = extract_json(text)
        caption = str(parsed.get("caption") or "").strip()
        visual_prompt = str(parsed.get("visual_prompt") or "").strip()
        if not caption or not visual_prompt:
            raise LLMError("Empty fields in caption JSON")
    except LLMError as e:
        logger.warning("Caption LLM unavailable, using fallback copy: %s", e)
        return CaptionResult(
            caption=fallback_caption(req.idea, req.cta, req.max_chars),
            visual_prompt=fallback_visual_prompt(req.idea, req.ratio),
            gpt_used=False,
        )

    return CaptionResult(
        caption=truncate_caption(caption, req.hard_cap),
        visual_prompt=visual_prompt,
        gpt_used=True,
    )
