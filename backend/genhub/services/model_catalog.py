"""Declarative candidate lists per action.

Order encodes preference: earlier entries are tried first by the chain
executor. Pinned versions and optional slugs come from ProviderConfig; tiers
left unconfigured are not listed at all.
"""

from __future__ import annotations

from typing import Any

from genhub.config import ProviderConfig
from genhub.models.generation import Action, GenerationContext
from genhub.services.errors import InvalidInputError
from genhub.services.fallback_chain import ExhaustionPolicy, ModelCandidate
from genhub.services.model_router import FLUX, SDXL


NEGATIVE_STILL = "letters, text, words, watermark, logo, blurry, noisy, cluttered"
NEGATIVE_VIDEO = "text, logo, watermark, letters, subtitles"

# Caller intent when a chain runs dry
EXHAUSTION_POLICIES: dict[Action, ExhaustionPolicy] = {
    Action.TEXT2IMG: ExhaustionPolicy.FATAL,
    Action.IMG2IMG: ExhaustionPolicy.FATAL,
    Action.INPAINT: ExhaustionPolicy.FATAL,
    Action.REMOVE_BG: ExhaustionPolicy.FATAL,
    Action.UPSCALE: ExhaustionPolicy.SOFT,
    Action.TEXT2VIDEO: ExhaustionPolicy.SOFT,
    Action.IMAGE2VIDEO: ExhaustionPolicy.SOFT,
}


def _with_seed(data: dict[str, Any], seed: int | None) -> dict[str, Any]:
    if seed is not None:
        data["seed"] = seed
    return data


def _require_image(ctx: GenerationContext, action: str) -> str:
    if not ctx.image:
        raise InvalidInputError(f"image is required for {action}")
    return ctx.image


# ---------------------------------------------------------------------------
# Input builders
# ---------------------------------------------------------------------------

def _flux_schnell_input(ctx: GenerationContext) -> dict[str, Any]:
    if not ctx.prompt:
        raise InvalidInputError("prompt is required for text2img")
    return _with_seed({
        "prompt": ctx.prompt,
        "aspect_ratio": ctx.aspect_ratio,
        "num_outputs": 1,
        "output_format": "png",
        "output_quality": 90,
    }, ctx.seed)


def _kontext_input(ctx: GenerationContext) -> dict[str, Any]:
    image = _require_image(ctx, "img2img")
    data: dict[str, Any] = {
        "prompt": ctx.prompt,
        "input_image": image,
        "image": image,
        "output_format": "jpg",
    }
    if ctx.strength is not None:
        data["strength"] = ctx.strength
    if ctx.mask:
        data["mask_image"] = ctx.mask
        data["mask"] = ctx.mask
    return _with_seed(data, ctx.seed)


def _image_only_input(ctx: GenerationContext) -> dict[str, Any]:
    return {"image": _require_image(ctx, "this action")}


def _upscale_prompted_input(ctx: GenerationContext) -> dict[str, Any]:
    return {"image": _require_image(ctx, "upscale"), "prompt": ctx.prompt or ""}


def _flux_version_input(ctx: GenerationContext) -> dict[str, Any]:
    return _with_seed({
        "prompt": ctx.prompt,
        "go_fast": False,
        "megapixels": "1",
        "prompt_strength": 0.85,
        "num_outputs": 1,
        "output_format": "png",
        "output_quality": 90,
    }, ctx.seed)


def _sdxl_version_input(ctx: GenerationContext) -> dict[str, Any]:
    data: dict[str, Any] = {
        "prompt": ctx.prompt,
        "negative_prompt": NEGATIVE_STILL,
        "num_inference_steps": 30,
        "guidance_scale": 7.0,
        "scheduler": "DPMSolverMultistep",
        "num_outputs": 1,
    }
    width, height = ctx.extras.get("width"), ctx.extras.get("height")
    if width and height:
        data["width"], data["height"] = width, height
    return _with_seed(data, ctx.seed)


def _t2v_input(ctx: GenerationContext) -> dict[str, Any]:
    return {
        "prompt": ctx.prompt,
        "size": ctx.extras.get("size", "1080*1920"),
        "duration": ctx.extras.get("duration", 5),
        "negative_prompt": NEGATIVE_VIDEO,
        "enable_prompt_expansion": True,
    }


def _i2v_input(ctx: GenerationContext) -> dict[str, Any]:
    return {
        "image": _require_image(ctx, "image2video"),
        "prompt": ctx.prompt,
        "negative_prompt": NEGATIVE_VIDEO,
        "resolution": ctx.extras.get("resolution", "720p"),
        "duration": ctx.extras.get("duration", 5),
        "enable_prompt_expansion": True,
    }


# ---------------------------------------------------------------------------
# Fixed slug lists
# ---------------------------------------------------------------------------

REMOVE_BG_MODELS: tuple[ModelCandidate, ...] = (
    ModelCandidate("recraft-ai/recraft-remove-background", _image_only_input,
                   slug="recraft-ai/recraft-remove-background"),
    ModelCandidate("851-labs/background-remover", _image_only_input,
                   slug="851-labs/background-remover"),
    ModelCandidate("lucataco/remove-bg", _image_only_input, slug="lucataco/remove-bg"),
)

UPSCALE_MODELS: tuple[ModelCandidate, ...] = (
    ModelCandidate("stability-ai/stable-diffusion-x4-upscaler", _upscale_prompted_input,
                   slug="stability-ai/stable-diffusion-x4-upscaler"),
    ModelCandidate("stability-ai/sd-x4-upscaler", _upscale_prompted_input,
                   slug="stability-ai/sd-x4-upscaler"),
    ModelCandidate("lucataco/stable-diffusion-x4-upscaler", _upscale_prompted_input,
                   slug="lucataco/stable-diffusion-x4-upscaler"),
    ModelCandidate("xinntao/real-esrgan", _image_only_input, slug="xinntao/real-esrgan"),
    ModelCandidate("nightmareai/real-esrgan", _image_only_input, slug="nightmareai/real-esrgan"),
)


class ModelCatalog:
    """Builds the ordered candidate list for each action from ProviderConfig."""

    def __init__(self, config: ProviderConfig) -> None:
        self.config = config

    def for_action(self, action: Action) -> list[ModelCandidate]:
        if action is Action.TEXT2IMG:
            return [ModelCandidate(self.config.flux_slug, _flux_schnell_input, slug=self.config.flux_slug)]
        if action in (Action.IMG2IMG, Action.INPAINT):
            return [ModelCandidate(self.config.edit_slug, _kontext_input, slug=self.config.edit_slug)]
        if action is Action.REMOVE_BG:
            return list(REMOVE_BG_MODELS)
        if action is Action.UPSCALE:
            return list(UPSCALE_MODELS)
        if action is Action.TEXT2VIDEO:
            return self.text_to_video()
        if action is Action.IMAGE2VIDEO:
            return self.image_to_video()
        return []

    def pinned_still_image(self, model_key: str) -> list[ModelCandidate]:
        """The routed pinned version, if one is configured."""
        if model_key == FLUX:
            candidate = ModelCandidate("FLUX(version)", _flux_version_input,
                                       version=self.config.flux_version)
        else:
            candidate = ModelCandidate("SDXL(version)", _sdxl_version_input,
                                       version=self.config.sdxl_version)
        return [candidate] if candidate.configured else []

    def still_image(self, model_key: str) -> list[ModelCandidate]:
        """Routed pinned version first, FLUX slug as the last tier.

        A FLUX route with no FLUX version falls back to the SDXL version.
        """
        candidates = self.pinned_still_image(model_key)
        if not candidates and model_key == FLUX:
            candidates = self.pinned_still_image(SDXL)
        if self.config.flux_slug:
            candidates.append(ModelCandidate("FLUX(slug)", _flux_schnell_input, slug=self.config.flux_slug))
        return candidates

    def text_to_video(self, slug_override: str | None = None) -> list[ModelCandidate]:
        """Named video model first, pinned video version second."""
        slug = (slug_override or self.config.video_slug or "").strip()
        candidates = []
        if slug:
            candidates.append(ModelCandidate(f"{slug}(slug)", _t2v_input, slug=slug))
        if self.config.video_version:
            candidates.append(ModelCandidate("VIDEO(version)", _t2v_input, version=self.config.video_version))
        return candidates

    def image_to_video(self) -> list[ModelCandidate]:
        candidates = []
        if self.config.i2v_slug:
            candidates.append(ModelCandidate(f"{self.config.i2v_slug}(slug)", _i2v_input,
                                             slug=self.config.i2v_slug))
        if self.config.i2v_version:
            candidates.append(ModelCandidate("I2V(version)", _i2v_input, version=self.config.i2v_version))
        return candidates

    def to_dict_list(self) -> list[dict[str, Any]]:
        """Serialize the catalog for the models endpoint."""
        result = []
        for action in Action:
            candidates = self.for_action(action)
            result.append({
                "action": action.value,
                "policy": EXHAUSTION_POLICIES.get(action, ExhaustionPolicy.FATAL).value,
                "candidates": [
                    {
                        "name": c.name,
                        "kind": "version" if c.version else "slug",
                        "configured": c.configured,
                    }
                    for c in candidates
                ],
            })
        for key in (FLUX, SDXL):
            result.append({
                "action": f"still:{key}",
                "policy": ExhaustionPolicy.SOFT.value,
                "candidates": [
                    {"name": c.name, "kind": "version" if c.version else "slug", "configured": c.configured}
                    for c in self.still_image(key)
                ],
            })
        return result
