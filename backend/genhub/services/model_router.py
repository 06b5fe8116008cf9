"""Pick a still-image backend from style, hint and idea text."""

from __future__ import annotations

import re

FLUX = "flux"
SDXL = "sdxl"

MODEL_KEYS = (FLUX, SDXL)

# Stylized looks go to the faster, more stylable model
_STYLABLE_STYLES = {"cartoon3d", "illustrated"}
_HIGH_FIDELITY_STYLES = {"futuristic", "realistic"}

_LIGHTHEARTED_RE = re.compile(r"halloween|kids|pizza|party|fun|gymnastics", re.IGNORECASE)


def choose_model(idea: str | None = None, style: str | None = None, hint: str | None = None) -> str:
    """Return a model key. Total and side-effect free."""
    h = str(hint or "auto").strip().lower()
    if h in MODEL_KEYS:
        return h

    st = str(style or "auto").strip().lower()
    if st in _STYLABLE_STYLES:
        return FLUX
    if st in _HIGH_FIDELITY_STYLES:
        return SDXL

    return FLUX if _LIGHTHEARTED_RE.search(str(idea or "")) else SDXL
