"""Metrics API: per-candidate attempt statistics since process start."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from genhub.api.deps import get_hub
from genhub.services.hub import GenerationHub

router = APIRouter()


@router.get("/generation")
async def generation_metrics(hub: GenerationHub = Depends(get_hub)):
    """Return call, error and latency counters for every candidate tried."""
    return {"candidates": hub.metrics.snapshot()}
