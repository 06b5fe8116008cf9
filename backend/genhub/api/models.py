"""Model catalog API: ordered candidates and exhaustion policy per action."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from genhub.api.deps import get_hub
from genhub.services.hub import GenerationHub
from genhub.services.model_router import MODEL_KEYS

router = APIRouter()


@router.get("")
async def list_models(hub: GenerationHub = Depends(get_hub)) -> dict[str, Any]:
    """List every action's candidate chain in try order."""
    actions = hub.catalog.to_dict_list()
    return {
        "actions": actions,
        "router_keys": list(MODEL_KEYS),
        "total": sum(len(a["candidates"]) for a in actions),
    }
