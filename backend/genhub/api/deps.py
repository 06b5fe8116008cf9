"""Shared route dependencies."""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable

from fastapi import Request

from genhub.services.hub import GenerationHub


def get_hub(request: Request) -> GenerationHub:
    """The GenerationHub built by the app lifespan."""
    return request.app.state.hub


async def with_deadline(awaitable: Awaitable[Any], timeout: float) -> Any:
    """Bound one orchestration; expiry cancels in-flight polls and raises TimeoutError."""
    return await asyncio.wait_for(awaitable, timeout=timeout)
