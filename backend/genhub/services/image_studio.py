"""Image studio: text2img / img2img / inpaint / remove_bg / upscale.

Single requests run one fallback chain. batch_count > 1 plans variants and
runs each through the same chain, aggregating per-task outcomes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import partial
from typing import Any

from genhub.models.generation import Action, BatchResult, BatchTask, GenerationRequest
from genhub.services.batch import BatchPlanner, BatchRunner
from genhub.services.errors import ChainExhaustedError, InvalidInputError
from genhub.services.fallback_chain import FallbackChain
from genhub.services.model_catalog import EXHAUSTION_POLICIES, ModelCatalog
from genhub.services.output_extractor import is_url
from genhub.services.providers.replicate import JobClient
from genhub.services.video_cascade import normalize_image_payload

logger = logging.getLogger(__name__)

LOCAL_CANVAS = "local-canvas"

_NEEDS_IMAGE = {Action.IMG2IMG, Action.INPAINT, Action.REMOVE_BG, Action.UPSCALE}


@dataclass
class StudioResult:
    mode: str
    url: str | None = None
    model: str | None = None
    attempts: list[dict[str, Any]] = field(default_factory=list)
    batch: BatchResult | None = None
    error: str | None = None

    @property
    def exhausted(self) -> bool:
        return self.batch is None and self.url is None and self.error is not None


class ImageStudio:
    """Orchestrates still-image actions for one request."""

    def __init__(
        self,
        client: JobClient,
        catalog: ModelCatalog,
        chain: FallbackChain,
        planner: BatchPlanner | None = None,
        concurrency: int = 2,
    ) -> None:
        self.client = client
        self.catalog = catalog
        self.chain = chain
        self.planner = planner or BatchPlanner()
        self.concurrency = concurrency

    def _validate(self, request: GenerationRequest) -> None:
        if request.action is Action.TEXT2IMG and not request.prompt:
            raise InvalidInputError("prompt is required for text2img")
        if request.action in _NEEDS_IMAGE and not request.image:
            raise InvalidInputError(f"image is required for {request.action.value}")
        if request.action.is_video:
            raise InvalidInputError(f"unknown action: {request.action.value}")

    async def _inline(self, value: str | None) -> str | None:
        if not value:
            return None
        if is_url(value):
            return await self.client.fetch_as_data_url(value)
        return normalize_image_payload(value)

    async def resolve_sources(self, request: GenerationRequest) -> GenerationRequest:
        """Inline remote image/mask URLs as data URIs."""
        image = await self._inline(request.image)
        mask = await self._inline(request.mask)
        return request.with_sources(image, mask)

    async def _run_task(self, request: GenerationRequest, task: BatchTask) -> tuple[str, str]:
        action = request.action
        result = await self.chain.run(
            self.catalog.for_action(action),
            task.to_context(request.aspect_ratio),
            EXHAUSTION_POLICIES[action],
            action=action.value,
            budget=self.chain.budget.with_timeout(request.max_wait),
        )
        if not result.ok:
            raise ChainExhaustedError(action.value, result.attempt_log())
        return result.url, result.candidate

    async def generate(self, request: GenerationRequest) -> StudioResult:
        action = request.action
        mode = action.value

        if action is Action.ADD_OBJECT:
            return StudioResult(mode=mode, model=LOCAL_CANVAS)

        self._validate(request)
        self.client.require_credentials()
        request = await self.resolve_sources(request)

        tasks = self.planner.plan(request)
        logger.info("image-studio %s: %d task(s)", mode, len(tasks))
        if len(tasks) == 1:
            policy = EXHAUSTION_POLICIES[action]
            result = await self.chain.run(
                self.catalog.for_action(action),
                tasks[0].to_context(request.aspect_ratio),
                policy,
                action=mode,
                budget=self.chain.budget.with_timeout(request.max_wait),
            )
            if result.ok:
                return StudioResult(mode=mode, url=result.url, model=result.candidate,
                                    attempts=result.attempt_log())
            # Only a SOFT policy gets here; FATAL raised inside the chain.
            return StudioResult(mode=mode, attempts=result.attempt_log(),
                                error=f"{mode}: no available models")

        runner = BatchRunner(partial(self._run_task, request), concurrency=self.concurrency)
        batch = await runner.run(tasks)
        return StudioResult(mode=mode, url=batch.first_url, batch=batch)
