"""Batch planner & runner: fan one request out into 1-8 variants.

Variants differ by framing phrase, seed and (for image edits) a small
strength jitter. Execution is concurrent under a semaphore; results come
back in task order and a failing task never takes its siblings down.
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Awaitable, Callable

from genhub.models.generation import BatchResult, BatchTask, GenerationRequest, TaskOutcome

logger = logging.getLogger(__name__)

MIN_BATCH = 1
MAX_BATCH = 8

DEFAULT_STRENGTH = 0.6
STRENGTH_JITTER = 0.06
STRENGTH_MIN = 0.3
STRENGTH_MAX = 0.9

SEED_RANGE = 10_000_000

ANGLE_PHRASES = {
    "front": "front view",
    "34left": "3/4 angle, left side",
    "34right": "3/4 angle, right side",
    "side": "side view",
    "back": "back view",
    "top": "top-down view",
    "low": "low-angle cinematic shot",
}

# Orbit cycle revisits the 3/4 and side angles on the way back round.
# Kept exactly as shipped; the weighting is a content choice.
ORBIT_ORDER = ("front", "34left", "side", "34right", "back", "34right", "side", "34left")


def angle_phrase(label: str) -> str:
    """Known angle keys map to a phrase; anything else passes through."""
    key = str(label or "").strip().lower()
    return ANGLE_PHRASES.get(key, key)


def orbit_angles(count: int) -> list[str]:
    return [ANGLE_PHRASES[ORBIT_ORDER[i % len(ORBIT_ORDER)]] for i in range(count)]


def clamp_count(requested: int | None) -> int:
    try:
        value = int(requested or 1)
    except (TypeError, ValueError):
        value = 1
    return max(MIN_BATCH, min(MAX_BATCH, value))


def _join_prompt(prompt: str, phrase: str) -> str:
    return f"{prompt}, {phrase}" if phrase else prompt


class BatchPlanner:
    """Expands a GenerationRequest into BatchTask descriptors.

    ``rng`` is injectable so seeds and jitter are reproducible in tests.
    """

    def __init__(self, rng: random.Random | None = None) -> None:
        self.rng = rng or random.Random()

    def jitter_strength(self, base: float | None) -> float:
        try:
            b = float(base) if base is not None else DEFAULT_STRENGTH
        except (TypeError, ValueError):
            b = DEFAULT_STRENGTH
        j = self.rng.uniform(-STRENGTH_JITTER, STRENGTH_JITTER)
        return min(STRENGTH_MAX, max(STRENGTH_MIN, b + j))

    def plan(self, request: GenerationRequest) -> list[BatchTask]:
        count = clamp_count(request.batch_count)
        orbit = request.camera_path.lower() == "orbit"
        labels = [angle_phrase(a) for a in request.angles if str(a or "").strip()]

        if count == 1:
            # A single render keeps the caller's exact seed and strength.
            phrase = "" if orbit else (labels[0] if labels else "")
            return [BatchTask(
                index=0,
                prompt=_join_prompt(request.prompt, phrase),
                strength=request.strength,
                seed=request.seed,
                image=request.image,
                mask=request.mask,
                angle=phrase,
            )]

        base_seed = request.seed if request.seed is not None else self.rng.randrange(SEED_RANGE)
        phrases = orbit_angles(count) if orbit else labels
        jitter = request.action.is_image_edit

        tasks = []
        for i in range(count):
            phrase = phrases[i % len(phrases)] if phrases else ""
            tasks.append(BatchTask(
                index=i,
                prompt=_join_prompt(request.prompt, phrase),
                strength=self.jitter_strength(request.strength) if jitter else request.strength,
                seed=base_seed if request.seed_lock else base_seed + i,
                image=request.image,
                mask=request.mask,
                angle=phrase,
            ))

        logger.debug(
            "Planned %d variant(s): base_seed=%s lock=%s orbit=%s",
            count, base_seed, request.seed_lock, orbit,
        )
        return tasks


# A task runner returns (url, model) or raises.
TaskFn = Callable[[BatchTask], Awaitable[tuple[str, str]]]


class BatchRunner:
    """Runs tasks with bounded concurrency, preserving task order."""

    def __init__(self, run_task: TaskFn, concurrency: int = 2) -> None:
        self.run_task = run_task
        self._concurrency = max(1, concurrency)

    async def _run_one(self, task: BatchTask, semaphore: asyncio.Semaphore) -> TaskOutcome:
        async with semaphore:
            try:
                url, model = await self.run_task(task)
            except Exception as e:
                logger.warning("Batch task %d failed: %s", task.index, e)
                return TaskOutcome(index=task.index, ok=False, error=str(e))
        return TaskOutcome(index=task.index, ok=True, url=url, model=model)

    async def run(self, tasks: list[BatchTask]) -> BatchResult:
        semaphore = asyncio.Semaphore(self._concurrency)
        entries = await asyncio.gather(*(self._run_one(t, semaphore) for t in tasks))
        result = BatchResult(entries=list(entries))
        logger.info("Batch finished: %d/%d succeeded", result.succeeded, len(tasks))
        return result
