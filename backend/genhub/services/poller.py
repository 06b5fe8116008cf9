"""Drive a submitted job to a terminal state."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable

from genhub.config import Settings
from genhub.services.errors import JobFailedError, PollTimeoutError
from genhub.services.providers.replicate import Job, JobClient, JobHandle, JobStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PollBudget:
    """Delay between status reads plus the try and wall-clock ceilings.

    Either ceiling may be None, but not both.
    """
    interval: float
    max_tries: int | None = None
    timeout: float | None = None

    def __post_init__(self) -> None:
        if self.max_tries is None and self.timeout is None:
            raise ValueError("PollBudget needs max_tries or timeout")

    @classmethod
    def for_images(cls, settings: Settings) -> PollBudget:
        return cls(interval=settings.IMAGE_POLL_INTERVAL, timeout=settings.IMAGE_POLL_TIMEOUT)

    @classmethod
    def for_videos(cls, settings: Settings) -> PollBudget:
        return cls(interval=settings.VIDEO_POLL_INTERVAL, max_tries=settings.VIDEO_POLL_TRIES)

    def with_timeout(self, timeout: float | None) -> PollBudget:
        if not timeout:
            return self
        return PollBudget(interval=self.interval, max_tries=self.max_tries, timeout=timeout)


async def poll_to_terminal(
    client: JobClient,
    handle: JobHandle,
    budget: PollBudget,
    *,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> Job:
    """Poll until succeeded, or raise.

    failed/canceled raise JobFailedError immediately (no retry here);
    running out of tries or time raises PollTimeoutError.
    """
    started = clock()
    attempt = 0

    while True:
        attempt += 1
        job = await client.fetch_status(handle)

        if job.status is JobStatus.SUCCEEDED:
            logger.debug("Job %s succeeded after %d read(s)", handle.id, attempt)
            return job

        if job.status in (JobStatus.FAILED, JobStatus.CANCELED):
            detail = job.error or job.logs or job.status.value
            raise JobFailedError(
                f"prediction {job.status.value} ({handle.model}): {detail}",
                status=job.status.value,
                detail=detail,
            )

        logger.debug("Job %s: %s (read %d)", handle.id, job.status.value, attempt)

        if budget.max_tries is not None and attempt >= budget.max_tries:
            raise PollTimeoutError(f"timeout ({handle.model}) after {attempt} tries")
        if budget.timeout is not None and clock() - started >= budget.timeout:
            raise PollTimeoutError(f"timeout ({handle.model}) after {budget.timeout:.0f}s")

        await sleep(budget.interval)
