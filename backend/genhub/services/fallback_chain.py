"""Fallback chain executor: ordered candidates, attempt log, metrics.

One abstraction covers "version first, then slug" and "model A, then B,
then C": each action hands over an ordered list of ModelCandidate and an
exhaustion policy.
"""

from __future__ import annotations

import enum
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable

from genhub.models.generation import GenerationContext
from genhub.services.errors import (
    ChainExhaustedError,
    GenerationError,
    InvalidInputError,
    NoUsableOutputError,
)
from genhub.services.output_extractor import extract_url
from genhub.services.poller import PollBudget, poll_to_terminal
from genhub.services.providers.replicate import JobClient

logger = logging.getLogger(__name__)

InputBuilder = Callable[[GenerationContext], dict[str, Any]]


class ExhaustionPolicy(str, enum.Enum):
    """What running out of candidates means for the caller."""
    SOFT = "soft"    # return a "no available model" result
    FATAL = "fatal"  # raise ChainExhaustedError


@dataclass(frozen=True)
class ModelCandidate:
    """A backend identity plus the builder for its input payload.

    Exactly one of ``version`` / ``slug`` is expected; a candidate with
    neither fails with ConfigurationError when tried.
    """
    name: str
    build_input: InputBuilder
    version: str | None = None
    slug: str | None = None

    @property
    def configured(self) -> bool:
        return bool(self.version or self.slug)


@dataclass
class AttemptRecord:
    candidate: str
    ok: bool
    error: str | None = None
    latency_ms: int = 0

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"model": self.candidate, "ok": self.ok}
        if self.error:
            data["error"] = self.error
        return data


@dataclass
class ChainResult:
    """Outcome of one chain run."""
    url: str | None
    candidate: str | None
    attempts: list[AttemptRecord] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.url is not None

    @property
    def exhausted(self) -> bool:
        return self.url is None

    @property
    def tried(self) -> list[str]:
        return [a.candidate for a in self.attempts]

    @property
    def first_error(self) -> str | None:
        for attempt in self.attempts:
            if attempt.error:
                return attempt.error
        return None

    def attempt_log(self) -> list[dict[str, Any]]:
        return [a.to_dict() for a in self.attempts]


class ChainMetrics:
    """In-process per-candidate counters."""

    def __init__(self) -> None:
        self._calls: dict[str, int] = {}
        self._errors: dict[str, int] = {}
        self._latency_ms: dict[str, int] = {}

    def record(self, attempt: AttemptRecord) -> None:
        name = attempt.candidate
        self._calls[name] = self._calls.get(name, 0) + 1
        if not attempt.ok:
            self._errors[name] = self._errors.get(name, 0) + 1
        self._latency_ms[name] = self._latency_ms.get(name, 0) + attempt.latency_ms

    def snapshot(self) -> list[dict[str, Any]]:
        result = []
        for name, calls in sorted(self._calls.items()):
            errors = self._errors.get(name, 0)
            result.append({
                "candidate": name,
                "total_calls": calls,
                "total_errors": errors,
                "error_rate": round(errors / max(calls, 1), 3),
                "avg_latency_ms": round(self._latency_ms.get(name, 0) / max(calls, 1)),
            })
        return result


class FallbackChain:
    """Tries candidates strictly in order until one yields a URL."""

    def __init__(
        self,
        client: JobClient,
        budget: PollBudget,
        metrics: ChainMetrics | None = None,
    ) -> None:
        self.client = client
        self.budget = budget
        self.metrics = metrics or ChainMetrics()

    async def _attempt(
        self,
        candidate: ModelCandidate,
        payload: dict[str, Any],
        budget: PollBudget,
    ) -> str:
        if candidate.version:
            handle = await self.client.submit_by_version(candidate.version, payload)
        else:
            handle = await self.client.submit_by_slug(candidate.slug or "", payload)

        job = await poll_to_terminal(self.client, handle, budget)
        url = extract_url(job.output)
        if not url:
            raise NoUsableOutputError(f"empty output ({candidate.name})")
        return url

    async def run(
        self,
        candidates: list[ModelCandidate],
        context: GenerationContext,
        policy: ExhaustionPolicy = ExhaustionPolicy.FATAL,
        *,
        action: str = "generate",
        budget: PollBudget | None = None,
    ) -> ChainResult:
        """Run the chain.

        InvalidInputError from an input builder aborts the whole chain; any
        other GenerationError is logged as an attempt and the next candidate
        is tried.
        """
        budget = budget or self.budget
        attempts: list[AttemptRecord] = []

        for candidate in candidates:
            payload = candidate.build_input(context)
            started = time.monotonic()
            try:
                url = await self._attempt(candidate, payload, budget)
            except InvalidInputError:
                raise
            except GenerationError as e:
                record = AttemptRecord(
                    candidate=candidate.name,
                    ok=False,
                    error=str(e),
                    latency_ms=int((time.monotonic() - started) * 1000),
                )
                attempts.append(record)
                self.metrics.record(record)
                logger.warning(
                    "%s: candidate %s failed (%d/%d): %s",
                    action, candidate.name, len(attempts), len(candidates), e,
                )
                continue

            record = AttemptRecord(
                candidate=candidate.name,
                ok=True,
                latency_ms=int((time.monotonic() - started) * 1000),
            )
            attempts.append(record)
            self.metrics.record(record)
            logger.info("%s: candidate %s produced %s", action, candidate.name, url)
            return ChainResult(url=url, candidate=candidate.name, attempts=attempts)

        log = [a.to_dict() for a in attempts]
        if policy is ExhaustionPolicy.FATAL:
            logger.error("%s: all %d candidate(s) failed", action, len(candidates))
            raise ChainExhaustedError(action, log)

        logger.warning("%s: no available models (%d tried)", action, len(candidates))
        return ChainResult(url=None, candidate=None, attempts=attempts)
