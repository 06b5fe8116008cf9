"""Error taxonomy for the generation orchestrator.

Everything raised by the job client, poller and chain executor derives from
GenerationError so the chain can turn failures into attempt-log entries
without catching programming errors.
"""

from __future__ import annotations

from typing import Any


class GenerationError(Exception):
    """Base class for orchestrator failures."""


class ConfigurationError(GenerationError):
    """Missing credential or model identity. Never retried."""


class InvalidInputError(GenerationError):
    """Malformed or missing source payload. Never retried."""


class TransportError(GenerationError):
    """Non-success HTTP response (or network failure) from the provider."""

    def __init__(self, message: str, status_code: int = 0, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class JobFailedError(GenerationError):
    """Provider reported a terminal failed/canceled job."""

    def __init__(self, message: str, status: str = "failed", detail: Any = None):
        super().__init__(message)
        self.status = status
        self.detail = detail


class PollTimeoutError(GenerationError):
    """Try budget or wall-clock ceiling exhausted before a terminal state."""


class NoUsableOutputError(GenerationError):
    """Job succeeded but its output held no usable media URL."""


class ChainExhaustedError(GenerationError):
    """Every candidate in a fallback chain failed."""

    def __init__(self, action: str, attempts: list[dict[str, Any]]):
        super().__init__(f"{action}: all models failed")
        self.action = action
        self.attempts = attempts
