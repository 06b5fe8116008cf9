"""Replicate prediction provider.

Async job pattern:
  POST /predictions (pinned version) or /models/{slug}/predictions → handle
  GET  handle.get_url → status until succeeded / failed / canceled

Only transport lives here; polling budgets and fallback across models are
handled by the poller and chain executor.
"""

from __future__ import annotations

import base64
import enum
import logging
from dataclasses import dataclass
from typing import Any

import httpx

from genhub.config import ProviderConfig
from genhub.services.errors import ConfigurationError, InvalidInputError, TransportError

logger = logging.getLogger(__name__)

_BODY_PREVIEW = 500


class JobStatus(str, enum.Enum):
    QUEUED = "queued"
    PROCESSING = "processing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELED = "canceled"

    @classmethod
    def from_provider(cls, raw: Any) -> JobStatus:
        """Map Replicate's status strings; anything unknown is still running."""
        value = str(raw or "").lower()
        if value in ("starting", "queued"):
            return cls.QUEUED
        if value in ("succeeded", "failed", "canceled"):
            return cls(value)
        if value == "cancelled":
            return cls.CANCELED
        return cls.PROCESSING

    @property
    def terminal(self) -> bool:
        return self in (JobStatus.SUCCEEDED, JobStatus.FAILED, JobStatus.CANCELED)


@dataclass(frozen=True)
class JobHandle:
    """Reference returned on submission, used for status reads."""
    id: str
    get_url: str
    model: str


@dataclass
class Job:
    """Snapshot of one prediction as last read from the provider."""
    id: str
    status: JobStatus
    output: Any = None
    error: Any = None
    logs: str | None = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> Job:
        return cls(
            id=str(payload.get("id") or ""),
            status=JobStatus.from_provider(payload.get("status")),
            output=payload.get("output"),
            error=payload.get("error"),
            logs=payload.get("logs"),
        )


def _mask_token(token: str) -> str:
    if len(token) <= 12:
        return "***"
    return f"{token[:4]}...{token[-4:]}"


class JobClient:
    """Submits predictions and reads their status.

    The configuration is injected once; the client never reads the
    environment. Pass ``http_client`` to share a connection pool (the app
    lifespan does) or to plug in a mock transport in tests.
    """

    def __init__(
        self,
        config: ProviderConfig,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 60.0,
    ) -> None:
        self.config = config
        self._client = http_client or httpx.AsyncClient(timeout=timeout)
        self._own_client = http_client is None

    async def aclose(self) -> None:
        if self._own_client:
            await self._client.aclose()

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.config.api_token}",
            "Content-Type": "application/json",
        }

    def require_credentials(self) -> None:
        if not self.config.api_token:
            raise ConfigurationError("Missing REPLICATE_API_TOKEN")

    async def _request(self, method: str, url: str, **kwargs: Any) -> dict[str, Any]:
        try:
            resp = await self._client.request(method, url, headers=self._headers(), **kwargs)
        except httpx.HTTPError as e:
            raise TransportError(f"{method} {url} failed: {e}") from e

        if resp.is_error:
            body = resp.text[:_BODY_PREVIEW]
            raise TransportError(
                f"HTTP {resp.status_code} {resp.reason_phrase} :: {body}",
                status_code=resp.status_code,
                body=body,
            )
        try:
            payload = resp.json()
        except ValueError as e:
            raise TransportError(
                f"Invalid JSON from provider: {resp.text[:_BODY_PREVIEW]}",
                status_code=resp.status_code,
                body=resp.text[:_BODY_PREVIEW],
            ) from e
        if not isinstance(payload, dict):
            raise TransportError(
                f"Unexpected provider payload: {resp.text[:_BODY_PREVIEW]}",
                status_code=resp.status_code,
                body=resp.text[:_BODY_PREVIEW],
            )
        return payload

    def _to_handle(self, payload: dict[str, Any], model: str) -> JobHandle:
        job_id = str(payload.get("id") or "")
        urls = payload.get("urls") or {}
        if not isinstance(urls, dict):
            raise TransportError(f"Unexpected provider payload: urls={urls!r}")
        get_url = urls.get("get")
        if not get_url:
            if not job_id:
                raise TransportError(f"Provider returned no job reference: {payload}")
            get_url = f"{self.config.api_base}/predictions/{job_id}"
        return JobHandle(id=job_id, get_url=get_url, model=model)

    async def submit_by_version(self, version_id: str, input: dict[str, Any]) -> JobHandle:
        """Create a prediction against a pinned model version."""
        self.require_credentials()
        if not version_id:
            raise ConfigurationError("Missing Replicate model version")

        payload = await self._request(
            "POST",
            f"{self.config.api_base}/predictions",
            json={"version": version_id, "input": input},
        )
        handle = self._to_handle(payload, model=version_id)
        logger.info(
            "Replicate job created: %s (version=%s, key=%s)",
            handle.id, version_id[:12], _mask_token(self.config.api_token),
        )
        return handle

    async def submit_by_slug(self, slug: str, input: dict[str, Any]) -> JobHandle:
        """Create a prediction against a named model (latest version)."""
        self.require_credentials()
        if not slug:
            raise ConfigurationError("Missing Replicate model slug")

        payload = await self._request(
            "POST",
            f"{self.config.api_base}/models/{slug}/predictions",
            json={"input": input},
        )
        handle = self._to_handle(payload, model=slug)
        logger.info("Replicate job created: %s (model=%s)", handle.id, slug)
        return handle

    async def fetch_status(self, handle: JobHandle) -> Job:
        """One status read."""
        payload = await self._request("GET", handle.get_url)
        job = Job.from_payload(payload)
        if not job.id:
            job.id = handle.id
        return job

    async def fetch_as_data_url(self, url: str) -> str:
        """Download a remote image and inline it as a base64 data URI."""
        try:
            resp = await self._client.get(url, follow_redirects=True)
        except httpx.HTTPError as e:
            raise InvalidInputError(f"fetch(url) failed: {e}") from e
        if resp.is_error:
            raise InvalidInputError(
                f"fetch(url) failed: {resp.status_code}"
                + (f": {resp.text[:200]}" if resp.text else "")
            )
        content_type = resp.headers.get("content-type", "image/jpeg").split(";")[0].strip()
        b64 = base64.b64encode(resp.content).decode("ascii")
        return f"data:{content_type or 'image/jpeg'};base64,{b64}"
