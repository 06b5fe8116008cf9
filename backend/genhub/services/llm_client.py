"""Chat-completion client for the caption writer.

One OpenAI-compatible endpoint, retry + exponential backoff on retriable
statuses and timeouts, structured LLMError on failure.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from genhub.config import Settings, get_settings

logger = logging.getLogger(__name__)

_RETRIABLE_STATUS = {408, 429, 500, 502, 503, 504}

_http_client: httpx.AsyncClient | None = None


def _get_client(timeout: float) -> httpx.AsyncClient:
    global _http_client
    if _http_client is None or _http_client.is_closed:
        _http_client = httpx.AsyncClient(timeout=timeout)
    return _http_client


async def close_client() -> None:
    global _http_client
    if _http_client is not None and not _http_client.is_closed:
        await _http_client.aclose()
    _http_client = None


class LLMError(Exception):
    """Structured LLM error with status code and retriable flag."""

    def __init__(self, message: str, status_code: int = 0, retriable: bool = False):
        super().__init__(message)
        self.status_code = status_code
        self.retriable = retriable


async def llm_call(
    user_prompt: str,
    *,
    system_prompt: str | None = None,
    model: str | None = None,
    temperature: float = 0.9,
    max_tokens: int = 500,
    caller: str = "unknown",
    settings: Settings | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> str:
    """Return the assistant message content.

    Raises:
        LLMError: no key configured, non-retriable HTTP error, or retries
            exhausted.
    """
    settings = settings or get_settings()
    if not settings.LLM_API_KEY:
        raise LLMError("LLM_API_KEY not configured", retriable=False)

    model = model or settings.CAPTION_MODEL
    url = f"{settings.LLM_BASE_URL.rstrip('/')}/chat/completions"
    headers = {
        "Authorization": f"Bearer {settings.LLM_API_KEY}",
        "Content-Type": "application/json",
    }
    messages: list[dict[str, str]] = []
    if system_prompt:
        messages.append({"role": "system", "content": system_prompt})
    messages.append({"role": "user", "content": user_prompt})
    body: dict[str, Any] = {
        "model": model,
        "messages": messages,
        "temperature": temperature,
        "max_tokens": max_tokens,
    }

    client = http_client or _get_client(float(settings.LLM_TIMEOUT))
    attempts = max(1, settings.LLM_MAX_RETRIES)
    last_error: LLMError | None = None

    for attempt in range(1, attempts + 1):
        logger.info("[%s] LLM call attempt %d/%d model=%s", caller, attempt, attempts, model)
        try:
            response = await client.post(url, headers=headers, json=body)
        except httpx.TimeoutException:
            last_error = LLMError(
                f"LLM call timed out after {settings.LLM_TIMEOUT}s", status_code=408, retriable=True,
            )
        except httpx.HTTPError as e:
            last_error = LLMError(f"LLM transport error: {e}", retriable=True)
        else:
            if response.status_code in _RETRIABLE_STATUS:
                last_error = LLMError(
                    f"HTTP {response.status_code}", status_code=response.status_code, retriable=True,
                )
            elif response.is_error:
                logger.error("[%s] HTTP error %d", caller, response.status_code)
                raise LLMError(
                    f"LLM HTTP error: {response.status_code}",
                    status_code=response.status_code,
                    retriable=False,
                )
            else:
                try:
                    data = response.json()
                    content = data["choices"][0]["message"]["content"] or ""
                except (ValueError, KeyError, IndexError, TypeError) as e:
                    raise LLMError(f"Malformed LLM response: {e}") from e
                logger.info("[%s] LLM response OK, length=%d", caller, len(content))
                return content

        if attempt < attempts:
            backoff = min(2 ** attempt, 30)
            logger.warning("[%s] %s, backing off %ds...", caller, last_error, backoff)
            await asyncio.sleep(backoff)

    raise last_error or LLMError("All LLM retry attempts exhausted")
