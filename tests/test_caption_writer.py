"""Tests for the caption writer and its chat-completion client."""

import json
from unittest.mock import AsyncMock

import httpx
import pytest

from genhub.config import Settings
from genhub.services import llm_client
from genhub.services.caption_writer import (
    CaptionRequest,
    build_prompt,
    extract_json,
    styled_visual_prompt,
    truncate_caption,
    write_caption,
)
from genhub.services.llm_client import LLMError, llm_call


@pytest.mark.unit
class TestCaptionHelpers:

    def test_length_budgets(self):
        assert CaptionRequest("x", length="short").max_chars == 120
        assert CaptionRequest("x").max_chars == 220
        assert CaptionRequest("x", length="long").hard_cap == 440
        assert CaptionRequest("x", length="epic").max_chars == 220

    def test_extract_json_slices_outer_object(self):
        text = 'Sure! ```json\n{"caption": "Hi", "visual_prompt": "sky"}\n``` hope that helps'
        assert extract_json(text) == {"caption": "Hi", "visual_prompt": "sky"}
        assert extract_json("no json here") == {}
        assert extract_json("{broken") == {}

    def test_truncate_prefers_word_boundary_near_the_end(self):
        caption = "word " * 60
        cut = truncate_caption(caption, 132)
        assert cut.endswith("…")
        assert len(cut) <= 133
        assert not cut[:-1].endswith(" ")

    def test_truncate_leaves_short_captions(self):
        assert truncate_caption("short", 132) == "short"

    def test_prompt_mentions_flags_and_budget(self):
        prompt = build_prompt(CaptionRequest("Bake sale", emojis=True, category="Food", subcategory="Bakery"))
        assert "ON (use 1-3 emojis total)" in prompt
        assert "OFF (no hashtags)" in prompt
        assert "Food / Bakery" in prompt
        assert "hard cap: 242" in prompt

    def test_styled_visual_prompt(self):
        assert "Photorealistic" in styled_visual_prompt("cafe", "realistic", "1:1")
        assert "Let AI choose" in styled_visual_prompt("cafe", "auto", "9:16")


@pytest.mark.asyncio
async def test_write_caption_uses_llm_json():
    llm = AsyncMock(return_value='{"caption": "Fresh bread daily! Visit us.", "visual_prompt": "warm bakery"}')

    result = await write_caption(CaptionRequest("Bake sale"), llm=llm)

    assert result.gpt_used is True
    assert result.caption == "Fresh bread daily! Visit us."
    assert result.visual_prompt == "warm bakery"
    assert llm.await_args.kwargs["caller"] == "caption"


@pytest.mark.asyncio
async def test_write_caption_truncates_long_reply():
    long_caption = "Great deals " * 40
    llm = AsyncMock(return_value=json.dumps({"caption": long_caption, "visual_prompt": "shop"}))

    result = await write_caption(CaptionRequest("Sale", length="short"), llm=llm)

    assert result.caption.endswith("…")
    assert len(result.caption) <= 133


@pytest.mark.asyncio
async def test_write_caption_falls_back_on_llm_error():
    llm = AsyncMock(side_effect=LLMError("HTTP 503", status_code=503, retriable=True))

    result = await write_caption(CaptionRequest("Bake sale", cta="Order now", ratio="9:16"), llm=llm)

    assert result.gpt_used is False
    assert "Bake sale" in result.caption
    assert "Order now" in result.caption
    assert result.visual_prompt.endswith("AR 9:16.")


@pytest.mark.asyncio
async def test_write_caption_falls_back_on_incomplete_json():
    llm = AsyncMock(return_value='{"caption": "only a caption"}')

    result = await write_caption(CaptionRequest("Bake sale"), llm=llm)

    assert result.gpt_used is False


def _settings(**overrides):
    values = {"LLM_API_KEY": "sk-test", "LLM_BASE_URL": "https://llm.test/v1", "LLM_MAX_RETRIES": 2}
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.mark.asyncio
async def test_llm_call_returns_content():
    def handler(request):
        body = json.loads(request.content)
        assert request.url.path == "/v1/chat/completions"
        assert body["model"] == "gpt-4o-mini"
        assert body["messages"][-1] == {"role": "user", "content": "hi"}
        return httpx.Response(200, json={"choices": [{"message": {"content": "hello"}}]})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
        assert await llm_call("hi", settings=_settings(), http_client=http) == "hello"


@pytest.mark.asyncio
async def test_llm_call_retries_retriable_status(monkeypatch):
    monkeypatch.setattr(llm_client.asyncio, "sleep", AsyncMock())
    responses = iter([
        httpx.Response(503),
        httpx.Response(200, json={"choices": [{"message": {"content": "ok"}}]}),
    ])

    async with httpx.AsyncClient(transport=httpx.MockTransport(lambda r: next(responses))) as http:
        assert await llm_call("hi", settings=_settings(), http_client=http) == "ok"


@pytest.mark.asyncio
async def test_llm_call_non_retriable_raises():
    async with httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(401))) as http:
        with pytest.raises(LLMError) as excinfo:
            await llm_call("hi", settings=_settings(), http_client=http)
    assert excinfo.value.status_code == 401
    assert not excinfo.value.retriable


@pytest.mark.asyncio
async def test_llm_call_without_key():
    with pytest.raises(LLMError, match="not configured"):
        await llm_call("hi", settings=_settings(LLM_API_KEY=""))
