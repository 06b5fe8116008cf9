"""Tests for the Replicate JobClient, driven through httpx.MockTransport."""

import json

import httpx
import pytest

from genhub.config import ProviderConfig
from genhub.models.generation import GenerationContext
from genhub.services.errors import (
    ChainExhaustedError,
    ConfigurationError,
    InvalidInputError,
    TransportError,
)
from genhub.services.fallback_chain import FallbackChain, ModelCandidate
from genhub.services.poller import PollBudget
from genhub.services.providers.replicate import JobClient, JobHandle, JobStatus

API = "https://api.test/v1"


def _client(handler, token="r8_secret_token_123456"):
    config = ProviderConfig(api_token=token, api_base=API)
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return JobClient(config, http_client=http), http


@pytest.mark.asyncio
async def test_submit_by_version_posts_version_and_input():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(201, json={"id": "p1", "urls": {"get": f"{API}/predictions/p1"}})

    client, http = _client(handler)
    try:
        handle = await client.submit_by_version("abc123", {"prompt": "cat"})
    finally:
        await http.aclose()

    assert seen["url"] == f"{API}/predictions"
    assert seen["auth"] == "Bearer r8_secret_token_123456"
    assert seen["body"] == {"version": "abc123", "input": {"prompt": "cat"}}
    assert handle == JobHandle(id="p1", get_url=f"{API}/predictions/p1", model="abc123")


@pytest.mark.asyncio
async def test_submit_by_slug_uses_model_endpoint_and_builds_get_url():
    def handler(request):
        assert request.url.path == "/v1/models/owner/model/predictions"
        assert json.loads(request.content) == {"input": {"image": "x"}}
        return httpx.Response(201, json={"id": "p2"})

    client, http = _client(handler)
    try:
        handle = await client.submit_by_slug("owner/model", {"image": "x"})
    finally:
        await http.aclose()

    assert handle.get_url == f"{API}/predictions/p2"
    assert handle.model == "owner/model"


@pytest.mark.asyncio
async def test_missing_token_fails_before_any_request():
    def handler(request):
        raise AssertionError("no request expected")

    client, http = _client(handler, token="")
    try:
        with pytest.raises(ConfigurationError, match="REPLICATE_API_TOKEN"):
            await client.submit_by_slug("owner/model", {})
        with pytest.raises(ConfigurationError):
            client.require_credentials()
    finally:
        await http.aclose()


@pytest.mark.asyncio
async def test_missing_version_is_configuration_error():
    client, http = _client(lambda r: httpx.Response(500))
    try:
        with pytest.raises(ConfigurationError):
            await client.submit_by_version("", {})
    finally:
        await http.aclose()


@pytest.mark.asyncio
async def test_error_status_raises_transport_error_with_body():
    client, http = _client(lambda r: httpx.Response(422, text="invalid input: prompt"))
    try:
        with pytest.raises(TransportError) as excinfo:
            await client.submit_by_slug("owner/model", {})
    finally:
        await http.aclose()

    assert excinfo.value.status_code == 422
    assert "invalid input" in excinfo.value.body
    assert "r8_secret" not in str(excinfo.value)


@pytest.mark.asyncio
async def test_network_failure_is_transport_error():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    client, http = _client(handler)
    try:
        with pytest.raises(TransportError):
            await client.submit_by_slug("owner/model", {})
    finally:
        await http.aclose()


@pytest.mark.asyncio
async def test_fetch_status_maps_provider_states():
    states = iter(["starting", "processing", "cancelled"])

    def handler(request):
        return httpx.Response(200, json={"id": "p1", "status": next(states)})

    client, http = _client(handler)
    handle = JobHandle(id="p1", get_url=f"{API}/predictions/p1", model="m")
    try:
        first = await client.fetch_status(handle)
        second = await client.fetch_status(handle)
        third = await client.fetch_status(handle)
    finally:
        await http.aclose()

    assert first.status is JobStatus.QUEUED
    assert second.status is JobStatus.PROCESSING
    assert third.status is JobStatus.CANCELED
    assert third.status.terminal


@pytest.mark.asyncio
async def test_fetch_as_data_url_inlines_content():
    def handler(request):
        return httpx.Response(200, content=b"png-bytes", headers={"content-type": "image/png"})

    client, http = _client(handler)
    try:
        data_url = await client.fetch_as_data_url("https://img.test/a.png")
    finally:
        await http.aclose()

    assert data_url == "data:image/png;base64,cG5nLWJ5dGVz"


@pytest.mark.asyncio
async def test_fetch_as_data_url_failure_is_invalid_input():
    client, http = _client(lambda r: httpx.Response(404, text="nope"))
    try:
        with pytest.raises(InvalidInputError, match="fetch"):
            await client.fetch_as_data_url("https://img.test/missing.png")
    finally:
        await http.aclose()


@pytest.mark.asyncio
async def test_own_client_is_closed():
    client = JobClient(ProviderConfig(api_token="t"))
    await client.aclose()
    assert client._client.is_closed


@pytest.mark.asyncio
async def test_non_object_status_payload_is_transport_error():
    client, http = _client(lambda r: httpx.Response(200, json=["not", "an", "object"]))
    handle = JobHandle(id="p1", get_url=f"{API}/predictions/p1", model="m")
    try:
        with pytest.raises(TransportError, match="Unexpected provider payload") as excinfo:
            await client.fetch_status(handle)
    finally:
        await http.aclose()

    assert excinfo.value.status_code == 200


@pytest.mark.asyncio
async def test_string_urls_on_submit_is_transport_error():
    client, http = _client(lambda r: httpx.Response(201, json={"id": "j1", "urls": "https://api.test/p/j1"}))
    try:
        with pytest.raises(TransportError, match="Unexpected provider payload"):
            await client.submit_by_slug("owner/model", {})
    finally:
        await http.aclose()


@pytest.mark.asyncio
async def test_malformed_payloads_are_logged_attempts_in_a_chain():
    def handler(request):
        if request.method == "POST" and "/models/list/model/" in request.url.path:
            return httpx.Response(201, json={"id": "j0"})
        if request.method == "POST":
            return httpx.Response(201, json={"id": "j1", "urls": "https://api.test/p/j1"})
        return httpx.Response(200, json=["not", "an", "object"])

    def build(ctx):
        return {"prompt": ctx.prompt}

    client, http = _client(handler)
    chain = FallbackChain(client, PollBudget(interval=0, max_tries=1))
    candidates = [
        ModelCandidate("list/model", build, slug="list/model"),
        ModelCandidate("urls/model", build, slug="urls/model"),
    ]
    try:
        with pytest.raises(ChainExhaustedError) as excinfo:
            await chain.run(candidates, GenerationContext(prompt="cat"), action="text2img")
    finally:
        await http.aclose()

    assert [a["model"] for a in excinfo.value.attempts] == ["list/model", "urls/model"]
    assert all("Unexpected provider payload" in a["error"] for a in excinfo.value.attempts)
