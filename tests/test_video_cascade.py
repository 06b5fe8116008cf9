"""Tests for the video degradation cascade and image payload repair."""

import pytest
from conftest import FakeJobClient

from genhub.config import ProviderConfig
from genhub.models.generation import Action, ArtifactKind, GenerationRequest
from genhub.services.errors import ConfigurationError, InvalidInputError, TransportError
from genhub.services.fallback_chain import FallbackChain
from genhub.services.model_catalog import ModelCatalog
from genhub.services.video_cascade import (
    DEFAULT_I2V_PROMPT,
    VideoCascade,
    normalize_image_payload,
    snap_duration,
    video_size,
)

T2V_SLUG = "wan-video/wan-2.5-t2v"


def _cascade(client, config, budget):
    chain = FallbackChain(client, budget)
    return VideoCascade(ModelCatalog(config), chain, chain)


def _t2v(**overrides):
    fields = {"action": Action.TEXT2VIDEO, "prompt": "sunrise over dunes", "aspect_ratio": "9:16"}
    fields.update(overrides)
    return GenerationRequest(**fields)


@pytest.mark.unit
class TestNormalizeImagePayload:

    def test_urls_and_proper_data_urls_pass_through(self):
        assert normalize_image_payload("https://img/a.png") == "https://img/a.png"
        assert normalize_image_payload("data:image/jpeg;base64,AAAA") == "data:image/jpeg;base64,AAAA"

    def test_missing_base64_marker_is_repaired(self):
        assert normalize_image_payload("data:image/png,aGVsbG8=") == "data:image/png;base64,aGVsbG8="

    def test_bare_base64_is_wrapped(self):
        assert normalize_image_payload("aGVsbG8=") == "data:image/png;base64,aGVsbG8="

    def test_undecodable_payload_is_rejected(self):
        with pytest.raises(InvalidInputError, match="Bad data URL"):
            normalize_image_payload("data:image/png,@@not base64@@")

    def test_empty_payload_is_rejected(self):
        with pytest.raises(InvalidInputError, match="Missing image_data_url"):
            normalize_image_payload("  ")


@pytest.mark.unit
def test_duration_and_size_helpers():
    assert [snap_duration(s) for s in (2, 5, 6, 8, 10, "x")] == [5, 5, 10, 10, 10, 5]
    assert video_size("9:16") == "1080*1920"
    assert video_size("16:9") == "1920*1080"
    assert video_size("4:5") == "1080*1080"


@pytest.mark.asyncio
async def test_video_success_reports_video(provider_config, fast_budget):
    client = FakeJobClient(config=provider_config)

    outcome = await _cascade(client, provider_config, fast_budget).text_to_video(_t2v(duration_seconds=8))

    assert outcome.kind is ArtifactKind.VIDEO
    assert outcome.video_url == f"https://cdn.test/{T2V_SLUG}.png"
    assert outcome.image_url is None
    assert outcome.seconds == 10
    model, payload = client.submitted[0]
    assert model == T2V_SLUG
    assert payload["size"] == "1080*1920"
    assert payload["duration"] == 10


@pytest.mark.asyncio
async def test_slug_failure_tries_pinned_video_version(provider_config, fast_budget):
    client = FakeJobClient({T2V_SLUG: TransportError("HTTP 404")}, config=provider_config)

    outcome = await _cascade(client, provider_config, fast_budget).text_to_video(_t2v())

    assert outcome.kind is ArtifactKind.VIDEO
    assert outcome.candidate == "VIDEO(version)"
    assert client.models_submitted == [T2V_SLUG, "video-ver"]


@pytest.mark.asyncio
async def test_video_failure_degrades_to_routed_still(provider_config, fast_budget):
    client = FakeJobClient({
        T2V_SLUG: TransportError("HTTP 500"),
        "video-ver": {"status": "failed", "error": "oom"},
    }, config=provider_config)

    outcome = await _cascade(client, provider_config, fast_budget).text_to_video(
        _t2v(style="cartoon3d"), idea="office opening",
    )

    assert outcome.kind is ArtifactKind.FALLBACK_IMAGE
    assert outcome.video_url is None
    assert outcome.image_url == "https://cdn.test/flux-ver.png"
    assert [a["model"] for a in outcome.attempts] == [f"{T2V_SLUG}(slug)", "VIDEO(version)", "FLUX(version)"]
    still_prompt = client.submitted[-1][1]["prompt"]
    assert "Single still frame" in still_prompt


@pytest.mark.asyncio
async def test_forced_video_never_degrades(provider_config, fast_budget):
    client = FakeJobClient({
        T2V_SLUG: TransportError("HTTP 500"),
        "video-ver": TransportError("HTTP 500"),
    }, config=provider_config)

    outcome = await _cascade(client, provider_config, fast_budget).text_to_video(_t2v(), allow_still=False)

    assert outcome.kind is ArtifactKind.NONE
    assert outcome.url is None
    assert client.models_submitted == [T2V_SLUG, "video-ver"]


@pytest.mark.asyncio
async def test_nothing_configured_is_none(fast_budget):
    config = ProviderConfig(api_token="t")
    client = FakeJobClient(config=config)

    outcome = await _cascade(client, config, fast_budget).text_to_video(_t2v())

    assert outcome.kind is ArtifactKind.NONE
    assert client.submitted == []


@pytest.mark.asyncio
async def test_request_slug_override(provider_config, fast_budget):
    client = FakeJobClient(config=provider_config)

    await _cascade(client, provider_config, fast_budget).text_to_video(_t2v(video_slug="kwaivgi/kling-v2"))

    assert client.models_submitted == ["kwaivgi/kling-v2"]


@pytest.mark.asyncio
async def test_image_to_video_normalizes_and_defaults_prompt(provider_config, fast_budget):
    client = FakeJobClient(config=provider_config)
    request = GenerationRequest(action=Action.IMAGE2VIDEO, image="aGVsbG8=", duration_seconds=2)

    outcome = await _cascade(client, provider_config, fast_budget).image_to_video(request)

    assert outcome.kind is ArtifactKind.VIDEO
    assert outcome.seconds == 5
    _, payload = client.submitted[0]
    assert payload["image"] == "data:image/png;base64,aGVsbG8="
    assert payload["prompt"] == DEFAULT_I2V_PROMPT
    assert payload["resolution"] == "720p"


@pytest.mark.asyncio
async def test_image_to_video_bad_image_submits_nothing(provider_config, fast_budget):
    client = FakeJobClient(config=provider_config)
    request = GenerationRequest(action=Action.IMAGE2VIDEO, image="data:image/png,%%%")

    with pytest.raises(InvalidInputError):
        await _cascade(client, provider_config, fast_budget).image_to_video(request)

    assert client.submitted == []


@pytest.mark.asyncio
async def test_image_to_video_without_model_is_configuration_error(fast_budget):
    config = ProviderConfig(api_token="t")
    request = GenerationRequest(action=Action.IMAGE2VIDEO, image="https://img/a.png")

    with pytest.raises(ConfigurationError, match="No I2V model"):
        await _cascade(FakeJobClient(config=config), config, fast_budget).image_to_video(request)
