"""Pytest configuration helpers.

Puts ``backend/`` on ``sys.path`` so tests can import the ``genhub`` package
regardless of how pytest is invoked, and provides a scripted stand-in for
the Replicate job client.
"""
import itertools
import os
import sys

import pytest


ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
BACKEND = os.path.join(ROOT, "backend")
if BACKEND not in sys.path:
    sys.path.insert(0, BACKEND)

from genhub.config import ProviderConfig  # noqa: E402
from genhub.services.errors import ConfigurationError  # noqa: E402
from genhub.services.poller import PollBudget  # noqa: E402
from genhub.services.providers.replicate import Job, JobHandle  # noqa: E402


class FakeJobClient:
    """Scripted JobClient.

    ``outcomes`` maps a model identity (version id or slug) to one of:
      - an Exception, raised on submit
      - a status payload dict, returned on every status read
      - a list of payload dicts, returned one per read (last one repeats)
    Identities with no script succeed at once with ``https://cdn.test/<model>.png``.
    """

    def __init__(self, outcomes=None, config=None):
        self.outcomes = outcomes or {}
        self.config = config or ProviderConfig(api_token="r8_test_token_value")
        self.submitted = []
        self.fetched = []
        self._ids = itertools.count(1)
        self._reads = {}

    def require_credentials(self):
        if not self.config.api_token:
            raise ConfigurationError("Missing REPLICATE_API_TOKEN")

    def _submit(self, model, payload):
        self.require_credentials()
        self.submitted.append((model, payload))
        outcome = self.outcomes.get(model)
        if isinstance(outcome, Exception):
            raise outcome
        job_id = f"job-{next(self._ids)}"
        return JobHandle(id=job_id, get_url=f"https://api.test/predictions/{job_id}", model=model)

    async def submit_by_version(self, version_id, input):
        if not version_id:
            raise ConfigurationError("Missing Replicate model version")
        return self._submit(version_id, input)

    async def submit_by_slug(self, slug, input):
        if not slug:
            raise ConfigurationError("Missing Replicate model slug")
        return self._submit(slug, input)

    async def fetch_status(self, handle):
        self.fetched.append(handle.id)
        outcome = self.outcomes.get(handle.model)
        if outcome is None:
            payload = {"status": "succeeded", "output": f"https://cdn.test/{handle.model}.png"}
        elif isinstance(outcome, list):
            read = self._reads.get(handle.id, 0)
            self._reads[handle.id] = read + 1
            payload = outcome[min(read, len(outcome) - 1)]
        else:
            payload = outcome
        return Job.from_payload({"id": handle.id, **payload})

    async def fetch_as_data_url(self, url):
        return "data:image/jpeg;base64,aW1hZ2U="

    @property
    def models_submitted(self):
        return [model for model, _ in self.submitted]


@pytest.fixture
def provider_config():
    return ProviderConfig(
        api_token="r8_test_token_value",
        flux_version="flux-ver",
        sdxl_version="sdxl-ver",
        video_version="video-ver",
        i2v_version="i2v-ver",
        video_slug="wan-video/wan-2.5-t2v",
        i2v_slug="wan-video/wan-2.5-i2v",
    )


@pytest.fixture
def fast_budget():
    return PollBudget(interval=0, max_tries=3)


@pytest.fixture
def fake_client(provider_config):
    return FakeJobClient(config=provider_config)
