"""Wires one JobClient, the catalog and both chains into the request flows."""

from __future__ import annotations

import logging

import httpx

from genhub.config import ProviderConfig, Settings
from genhub.services.batch import BatchPlanner
from genhub.services.brand_post import BrandPostService
from genhub.services.fallback_chain import ChainMetrics, FallbackChain
from genhub.services.image_studio import ImageStudio
from genhub.services.model_catalog import ModelCatalog
from genhub.services.poller import PollBudget
from genhub.services.providers.replicate import JobClient
from genhub.services.reels import ReelsService
from genhub.services.video_cascade import VideoCascade

logger = logging.getLogger(__name__)


class GenerationHub:
    """Per-process service graph.

    Image and video chains share one ChainMetrics so the metrics endpoint
    sees every candidate attempt.
    """

    def __init__(
        self,
        settings: Settings,
        http_client: httpx.AsyncClient | None = None,
        config: ProviderConfig | None = None,
    ) -> None:
        self.settings = settings
        self.config = config or ProviderConfig.from_settings(settings)
        self.client = JobClient(self.config, http_client, timeout=settings.HTTP_TIMEOUT)
        self.catalog = ModelCatalog(self.config)
        self.metrics = ChainMetrics()

        self.image_chain = FallbackChain(self.client, PollBudget.for_images(settings), self.metrics)
        self.video_chain = FallbackChain(self.client, PollBudget.for_videos(settings), self.metrics)

        self.studio = ImageStudio(
            self.client,
            self.catalog,
            self.image_chain,
            BatchPlanner(),
            concurrency=settings.BATCH_CONCURRENCY,
        )
        self.cascade = VideoCascade(self.catalog, self.video_chain, self.image_chain)
        self.brand_posts = BrandPostService(self.catalog, self.image_chain)
        self.reels = ReelsService(self.catalog, self.cascade, self.image_chain)

        logger.info("GenerationHub ready: %s", self.config.env_summary())

    async def aclose(self) -> None:
        await self.client.aclose()
