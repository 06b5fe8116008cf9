from __future__ import annotations
"""Application configuration using Pydantic Settings."""

from dataclasses import dataclass
from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """genhub application settings.

    Loaded from environment variables or .env file.
    """

    # --- Application ---
    APP_NAME: str = "genhub"
    DEBUG: bool = False
    CORS_ORIGINS: str = "*"

    # --- Replicate (inference provider) ---
    REPLICATE_API_TOKEN: str = ""
    REPLICATE_API_BASE: str = "https://api.replicate.com/v1"

    # Pinned versions (opaque ids); empty means "not configured"
    REPLICATE_MODEL_VERSION_FLUX: str = ""
    REPLICATE_MODEL_VERSION_SDXL: str = ""
    REPLICATE_MODEL_VERSION_VIDEO: str = ""
    REPLICATE_MODEL_VERSION_I2V: str = ""

    # Named models (latest version implied)
    REPLICATE_MODEL_SLUG_VIDEO: str = ""
    REPLICATE_MODEL_SLUG_I2V_HD: str = ""
    FLUX_FALLBACK_SLUG: str = "black-forest-labs/flux-schnell"
    IMAGE_EDIT_SLUG: str = "black-forest-labs/flux-kontext-pro"

    # --- Polling budgets ---
    IMAGE_POLL_INTERVAL: float = 1.2
    IMAGE_POLL_TIMEOUT: float = 120.0
    VIDEO_POLL_INTERVAL: float = 1.5
    VIDEO_POLL_TRIES: int = 240

    # --- Timeouts / concurrency ---
    HTTP_TIMEOUT: float = 60.0
    REQUEST_TIMEOUT: float = 600.0
    BATCH_CONCURRENCY: int = 2

    # --- Caption LLM (OpenAI-compatible chat completions) ---
    LLM_BASE_URL: str = "https://api.openai.com/v1"
    LLM_API_KEY: str = ""
    CAPTION_MODEL: str = "gpt-4o-mini"
    LLM_TIMEOUT: int = 60
    LLM_MAX_RETRIES: int = 2

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


@dataclass(frozen=True)
class ProviderConfig:
    """Immutable provider credentials and model identities.

    Built once from Settings at startup and handed to the job client;
    nothing downstream reads the environment directly.
    """

    api_token: str
    api_base: str = "https://api.replicate.com/v1"
    flux_version: str = ""
    sdxl_version: str = ""
    video_version: str = ""
    i2v_version: str = ""
    video_slug: str = ""
    i2v_slug: str = ""
    flux_slug: str = "black-forest-labs/flux-schnell"
    edit_slug: str = "black-forest-labs/flux-kontext-pro"

    @classmethod
    def from_settings(cls, settings: Settings) -> ProviderConfig:
        return cls(
            api_token=settings.REPLICATE_API_TOKEN.strip(),
            api_base=settings.REPLICATE_API_BASE.rstrip("/"),
            flux_version=settings.REPLICATE_MODEL_VERSION_FLUX.strip(),
            sdxl_version=settings.REPLICATE_MODEL_VERSION_SDXL.strip(),
            video_version=settings.REPLICATE_MODEL_VERSION_VIDEO.strip(),
            i2v_version=settings.REPLICATE_MODEL_VERSION_I2V.strip(),
            video_slug=settings.REPLICATE_MODEL_SLUG_VIDEO.strip(),
            i2v_slug=settings.REPLICATE_MODEL_SLUG_I2V_HD.strip(),
            flux_slug=settings.FLUX_FALLBACK_SLUG.strip(),
            edit_slug=settings.IMAGE_EDIT_SLUG.strip(),
        )

    def env_summary(self) -> dict[str, bool]:
        """Which identities are configured. Never includes the token itself."""
        return {
            "api_token": bool(self.api_token),
            "flux_version": bool(self.flux_version),
            "sdxl_version": bool(self.sdxl_version),
            "video_version": bool(self.video_version),
            "i2v_version": bool(self.i2v_version),
            "video_slug": bool(self.video_slug),
            "i2v_slug": bool(self.i2v_slug),
        }


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings singleton."""
    return Settings()
