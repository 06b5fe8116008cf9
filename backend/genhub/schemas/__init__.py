"""Pydantic v2 schemas package."""

from genhub.schemas.studio import (
    BrandPostRequest,
    CaptionOptions,
    ImageStudioRequest,
    ReelsRequest,
    VideoStudioRequest,
)

__all__ = [
    "BrandPostRequest",
    "CaptionOptions",
    "ImageStudioRequest",
    "ReelsRequest",
    "VideoStudioRequest",
]
