"""Domain model package."""

from genhub.models.generation import (
    Action,
    ArtifactKind,
    BatchResult,
    BatchTask,
    GenerationContext,
    GenerationRequest,
    TaskOutcome,
)

__all__ = [
    "Action",
    "ArtifactKind",
    "BatchResult",
    "BatchTask",
    "GenerationContext",
    "GenerationRequest",
    "TaskOutcome",
]
