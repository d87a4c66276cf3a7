"""Domain layer definitions."""

from .models import (
    ACTIVE_STATUSES,
    ErrorKind,
    ErrorState,
    GalleryItemType,
    GeneratedImage,
    Job,
    JobStage,
    JobStatus,
    VectorResult,
)

__all__ = [
    "ACTIVE_STATUSES",
    "ErrorKind",
    "ErrorState",
    "GalleryItemType",
    "GeneratedImage",
    "Job",
    "JobStage",
    "JobStatus",
    "VectorResult",
]
