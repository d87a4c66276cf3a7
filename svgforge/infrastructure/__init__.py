"""Infrastructure layer exports."""

from .fal import FalQueueClient
from .gallery import (
    GALLERY_CAPACITY,
    GalleryStore,
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    KeyValueStore,
)
from .remote import (
    EndpointKind,
    JobSubmitter,
    UnconfiguredJobSubmitter,
    configure_job_submitter,
    get_job_submitter,
)

__all__ = [
    "EndpointKind",
    "FalQueueClient",
    "GALLERY_CAPACITY",
    "GalleryStore",
    "InMemoryKeyValueStore",
    "JobSubmitter",
    "JsonFileKeyValueStore",
    "KeyValueStore",
    "UnconfiguredJobSubmitter",
    "configure_job_submitter",
    "get_job_submitter",
]
