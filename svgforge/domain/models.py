"""Domain entities for the prompt-to-vector pipeline."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class JobStage(str, Enum):
    GENERATION = "generation"
    CONVERSION = "conversion"


class JobStatus(str, Enum):
    IDLE = "idle"
    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


ACTIVE_STATUSES = frozenset({JobStatus.QUEUED, JobStatus.PROCESSING})


class ErrorKind(str, Enum):
    NETWORK = "network"
    VALIDATION = "validation"
    SERVICE = "service"
    RATE_LIMIT = "rate_limit"


class GalleryItemType(str, Enum):
    IMAGE = "image"
    VECTOR = "vector"


@dataclass(frozen=True, slots=True)
class ErrorState:
    """Classified remote failure. Callers branch on ``kind``/``retryable``."""

    kind: ErrorKind
    message: str
    retryable: bool


@dataclass(frozen=True, slots=True)
class GeneratedImage:
    url: str
    width: int
    height: int
    content_type: str


@dataclass(frozen=True, slots=True)
class VectorResult:
    url: str
    content_type: str


@dataclass(slots=True)
class Job:
    """Mutable record of one stage of the pipeline."""

    stage: JobStage
    status: JobStatus = JobStatus.IDLE
    logs: list[str] = field(default_factory=list)
    result: GeneratedImage | VectorResult | None = None
    error: ErrorState | None = None

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] | None = None
        if isinstance(self.result, GeneratedImage):
            result = {
                "url": self.result.url,
                "width": self.result.width,
                "height": self.result.height,
                "content_type": self.result.content_type,
            }
        elif isinstance(self.result, VectorResult):
            result = {"url": self.result.url, "content_type": self.result.content_type}

        error: dict[str, Any] | None = None
        if self.error is not None:
            error = {
                "kind": self.error.kind.value,
                "message": self.error.message,
                "retryable": self.error.retryable,
            }

        return {
            "stage": self.stage.value,
            "status": self.status.value,
            "logs": list(self.logs),
            "result": result,
            "error": error,
        }
