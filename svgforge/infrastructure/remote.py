"""Job submission hooks for the remote generative service.

The pipeline only needs a "submit job, stream updates, await result"
capability. This module defines that contract and the default used when
no provider is configured; :mod:`svgforge.infrastructure.fal` provides
the real implementation, installed with :func:`configure_job_submitter`
during application start-up.
"""
from __future__ import annotations

from collections.abc import Callable
from enum import Enum
from typing import Any, Protocol

from svgforge.core.errors import RemoteServiceError
from svgforge.core.schema import QueueUpdate


class EndpointKind(str, Enum):
    GENERATE = "generate"
    VECTORIZE = "vectorize"


UpdateCallback = Callable[[QueueUpdate], None]


class JobSubmitter(Protocol):
    """Contract for remote job integrations."""

    async def submit_job(
        self,
        endpoint_kind: EndpointKind,
        payload: dict[str, Any],
        on_update: UpdateCallback | None = None,
    ) -> dict[str, Any]:
        """Run a job to completion and return its result payload."""


class UnconfiguredJobSubmitter:
    """Fallback submitter used when no remote service is configured."""

    async def submit_job(
        self,
        endpoint_kind: EndpointKind,
        payload: dict[str, Any],
        on_update: UpdateCallback | None = None,
    ) -> dict[str, Any]:
        raise RemoteServiceError(f"remote job service is not configured ({endpoint_kind.value})")


_submitter: JobSubmitter = UnconfiguredJobSubmitter()


def configure_job_submitter(submitter: JobSubmitter) -> None:
    """Install the submitter used by the pipeline."""

    global _submitter
    _submitter = submitter


def get_job_submitter() -> JobSubmitter:
    """Return the currently configured submitter."""

    return _submitter
