from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from pydantic import ValidationError

from svgforge.core.errors import RemoteServiceError, classify
from svgforge.core.progress import Clock, ProgressAggregator, batch_phase
from svgforge.core.schema import GenerationResponse, VectorizationResponse
from svgforge.domain import (
    ErrorState,
    GeneratedImage,
    Job,
    JobStage,
    JobStatus,
    VectorResult,
)
from svgforge.infrastructure.remote import EndpointKind, JobSubmitter, get_job_submitter

logger = logging.getLogger(__name__)

JobResult = GeneratedImage | VectorResult
ResultParser = Callable[[dict[str, Any]], JobResult | None]
SuccessHook = Callable[[Job], None]

NO_IMAGES_MESSAGE = "No images were generated. Please try again."
NO_VECTOR_MESSAGE = "SVG conversion failed. Please try again."
CANCELLED_MESSAGE = "The request was cancelled. Please try again."


def parse_generation_result(data: dict[str, Any]) -> GeneratedImage | None:
    try:
        response = GenerationResponse.model_validate(data)
    except ValidationError:
        return None
    if not response.images:
        return None
    image = response.images[0]
    return GeneratedImage(
        url=image.url,
        width=image.width,
        height=image.height,
        content_type=image.content_type,
    )


def parse_vectorization_result(data: dict[str, Any]) -> VectorResult | None:
    try:
        response = VectorizationResponse.model_validate(data)
    except ValidationError:
        return None
    if response.image is None:
        return None
    return VectorResult(url=response.image.url, content_type=response.image.content_type)


class JobController:
    """Runs one pipeline stage through ``idle -> queued -> processing -> done``.

    ``submit`` does all of its bookkeeping before the first ``await`` so a
    second trigger issued immediately afterwards is ignored. The in-flight
    flag is tracked separately from ``status`` and is cleared whenever the
    job reaches a terminal state.
    """

    def __init__(
        self,
        stage: JobStage,
        endpoint_kind: EndpointKind,
        parse_result: ResultParser,
        *,
        empty_result_message: str,
        submitter: JobSubmitter | None = None,
        clock: Clock | None = None,
        on_success: SuccessHook | None = None,
    ) -> None:
        self._job = Job(stage=stage)
        self._endpoint_kind = endpoint_kind
        self._parse_result = parse_result
        self._empty_result_message = empty_result_message
        self._submitter = submitter
        self._clock = clock
        self._on_success = on_success
        self._in_flight = False
        self._task: asyncio.Task[Job] | None = None

    @property
    def job(self) -> Job:
        return self._job

    @property
    def in_flight(self) -> bool:
        return self._in_flight or self._job.is_active

    @property
    def task(self) -> asyncio.Task[Job] | None:
        return self._task

    # ------------------------------------------------------------------
    # state transitions
    # ------------------------------------------------------------------
    def submit(self, payload: dict[str, Any]) -> asyncio.Task[Job] | None:
        """Start a run, or return ``None`` if one is already in flight."""

        if self.in_flight:
            logger.debug("Ignoring %s submission: stage already in flight", self._job.stage.value)
            return None

        loop = asyncio.get_running_loop()

        self._job.logs = []
        self._job.result = None
        self._job.error = None
        self._job.status = JobStatus.QUEUED
        self._in_flight = True
        logger.info("%s job queued", self._job.stage.value)

        aggregator = ProgressAggregator(clock=self._clock)
        aggregator.subscribe(self._apply_logs)
        self._task = loop.create_task(self._execute(payload, aggregator))
        return self._task

    def _apply_logs(self, batch: list[str]) -> None:
        self._job.logs.extend(batch)
        if self._job.status is JobStatus.QUEUED and batch_phase(batch) is JobStatus.PROCESSING:
            self._job.status = JobStatus.PROCESSING
            logger.info("%s job processing", self._job.stage.value)

    async def _execute(self, payload: dict[str, Any], aggregator: ProgressAggregator) -> Job:
        submitter = self._submitter or get_job_submitter()
        try:
            data = await submitter.submit_job(self._endpoint_kind, payload, on_update=aggregator.on_update)
            result = self._parse_result(data) if isinstance(data, dict) else None
            if result is None:
                raise RemoteServiceError(self._empty_result_message)
        except asyncio.CancelledError:
            self._fail(classify(RemoteServiceError(CANCELLED_MESSAGE)))
            raise
        except Exception as exc:  # every remote failure path ends in classification
            self._fail(classify(exc))
        else:
            self._complete(result)
        return self._job

    def _complete(self, result: JobResult) -> None:
        self._job.result = result
        self._job.error = None
        self._job.status = JobStatus.COMPLETED
        self._in_flight = False
        logger.info("%s job completed: %s", self._job.stage.value, result.url)

        if self._on_success is None:
            return
        try:
            self._on_success(self._job)
        except Exception:
            logger.exception("Post-completion hook failed for %s job", self._job.stage.value)

    def _fail(self, error: ErrorState) -> None:
        self._job.result = None
        self._job.error = error
        self._job.status = JobStatus.FAILED
        self._in_flight = False
        logger.warning("%s job failed (%s): %s", self._job.stage.value, error.kind.value, error.message)

    # ------------------------------------------------------------------
    # coordinator helpers
    # ------------------------------------------------------------------
    def clear_result(self) -> None:
        """Drop a terminal outcome and return to ``idle``."""

        if self.in_flight:
            return
        self._job.result = None
        self._job.error = None
        self._job.status = JobStatus.IDLE

    def clear_error(self) -> None:
        if self._job.status is JobStatus.FAILED:
            self._job.error = None
            self._job.status = JobStatus.IDLE
