"""Application service layer for the prompt-to-vector pipeline."""
from __future__ import annotations

import asyncio
import logging

from svgforge.core.config import GenerationDefaults
from svgforge.core.errors import StorageError
from svgforge.core.progress import Clock, describe_activity
from svgforge.domain import GalleryItemType, GeneratedImage, Job, JobStage, VectorResult
from svgforge.infrastructure import EndpointKind, GalleryStore, InMemoryKeyValueStore, JobSubmitter
from svgforge.workers.jobs import (
    NO_IMAGES_MESSAGE,
    NO_VECTOR_MESSAGE,
    JobController,
    parse_generation_result,
    parse_vectorization_result,
)

logger = logging.getLogger(__name__)

MAX_PROMPT_LENGTH = 1000


def accept_prompt(prompt: str) -> str | None:
    """Return the trimmed prompt if it may be submitted, else ``None``."""

    trimmed = prompt.strip()
    if not trimmed or len(trimmed) > MAX_PROMPT_LENGTH:
        return None
    return trimmed


class PipelineCoordinator:
    """Sequences image generation and vector conversion for one session."""

    def __init__(
        self,
        gallery: GalleryStore,
        *,
        submitter: JobSubmitter | None = None,
        defaults: GenerationDefaults | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._gallery = gallery
        self._defaults = defaults or GenerationDefaults()
        self._prompt = ""
        self._generation_prompt = ""
        self._generation = JobController(
            JobStage.GENERATION,
            EndpointKind.GENERATE,
            parse_generation_result,
            empty_result_message=NO_IMAGES_MESSAGE,
            submitter=submitter,
            clock=clock,
            on_success=self._save_generated_image,
        )
        self._conversion = JobController(
            JobStage.CONVERSION,
            EndpointKind.VECTORIZE,
            parse_vectorization_result,
            empty_result_message=NO_VECTOR_MESSAGE,
            submitter=submitter,
            clock=clock,
            on_success=self._save_vector,
        )

    # ------------------------------------------------------------------
    # state accessors
    # ------------------------------------------------------------------
    @property
    def gallery(self) -> GalleryStore:
        return self._gallery

    @property
    def prompt(self) -> str:
        return self._prompt

    @property
    def generation(self) -> Job:
        return self._generation.job

    @property
    def conversion(self) -> Job:
        return self._conversion.job

    @property
    def is_generating(self) -> bool:
        return self._generation.in_flight

    @property
    def is_converting(self) -> bool:
        return self._conversion.in_flight

    @property
    def generated_image(self) -> GeneratedImage | None:
        result = self._generation.job.result
        return result if isinstance(result, GeneratedImage) else None

    @property
    def vector_result(self) -> VectorResult | None:
        result = self._conversion.job.result
        return result if isinstance(result, VectorResult) else None

    # ------------------------------------------------------------------
    # user actions
    # ------------------------------------------------------------------
    def set_prompt(self, prompt: str) -> None:
        self._prompt = prompt
        if not (self.is_generating or self.is_converting):
            self._generation.clear_error()

    def generate(self) -> asyncio.Task[Job] | None:
        trimmed = accept_prompt(self._prompt)
        if trimmed is None or self.is_generating or self.is_converting:
            logger.debug("Generation not started")
            return None

        # a new image invalidates any earlier vectorisation
        self._conversion.clear_result()
        self._generation_prompt = trimmed
        return self._generation.submit(self._defaults.build_input(trimmed))

    def convert(self) -> asyncio.Task[Job] | None:
        image = self.generated_image
        if image is None or self.is_generating or self.is_converting:
            logger.debug("Conversion not started")
            return None
        return self._conversion.submit({"image_url": image.url})

    def clear_errors(self) -> None:
        self._generation.clear_error()
        self._conversion.clear_error()

    # ------------------------------------------------------------------
    # gallery persistence
    # ------------------------------------------------------------------
    def _save_generated_image(self, job: Job) -> None:
        if isinstance(job.result, GeneratedImage):
            self._save(GalleryItemType.IMAGE, job.result.url)

    def _save_vector(self, job: Job) -> None:
        if isinstance(job.result, VectorResult):
            self._save(GalleryItemType.VECTOR, job.result.url)

    def _save(self, item_type: GalleryItemType, url: str) -> None:
        try:
            self._gallery.save(item_type, url, self._generation_prompt)
        except StorageError:
            logger.exception("Error saving %s to gallery", item_type.value)

    # ------------------------------------------------------------------
    # reporting
    # ------------------------------------------------------------------
    def snapshot(self) -> dict[str, object]:
        generation = self._generation.job.to_dict()
        generation["activity"] = describe_activity(self._generation.job.logs, self.is_generating)
        conversion = self._conversion.job.to_dict()
        conversion["activity"] = describe_activity(self._conversion.job.logs, self.is_converting)
        return {
            "prompt": self._prompt,
            "is_generating": self.is_generating,
            "is_converting": self.is_converting,
            "generation": generation,
            "conversion": conversion,
        }


_coordinator: PipelineCoordinator | None = None


def get_pipeline_coordinator() -> PipelineCoordinator:
    """Return the process-wide pipeline session."""

    global _coordinator
    if _coordinator is None:
        _coordinator = PipelineCoordinator(GalleryStore(InMemoryKeyValueStore()))
    return _coordinator


def configure_pipeline_coordinator(coordinator: PipelineCoordinator) -> None:
    global _coordinator
    _coordinator = coordinator


def reset_pipeline_state() -> None:
    """Drop the current session (used in tests)."""

    global _coordinator
    _coordinator = None
