"""Application services."""

from .pipeline import (
    MAX_PROMPT_LENGTH,
    PipelineCoordinator,
    accept_prompt,
    configure_pipeline_coordinator,
    get_pipeline_coordinator,
    reset_pipeline_state,
)

__all__ = [
    "MAX_PROMPT_LENGTH",
    "PipelineCoordinator",
    "accept_prompt",
    "configure_pipeline_coordinator",
    "get_pipeline_coordinator",
    "reset_pipeline_state",
]
