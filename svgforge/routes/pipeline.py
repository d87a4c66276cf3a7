from __future__ import annotations

import asyncio

from fastapi import APIRouter, HTTPException, Query

from svgforge.application import get_pipeline_coordinator
from svgforge.domain import Job

router = APIRouter(prefix="/pipeline", tags=["pipeline"])


async def _respond(task: asyncio.Task[Job] | None, wait: bool) -> dict:
    if task is not None and wait:
        await asyncio.shield(task)
    coordinator = get_pipeline_coordinator()
    return {"accepted": task is not None, "pipeline": coordinator.snapshot()}


@router.get("")
async def get_pipeline() -> dict:
    return get_pipeline_coordinator().snapshot()


@router.put("/prompt")
async def update_prompt(payload: dict) -> dict:
    prompt = payload.get("prompt")
    if not isinstance(prompt, str):
        raise HTTPException(status_code=400, detail="prompt must be a string")
    coordinator = get_pipeline_coordinator()
    coordinator.set_prompt(prompt)
    return coordinator.snapshot()


@router.post("/generate")
async def start_generation(wait: bool = Query(default=True)) -> dict:
    """Start image generation for the current prompt."""
    task = get_pipeline_coordinator().generate()
    return await _respond(task, wait)


@router.post("/convert")
async def start_conversion(wait: bool = Query(default=True)) -> dict:
    """Vectorise the most recently generated image."""
    task = get_pipeline_coordinator().convert()
    return await _respond(task, wait)


@router.post("/errors/clear")
async def clear_errors() -> dict:
    coordinator = get_pipeline_coordinator()
    coordinator.clear_errors()
    return coordinator.snapshot()
