#!/usr/bin/env python
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

from svgforge.application import PipelineCoordinator
from svgforge.core.config import load_settings
from svgforge.infrastructure import (
    EndpointKind,
    FalQueueClient,
    GalleryStore,
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
)


async def run(prompt: str, gallery_root: Path | None, skip_vector: bool) -> int:
    settings = load_settings()
    if not settings.fal_key:
        print("FAL_KEY is not set", file=sys.stderr)
        return 2

    client = FalQueueClient(
        settings.fal_key,
        queue_url=settings.queue_url,
        models={
            EndpointKind.GENERATE: settings.generate_model,
            EndpointKind.VECTORIZE: settings.vectorize_model,
        },
        poll_interval=settings.poll_interval,
        timeout=settings.request_timeout,
        job_deadline=settings.job_deadline,
    )
    root = gallery_root or settings.gallery_root
    medium = JsonFileKeyValueStore(root) if root else InMemoryKeyValueStore()
    coordinator = PipelineCoordinator(GalleryStore(medium), submitter=client, defaults=settings.generation)

    try:
        coordinator.set_prompt(prompt)
        task = coordinator.generate()
        if task is None:
            print("Prompt must be between 1 and 1000 characters", file=sys.stderr)
            return 2
        job = await task
        print("\n".join(job.logs))
        if job.error is not None:
            print(f"generation failed ({job.error.kind.value}): {job.error.message}", file=sys.stderr)
            return 1

        if not skip_vector:
            task = coordinator.convert()
            if task is not None:
                job = await task
                print("\n".join(job.logs))
                if job.error is not None:
                    print(f"conversion failed ({job.error.kind.value}): {job.error.message}", file=sys.stderr)
                    return 1
    finally:
        await client.aclose()

    snapshot = coordinator.snapshot()
    print(json.dumps({"generation": snapshot["generation"]["result"], "conversion": snapshot["conversion"]["result"]}, indent=2))
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Generate an image from a prompt and vectorise it")
    parser.add_argument("prompt", help="text prompt for the image")
    parser.add_argument("--gallery-root", type=Path, default=None, help="directory for the gallery history file")
    parser.add_argument("--skip-vector", action="store_true", help="stop after image generation")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    raise SystemExit(asyncio.run(run(args.prompt, args.gallery_root, args.skip_vector)))


if __name__ == "__main__":
    main()
