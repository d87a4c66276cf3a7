from __future__ import annotations

import asyncio
import sys
from datetime import datetime
from pathlib import Path
from typing import Any

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from svgforge.application import reset_pipeline_state
from svgforge.core.schema import CompletedUpdate, InProgressUpdate, QueuedUpdate, RemoteLog
from svgforge.infrastructure import EndpointKind, UnconfiguredJobSubmitter, configure_job_submitter


class FakeSubmitter:
    """Scripted stand-in for the remote queue.

    Each endpoint kind gets a list of queue events and an outcome; the
    outcome is returned as the job payload, or raised when it is an
    exception. With ``hold=True`` a job waits on :meth:`release` after
    delivering its events, so tests can inspect mid-flight state.
    """

    def __init__(self, *, hold: bool = False) -> None:
        self.calls: list[tuple[EndpointKind, dict[str, Any]]] = []
        self._scripts: dict[EndpointKind, tuple[list[Any], Any]] = {}
        self._hold = hold
        self._gate: asyncio.Event | None = None
        self._delivered: asyncio.Event | None = None

    def script(self, kind: EndpointKind, events: list[Any], outcome: Any) -> None:
        self._scripts[kind] = (events, outcome)

    def _events(self) -> tuple[asyncio.Event, asyncio.Event]:
        if self._gate is None or self._delivered is None:
            self._gate = asyncio.Event()
            self._delivered = asyncio.Event()
        return self._gate, self._delivered

    async def delivered(self) -> None:
        _, delivered = self._events()
        await delivered.wait()

    def release(self) -> None:
        gate, _ = self._events()
        gate.set()

    def hold_again(self) -> None:
        gate, delivered = self._events()
        gate.clear()
        delivered.clear()

    async def submit_job(self, endpoint_kind, payload, on_update=None):
        self.calls.append((endpoint_kind, payload))
        events, outcome = self._scripts[endpoint_kind]
        gate, delivered = self._events()
        for event in events:
            await asyncio.sleep(0)
            if on_update is not None:
                on_update(event)
        delivered.set()
        if self._hold:
            await gate.wait()
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


IMAGE_PAYLOAD = {
    "images": [
        {
            "url": "https://v3.fal.media/files/cat/sleeping.jpeg",
            "width": 1024,
            "height": 576,
            "content_type": "image/jpeg",
        }
    ],
    "seed": 42,
    "prompt": "a cat sleeping in this style",
}

VECTOR_PAYLOAD = {
    "image": {
        "url": "https://v3.fal.media/files/cat/sleeping.svg",
        "content_type": "image/svg+xml",
    }
}

STANDARD_EVENTS = [
    QueuedUpdate(queue_position=2),
    QueuedUpdate(queue_position=0),
    InProgressUpdate(logs=[RemoteLog(level="INFO", message="Loading model")]),
    CompletedUpdate(),
]


def fixed_clock() -> datetime:
    return datetime(2026, 3, 14, 9, 26, 53)


@pytest.fixture(autouse=True)
def reset_state():
    reset_pipeline_state()
    configure_job_submitter(UnconfiguredJobSubmitter())
    yield
    reset_pipeline_state()
    configure_job_submitter(UnconfiguredJobSubmitter())


@pytest.fixture()
def submitter() -> FakeSubmitter:
    fake = FakeSubmitter()
    fake.script(EndpointKind.GENERATE, list(STANDARD_EVENTS), IMAGE_PAYLOAD)
    fake.script(EndpointKind.VECTORIZE, list(STANDARD_EVENTS), VECTOR_PAYLOAD)
    return fake


@pytest.fixture()
def held_submitter() -> FakeSubmitter:
    fake = FakeSubmitter(hold=True)
    fake.script(EndpointKind.GENERATE, list(STANDARD_EVENTS), IMAGE_PAYLOAD)
    fake.script(EndpointKind.VECTORIZE, list(STANDARD_EVENTS), VECTOR_PAYLOAD)
    return fake
