"""Aggregation of remote queue status events into a progress log.

The remote queue reports job progress as a stream of status events with
free-form log entries attached. :class:`ProgressAggregator` turns that
stream into timestamped, leveled text lines and publishes every batch to
its listeners.

Phase detection relies on the wording of the lines emitted here (see
:func:`detect_phase`). The remote log text is not a versioned contract,
so the marker check lives in one place and is unit tested.
"""
from __future__ import annotations

from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Any

from svgforge.core.schema import (
    CompletedUpdate,
    InProgressUpdate,
    QueuedUpdate,
    QueueUpdate,
    RemoteLog,
    queue_update_adapter,
)
from svgforge.domain import JobStatus

QUEUED_TEXT = "Request queued for processing"
QUEUE_POSITION_TEXT = "Queue position: {position}"
PROCESSING_STARTED_TEXT = "Processing started"
COMPLETED_TEXT = "Processing completed successfully"

PROCESSING_MARKER = "processing started"

LogListener = Callable[[list[str]], None]
Clock = Callable[[], datetime]


def _local_now() -> datetime:
    return datetime.now().astimezone()


def format_line(moment: datetime, level: str, message: str) -> str:
    return f"[{moment.strftime('%H:%M:%S')}] [{level.upper()}] {message}"


def detect_phase(line: str | None) -> JobStatus | None:
    """Return ``PROCESSING`` when ``line`` carries the processing marker."""

    if line and PROCESSING_MARKER in line.lower():
        return JobStatus.PROCESSING
    return None


def batch_phase(lines: list[str]) -> JobStatus | None:
    """Phase hint for one emitted batch.

    Remote log entries are appended after the marker line of the same
    event, so every line of the batch is checked, not only the last one.
    """

    for line in reversed(lines):
        phase = detect_phase(line)
        if phase is not None:
            return phase
    return None


def describe_activity(lines: list[str], active: bool) -> str:
    """Badge label for a progress panel, derived from its log lines."""

    if active:
        if any(PROCESSING_MARKER in line.lower() for line in lines):
            return "Processing"
        if any("queued" in line.lower() for line in lines):
            return "Queued"
        return "Initializing"
    if lines:
        last = lines[-1].lower()
        if "error" in last or "failed" in last:
            return "Failed"
        if "completed successfully" in last:
            return "Completed"
        return "Finished"
    return "Ready"


class ProgressAggregator:
    """Append-only log for a single remote job run."""

    def __init__(self, clock: Clock | None = None) -> None:
        self._clock = clock or _local_now
        self._lines: list[str] = []
        self._listeners: list[LogListener] = []

    @property
    def lines(self) -> list[str]:
        return list(self._lines)

    def subscribe(self, listener: LogListener) -> None:
        self._listeners.append(listener)

    def on_update(self, event: QueueUpdate | Mapping[str, Any]) -> list[str]:
        """Consume one status event and return the lines it produced."""

        if isinstance(event, Mapping):
            event = queue_update_adapter.validate_python(dict(event))

        now = self._clock()
        batch: list[str] = []
        if isinstance(event, QueuedUpdate):
            batch.append(format_line(now, "INFO", QUEUED_TEXT))
            if event.queue_position is not None:
                batch.append(format_line(now, "INFO", QUEUE_POSITION_TEXT.format(position=event.queue_position)))
        elif isinstance(event, InProgressUpdate):
            batch.append(format_line(now, "INFO", PROCESSING_STARTED_TEXT))
            batch.extend(self._remote_lines(event.logs or [], now))
        elif isinstance(event, CompletedUpdate):
            batch.append(format_line(now, "SUCCESS", COMPLETED_TEXT))

        if batch:
            self._lines.extend(batch)
            for listener in list(self._listeners):
                listener(list(batch))
        return batch

    @staticmethod
    def _remote_lines(logs: list[RemoteLog], now: datetime) -> list[str]:
        return [format_line(now, entry.level, entry.message) for entry in logs]
