"""Failure types and the classification policy for remote job errors.

Remote failures arrive as unstructured text and loosely defined codes.
:func:`classify` folds them into the four :class:`ErrorKind` values the
rest of the application branches on. Unknown failures default to a
retryable ``service`` error so a transient problem never locks a stage.
"""
from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from svgforge.domain import ErrorKind, ErrorState

NETWORK_ERROR_CODE = "NETWORK_ERROR"

RATE_LIMIT_MESSAGE = "Too many requests. Please wait a moment and try again."
NETWORK_MESSAGE = "Network connection error. Please check your connection and try again."
VALIDATION_MESSAGE = "Invalid input parameters. Please check your prompt and try again."
FALLBACK_MESSAGE = "An unexpected error occurred. Please try again."


class RemoteServiceError(RuntimeError):
    """Raised by job submitters when the remote service rejects or fails a job."""

    def __init__(self, message: str, *, code: str | None = None, status: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.status = status


class StorageError(RuntimeError):
    """Raised when the gallery's persistence medium rejects a write."""


def _lookup(raw: Any, *names: str) -> Any:
    for name in names:
        if isinstance(raw, Mapping):
            value = raw.get(name)
        else:
            value = getattr(raw, name, None)
        if value is not None:
            return value
    return None


def _extract_message(raw: Any) -> str:
    if raw is None:
        return ""
    if isinstance(raw, str):
        return raw
    message = _lookup(raw, "message")
    if isinstance(message, str):
        return message
    if isinstance(raw, BaseException):
        return str(raw)
    return ""


def _extract_status(raw: Any) -> int | None:
    if raw is None or isinstance(raw, str):
        return None
    value = _lookup(raw, "status", "status_code")
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def classify(raw: Any) -> ErrorState:
    """Map a raw failure to an :class:`ErrorState`. Never raises."""

    message = _extract_message(raw)
    lowered = message.lower()
    code = None if raw is None or isinstance(raw, str) else _lookup(raw, "code")
    status = _extract_status(raw)

    if "rate limit" in lowered:
        return ErrorState(kind=ErrorKind.RATE_LIMIT, message=RATE_LIMIT_MESSAGE, retryable=True)

    if "network" in lowered or code == NETWORK_ERROR_CODE:
        return ErrorState(kind=ErrorKind.NETWORK, message=NETWORK_MESSAGE, retryable=True)

    if "validation" in lowered or status == 400:
        return ErrorState(kind=ErrorKind.VALIDATION, message=VALIDATION_MESSAGE, retryable=False)

    return ErrorState(kind=ErrorKind.SERVICE, message=message or FALLBACK_MESSAGE, retryable=True)


__all__ = [
    "NETWORK_ERROR_CODE",
    "RemoteServiceError",
    "StorageError",
    "classify",
]
