"""Integration with the fal.ai queue API."""
from __future__ import annotations

import asyncio
import logging
from typing import Any
from urllib.parse import urlparse

import httpx
from pydantic import ValidationError

from svgforge.core.errors import NETWORK_ERROR_CODE, RemoteServiceError
from svgforge.core.schema import CompletedUpdate, InProgressUpdate, queue_update_adapter

from .remote import EndpointKind, UpdateCallback

logger = logging.getLogger(__name__)


class FalQueueClient:
    """Submits jobs to the fal.ai queue and polls them to completion."""

    def __init__(
        self,
        api_key: str,
        *,
        queue_url: str = "https://queue.fal.run",
        models: dict[EndpointKind, str] | None = None,
        poll_interval: float = 1.0,
        timeout: float = 30.0,
        job_deadline: float = 600.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        parsed = urlparse(queue_url)
        if not parsed.scheme or not parsed.netloc:
            raise ValueError("queue_url must include scheme and host")

        self._queue_url = queue_url.rstrip("/")
        self._models = models or {
            EndpointKind.GENERATE: "fal-ai/flux-pro/kontext",
            EndpointKind.VECTORIZE: "fal-ai/recraft/vectorize",
        }
        self._poll_interval = poll_interval
        self._job_deadline = job_deadline
        self._headers = {"Authorization": f"Key {api_key}"}
        self._client = http_client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = http_client is None

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _detail(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text.strip()
        if isinstance(body, dict):
            detail = body.get("detail") or body.get("message") or body.get("error")
            if isinstance(detail, list):
                return "; ".join(str(item.get("msg", item)) if isinstance(item, dict) else str(item) for item in detail)
            if detail:
                return str(detail)
        return response.text.strip()

    def _raise_for_status(self, response: httpx.Response) -> None:
        if response.is_success:
            return
        code = response.status_code
        detail = self._detail(response)
        if code == 429:
            raise RemoteServiceError(f"rate limit exceeded: {detail}", status=code)
        if code in (400, 422):
            raise RemoteServiceError(f"validation failed: {detail}", status=400)
        raise RemoteServiceError(detail or f"remote service returned HTTP {code}", status=code)

    async def _request(self, method: str, url: str, **kwargs: Any) -> dict[str, Any]:
        try:
            response = await self._client.request(method, url, headers=self._headers, **kwargs)
        except httpx.TransportError as exc:
            raise RemoteServiceError(f"network error: {exc}", code=NETWORK_ERROR_CODE) from exc
        self._raise_for_status(response)
        try:
            body = response.json()
        except ValueError as exc:
            raise RemoteServiceError("remote service returned a non-JSON body") from exc
        if not isinstance(body, dict):
            raise RemoteServiceError("remote service returned an unexpected body")
        return body

    def _model_url(self, endpoint_kind: EndpointKind) -> str:
        try:
            model = self._models[endpoint_kind]
        except KeyError:
            raise RemoteServiceError(f"no model configured for {endpoint_kind.value}") from None
        return f"{self._queue_url}/{model}"

    # ------------------------------------------------------------------
    # public API
    # ------------------------------------------------------------------
    async def submit_job(
        self,
        endpoint_kind: EndpointKind,
        payload: dict[str, Any],
        on_update: UpdateCallback | None = None,
    ) -> dict[str, Any]:
        model_url = self._model_url(endpoint_kind)
        submission = await self._request("POST", model_url, json=payload)
        request_id = submission.get("request_id")
        status_url = submission.get("status_url") or f"{model_url}/requests/{request_id}/status"
        response_url = submission.get("response_url") or f"{model_url}/requests/{request_id}"
        logger.info("Submitted %s job %s", endpoint_kind.value, request_id)

        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._job_deadline
        seen_logs = 0

        while True:
            status = await self._request("GET", status_url, params={"logs": 1})
            try:
                update = queue_update_adapter.validate_python(status)
            except ValidationError:
                logger.debug("Ignoring unrecognised queue status %r", status.get("status"))
                update = None

            if update is not None:
                if isinstance(update, (InProgressUpdate, CompletedUpdate)) and update.logs:
                    fresh = update.logs[seen_logs:]
                    seen_logs = len(update.logs)
                    update = update.model_copy(update={"logs": fresh})
                if on_update is not None:
                    on_update(update)
                if isinstance(update, CompletedUpdate):
                    break

            if loop.time() >= deadline:
                raise RemoteServiceError(
                    f"remote job {request_id} did not finish within {self._job_deadline:g} seconds"
                )
            await asyncio.sleep(self._poll_interval)

        result = await self._request("GET", response_url)
        logger.info("Completed %s job %s", endpoint_kind.value, request_id)
        return result

    async def aclose(self) -> None:  # pragma: no cover - best effort cleanup
        if self._owns_client:
            await self._client.aclose()


__all__ = ["FalQueueClient"]
