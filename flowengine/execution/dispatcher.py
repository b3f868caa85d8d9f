"""
Execution dispatch - transport to the remote task-execution backend.

The dispatcher never looks inside tasks. It serializes them, posts them,
waits at most ``timeout`` seconds, and hands back the backend's per-task
results.

Endpoints (relative to the configured base URL):
    POST /execute        flat JSON list of tasks
    POST /execute/graph  {"nodes": [task, ...]}

Responses may be ``{"results": [...]}`` or a bare list of results.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any

import httpx
from pydantic import ValidationError

from flowengine.errors import (
    BackendError,
    ExecutionClientError,
    ExecutionTimeoutError,
    TransportError,
)
from flowengine.schemas.task import RawTaskResult, TaskDescriptor
from flowengine.tasks.translator import graph_payload

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:8080/api"
DEFAULT_TIMEOUT_SECONDS = 60.0


class ExecutionClient:
    """HTTP client for the execution backend, built on httpx.AsyncClient."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
        headers: dict[str, str] | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._extra_headers = headers or {}

    @property
    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Accept": "application/json",
            **self._extra_headers,
        }

    def update_config(self, base_url: str | None = None, timeout: float | None = None) -> None:
        if base_url:
            self.base_url = base_url.rstrip("/")
        if timeout:
            self.timeout = timeout

    async def execute(self, tasks: list[TaskDescriptor]) -> list[RawTaskResult]:
        """Post a flat list of tasks to ``/execute``."""
        return await self._post("/execute", [task.to_wire() for task in tasks])

    async def execute_graph(self, payload: dict[str, Any]) -> list[RawTaskResult]:
        """Post a graph payload to ``/execute/graph``."""
        return await self._post("/execute/graph", payload)

    async def _post(self, path: str, body: Any) -> list[RawTaskResult]:
        url = f"{self.base_url}{path}"
        try:
            response = await asyncio.wait_for(self._send(url, body), timeout=self.timeout)
        except (TimeoutError, httpx.TimeoutException) as e:
            raise ExecutionTimeoutError() from e
        except httpx.RequestError as e:
            raise TransportError(f"Network error: {e}") from e

        return self._handle_response(response)

    async def _send(self, url: str, body: Any) -> httpx.Response:
        async with httpx.AsyncClient(
            headers=self._headers,
            timeout=self.timeout,
            transport=self._transport,
        ) as client:
            return await client.post(url, json=body)

    def _handle_response(self, response: httpx.Response) -> list[RawTaskResult]:
        if not response.is_success:
            message = f"HTTP {response.status_code}: {response.reason_phrase}"
            try:
                data = response.json()
                if isinstance(data, dict) and data.get("message"):
                    message = str(data["message"])
            except ValueError:
                pass
            raise BackendError(message, response.status_code)

        try:
            data = response.json()
        except ValueError as e:
            raise BackendError("Backend returned a non-JSON body", response.status_code) from e

        results = data if isinstance(data, list) else None
        if isinstance(data, dict) and isinstance(data.get("results"), list):
            results = data["results"]
        if results is None:
            raise BackendError("Backend response has no results list", response.status_code)

        try:
            return [RawTaskResult.model_validate(item) for item in results]
        except ValidationError as e:
            raise BackendError(f"Malformed task result: {e}", response.status_code) from e


class ExecutionDispatcher:
    """
    Ships task batches to the backend.

    Batch mode sends a whole flow in one request. Staged mode sends one
    parallel group at a time, either as one request per group or as one
    concurrent request per task (``staged_granularity="task"``).
    """

    def __init__(self, client: ExecutionClient | None = None, staged_granularity: str = "group"):
        if staged_granularity not in ("group", "task"):
            raise ValueError(
                f"Invalid staged_granularity '{staged_granularity}'. Valid: group, task"
            )
        self.client = client or ExecutionClient()
        self.staged_granularity = staged_granularity

    async def submit(self, tasks: list[TaskDescriptor]) -> list[RawTaskResult]:
        """Batch mode with a flat task list."""
        if not tasks:
            return []
        return await self._timed("execute", tasks, self.client.execute(tasks))

    async def submit_graph(self, tasks: list[TaskDescriptor]) -> list[RawTaskResult]:
        """Batch mode with a graph-shaped payload."""
        if not tasks:
            return []
        payload = graph_payload(tasks)
        return await self._timed("execute_graph", tasks, self.client.execute_graph(payload))

    async def submit_group(self, tasks: list[TaskDescriptor]) -> list[RawTaskResult]:
        """
        Staged mode for one parallel group.

        With per-task granularity the first error cancels the requests still
        in flight and is re-raised on its own.
        """
        if not tasks:
            return []
        if self.staged_granularity == "group":
            return await self.submit(tasks)

        try:
            async with asyncio.TaskGroup() as group:
                pending = [group.create_task(self.submit([task])) for task in tasks]
        except ExceptionGroup as eg:
            raise eg.exceptions[0] from None
        return [result for request in pending for result in request.result()]

    async def _timed(self, mode: str, tasks: list[TaskDescriptor], call) -> list[RawTaskResult]:
        start = time.perf_counter()
        try:
            results = await call
        except ExecutionClientError as e:
            logger.error(
                "Dispatch of %d task(s) failed: %s",
                len(tasks),
                e,
                extra={"event": "dispatch_failed", "latency_ms": _elapsed_ms(start)},
            )
            raise
        logger.info(
            "Dispatched %d task(s), received %d result(s)",
            len(tasks),
            len(results),
            extra={"event": f"dispatch_{mode}", "latency_ms": _elapsed_ms(start)},
        )
        return results


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)
