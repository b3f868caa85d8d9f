"""
Local simulation executor - runs tasks in-process without a backend.

Used when no remote backend is configured, mostly in tests. Each task type
has a handler that reads its payload, performs simulated work, and writes
results into an ExecutionContext shared by the whole run.

Context keys follow two conventions:
- node-scoped: ``"<nodeId>.<field>"`` (e.g. ``"summarize.response"``)
- well-known:  ``"llm.response"``, ``"jira.issueKey"``; the latest value of
  that kind, readable by any later node without an edge

Well-known keys are last-writer-wins with no lock. Two nodes of the same
kind in one parallel group race for the key; ``history(kind)`` records
every write in completion order.
"""

from __future__ import annotations

import asyncio
import logging
import re
import time
from collections.abc import Awaitable, Callable, Iterator, MutableMapping
from typing import Any

from flowengine.errors import NodeExecutionError
from flowengine.observability import set_trace_context
from flowengine.schemas.task import RawTaskResult, TaskDescriptor

logger = logging.getLogger(__name__)

VARIABLE_PATTERN = re.compile(r"\{\{([^}]+)\}\}")

LLM_RESPONSE_KEY = "llm.response"
JIRA_ISSUE_KEY = "jira.issueKey"


class ExecutionContext(MutableMapping):
    """Key/value store threaded through one local run."""

    def __init__(self, initial: dict[str, Any] | None = None):
        self._values: dict[str, Any] = dict(initial or {})
        self._history: dict[str, list[Any]] = {}
        self._sequences: dict[str, int] = {}

    def __getitem__(self, key: str) -> Any:
        return self._values[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self._values[key] = value

    def __delitem__(self, key: str) -> None:
        del self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def set_node_value(self, node_id: str, field: str, value: Any) -> None:
        self._values[f"{node_id}.{field}"] = value

    def get_node_value(self, node_id: str, field: str, default: Any = None) -> Any:
        return self._values.get(f"{node_id}.{field}", default)

    def publish(self, kind: str, value: Any) -> None:
        """Write the well-known key for ``kind``. Last writer wins."""
        self._values[kind] = value
        self._history.setdefault(kind, []).append(value)

    def history(self, kind: str) -> list[Any]:
        return list(self._history.get(kind, []))

    def next_sequence(self, name: str) -> int:
        self._sequences[name] = self._sequences.get(name, 0) + 1
        return self._sequences[name]

    def upstream_outputs(self, task: TaskDescriptor) -> dict[str, Any]:
        """Outputs of the task's upstream nodes that have run so far."""
        return {
            node_id: self._values[f"{node_id}.output"]
            for node_id in task.upstream_ids
            if f"{node_id}.output" in self._values
        }

    def snapshot(self) -> dict[str, Any]:
        return dict(self._values)


def substitute_variables(text: str, context: MutableMapping[str, Any]) -> str:
    """Replace ``{{name}}`` with ``str(context[name])``; unknown names stay verbatim."""

    def _replace(match: re.Match) -> str:
        name = match.group(1).strip()
        if name in context:
            return str(context[name])
        return match.group(0)

    return VARIABLE_PATTERN.sub(_replace, text)


def substitute_in(value: Any, context: MutableMapping[str, Any]) -> Any:
    """Apply substitution to every string inside nested dicts and lists."""
    if isinstance(value, str):
        return substitute_variables(value, context)
    if isinstance(value, dict):
        return {key: substitute_in(item, context) for key, item in value.items()}
    if isinstance(value, list):
        return [substitute_in(item, context) for item in value]
    return value


LocalHandler = Callable[[TaskDescriptor, dict[str, Any], ExecutionContext], Awaitable[dict]]


def _require(task: TaskDescriptor, data: dict[str, Any], *keys: str) -> None:
    missing = [key for key in keys if not data.get(key)]
    if missing:
        raise NodeExecutionError(
            task.id, f"Task '{task.id}' ({task.type}) is missing: {', '.join(missing)}"
        )


async def _run_llm(task: TaskDescriptor, data: dict[str, Any], context: ExecutionContext) -> dict:
    _require(task, data, "prompt")
    model = data.get("model", "gpt-4")
    response = f"[{model}] {data['prompt']}"

    context.set_node_value(task.id, "response", response)
    context.set_node_value(task.id, "model", model)
    context.publish(LLM_RESPONSE_KEY, response)
    return {"response": response, "model": model}


async def _get_jira_story(
    task: TaskDescriptor, data: dict[str, Any], context: ExecutionContext
) -> dict:
    _require(task, data, "jiraKey")
    key = data["jiraKey"]
    summary = f"Simulated story {key}"

    context.set_node_value(task.id, "issueKey", key)
    context.set_node_value(task.id, "summary", summary)
    context.publish(JIRA_ISSUE_KEY, key)
    return {"key": key, "summary": summary, "status": "To Do"}


async def _create_jira_story(
    task: TaskDescriptor, data: dict[str, Any], context: ExecutionContext
) -> dict:
    _require(task, data, "summary")
    key = f"SIM-{context.next_sequence('jira')}"

    context.set_node_value(task.id, "issueKey", key)
    context.publish(JIRA_ISSUE_KEY, key)
    return {
        "key": key,
        "summary": data["summary"],
        "issueType": data.get("issueType", "Story"),
        "priority": data.get("priority", "Medium"),
    }


async def _add_jira_comment(
    task: TaskDescriptor, data: dict[str, Any], context: ExecutionContext
) -> dict:
    _require(task, data, "issueKey", "comment")
    comment_id = f"comment-{context.next_sequence('jira-comment')}"

    context.set_node_value(task.id, "commentId", comment_id)
    return {"issueKey": data["issueKey"], "commentId": comment_id, "comment": data["comment"]}


async def _echo(task: TaskDescriptor, data: dict[str, Any], context: ExecutionContext) -> dict:
    return data


LOCAL_HANDLERS: dict[str, LocalHandler] = {
    "llm.task": _run_llm,
    "jira.getStory": _get_jira_story,
    "jira.createStory": _create_jira_story,
    "jira.addComment": _add_jira_comment,
}


def register_local_handler(task_type: str, handler: LocalHandler) -> None:
    LOCAL_HANDLERS[task_type] = handler


class LocalSimulationExecutor:
    """
    In-process executor. Holds handlers and settings only; every run gets
    its own LocalRun with a fresh ExecutionContext, so concurrent flows on
    one executor never see each other's values.

    Example:
        executor = LocalSimulationExecutor(initial_context={"user": "ada"})
        flow_executor = FlowExecutor(executor)
        result = await flow_executor.execute_flow(flow)
    """

    atomic_batch = False

    def __init__(
        self,
        handlers: dict[str, LocalHandler] | None = None,
        initial_context: dict[str, Any] | None = None,
        simulated_latency_ms: int = 0,
    ):
        self.handlers = handlers if handlers is not None else LOCAL_HANDLERS
        self.simulated_latency_ms = simulated_latency_ms
        self._initial_context = dict(initial_context or {})

    def start_run(self) -> LocalRun:
        return LocalRun(
            self.handlers,
            ExecutionContext(self._initial_context),
            simulated_latency_ms=self.simulated_latency_ms,
        )


class LocalRun:
    """
    One local run over its own ExecutionContext.

    ``execute_batch`` runs tasks one at a time in the given order and stops
    at the first failure. ``execute_group`` runs a whole parallel group
    concurrently and reports every member, failed or not.
    """

    def __init__(
        self,
        handlers: dict[str, LocalHandler],
        context: ExecutionContext,
        simulated_latency_ms: int = 0,
    ):
        self.handlers = handlers
        self.context = context
        self.simulated_latency_ms = simulated_latency_ms

    async def execute_batch(self, tasks: list[TaskDescriptor]) -> list[RawTaskResult]:
        results = []
        for task in tasks:
            result = await self.execute_task(task)
            results.append(result)
            if not result.success:
                logger.warning(
                    "Stopping sequential run after failed node '%s'",
                    task.id,
                    extra={"event": "sequential_stop", "node_id": task.id},
                )
                break
        return results

    async def execute_group(self, tasks: list[TaskDescriptor]) -> list[RawTaskResult]:
        return list(await asyncio.gather(*(self.execute_task(task) for task in tasks)))

    async def execute_task(self, task: TaskDescriptor) -> RawTaskResult:
        """Run one task; handler failures become a failed result, never an exception."""
        set_trace_context(node_id=task.id)
        handler = self.handlers.get(task.type, _echo)
        start = time.perf_counter()

        try:
            data = substitute_in(task.data or {}, self.context)
            if self.simulated_latency_ms:
                await asyncio.sleep(self.simulated_latency_ms / 1000)
            output = await handler(task, data, self.context)
            self.context.set_node_value(task.id, "output", output)
        except NodeExecutionError as e:
            logger.warning(
                "Node '%s' failed: %s",
                task.id,
                e,
                extra={"event": "node_failed", "node_id": task.id, "task_type": task.type},
            )
            return RawTaskResult(
                id=task.id, success=False, error=str(e), duration=_elapsed_ms(start)
            )
        except Exception as e:
            logger.exception(
                "Unexpected error in node '%s'",
                task.id,
                extra={"event": "node_failed", "node_id": task.id, "task_type": task.type},
            )
            return RawTaskResult(
                id=task.id,
                success=False,
                error=str(e) or type(e).__name__,
                duration=_elapsed_ms(start),
            )

        duration = _elapsed_ms(start)
        logger.debug(
            "Node '%s' completed",
            task.id,
            extra={"event": "node_completed", "node_id": task.id, "latency_ms": duration},
        )
        return RawTaskResult(id=task.id, success=True, output=output, duration=duration)


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000
