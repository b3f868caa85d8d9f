"""
Flow Executor - plans, translates, dispatches and reconciles a flow.

The executor:
1. Validates and plans the graph (total order or parallel levels)
2. Translates planned nodes into task descriptors
3. Hands tasks to a TaskExecutor (remote backend or local simulation)
4. Reconciles per-task results into one FlowExecutionResult

Only step 3 differs between strategies. Whole-flow failures (invalid or
cyclic graph, transport, timeout, backend errors) never raise: they come
back as a failed result with empty order and results.
"""

from __future__ import annotations

import logging
import time
import uuid
from typing import Protocol, runtime_checkable

from flowengine.errors import ExecutionClientError, FlowEngineError
from flowengine.execution.dispatcher import ExecutionDispatcher
from flowengine.execution.reconciler import build_flow_result, failed_flow_result, reconcile
from flowengine.graph.flow import Flow
from flowengine.graph.planner import compute_order, compute_parallel_groups, flatten_groups
from flowengine.observability import set_trace_context
from flowengine.schemas.run import FlowExecutionResult
from flowengine.schemas.task import RawTaskResult, TaskDescriptor, TaskResult
from flowengine.tasks.translator import TaskTranslator

logger = logging.getLogger(__name__)


class TaskRun(Protocol):
    """Executes the tasks of one flow run."""

    async def execute_batch(self, tasks: list[TaskDescriptor]) -> list[RawTaskResult]: ...

    async def execute_group(self, tasks: list[TaskDescriptor]) -> list[RawTaskResult]: ...


@runtime_checkable
class TaskExecutor(Protocol):
    """
    The one capability that varies between execution strategies.

    ``start_run`` returns the TaskRun for one flow call; any per-run state
    lives there, never on the executor. ``atomic_batch`` is True when
    ``execute_batch`` runs every task it is given (one request to a
    backend); False when it may stop early.
    """

    atomic_batch: bool

    def start_run(self) -> TaskRun: ...


class RemoteExecutor:
    """Delegates execution to the remote backend through an ExecutionDispatcher."""

    atomic_batch = True

    def __init__(self, dispatcher: ExecutionDispatcher | None = None, batch_payload: str = "graph"):
        if batch_payload not in ("graph", "tasks"):
            raise ValueError(f"Invalid batch_payload '{batch_payload}'. Valid: graph, tasks")
        self.dispatcher = dispatcher or ExecutionDispatcher()
        self.batch_payload = batch_payload

    def start_run(self) -> RemoteExecutor:
        # No per-run state; the backend owns it.
        return self

    async def execute_batch(self, tasks: list[TaskDescriptor]) -> list[RawTaskResult]:
        if self.batch_payload == "graph":
            return await self.dispatcher.submit_graph(tasks)
        return await self.dispatcher.submit(tasks)

    async def execute_group(self, tasks: list[TaskDescriptor]) -> list[RawTaskResult]:
        return await self.dispatcher.submit_group(tasks)


class FlowExecutor:
    """
    Public entry point used by the editor.

    Example:
        executor = FlowExecutor(RemoteExecutor(ExecutionDispatcher(client)))
        result = await executor.execute_flow(flow)
        if not result.success:
            print(result.error or [r.id for r in result.failed_results])
    """

    def __init__(self, executor: TaskExecutor, translator: TaskTranslator | None = None):
        self.executor = executor
        self.translator = translator or TaskTranslator()

    async def execute_flow(self, flow: Flow) -> FlowExecutionResult:
        """Run the flow in topological order as one batch."""
        start = time.perf_counter()
        run = self._start(flow, mode="sequential")

        try:
            order = compute_order(flow.nodes, flow.edges)
            tasks = self.translator.build_tasks(flow, order)
            raw_results = await run.execute_batch(tasks)
        except FlowEngineError as e:
            return self._fail(flow, e, start)

        if self.executor.atomic_batch:
            planned = order
        else:
            planned = [raw.id for raw in raw_results]
        results = reconcile(planned, raw_results)
        return self._finish(flow, results, order, start)

    async def execute_flow_parallel(self, flow: Flow) -> FlowExecutionResult:
        """Run the flow level by level; stop advancing after a failing level."""
        start = time.perf_counter()
        run = self._start(flow, mode="parallel")

        try:
            groups = compute_parallel_groups(flow.nodes, flow.edges)
            order = flatten_groups(groups)
            results: list[TaskResult] = []
            for index, group in enumerate(groups):
                tasks = self.translator.build_tasks(flow, group)
                group_results = reconcile(group, await run.execute_group(tasks))
                results.extend(group_results)

                if not all(result.success for result in group_results):
                    skipped = len(order) - len(results)
                    logger.warning(
                        "Group %d of %d failed; skipping %d remaining node(s)",
                        index + 1,
                        len(groups),
                        skipped,
                        extra={"event": "group_failed"},
                    )
                    break
        except FlowEngineError as e:
            return self._fail(flow, e, start)

        return self._finish(flow, results, order, start)

    def _start(self, flow: Flow, mode: str) -> TaskRun:
        run = self.executor.start_run()
        set_trace_context(flow_id=flow.id, execution_id=uuid.uuid4().hex, node_id=None)
        logger.info(
            "Executing flow '%s' (%d nodes, %d edges, %s)",
            flow.name or flow.id,
            len(flow.nodes),
            len(flow.edges),
            mode,
            extra={"event": "flow_started"},
        )
        return run

    def _fail(self, flow: Flow, error: Exception, start: float) -> FlowExecutionResult:
        level = logging.ERROR if isinstance(error, ExecutionClientError) else logging.WARNING
        logger.log(level, "Flow '%s' aborted: %s", flow.id, error, extra={"event": "flow_aborted"})
        return failed_flow_result(flow.id, str(error), _elapsed_ms(start))

    def _finish(
        self,
        flow: Flow,
        results: list[TaskResult],
        order: list[str],
        start: float,
    ) -> FlowExecutionResult:
        result = build_flow_result(flow.id, results, order, _elapsed_ms(start))
        logger.info(
            "Flow '%s' finished: %d/%d task(s) succeeded",
            flow.id,
            len(results) - len(result.failed_results),
            len(order),
            extra={"event": "flow_completed", "latency_ms": int(result.total_duration)},
        )
        return result


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000
