"""Merge raw backend results back onto the planned order."""

from collections.abc import Iterable

from flowengine.schemas.run import FlowExecutionResult
from flowengine.schemas.task import RawTaskResult, TaskResult


def reconcile(planned_ids: Iterable[str], raw_results: Iterable[RawTaskResult]) -> list[TaskResult]:
    """
    Produce exactly one TaskResult per planned id, in planned order.

    Ids the backend never answered for become failures with duration 0.
    Results for ids that were not planned are dropped. Every returned
    result is trusted as-is, wherever a failure occurred in the batch.
    """
    by_id = {raw.id: raw for raw in raw_results}
    results = []
    for node_id in planned_ids:
        raw = by_id.get(node_id)
        if raw is None:
            results.append(TaskResult(id=node_id, success=False, duration=0))
            continue
        results.append(
            TaskResult(
                id=node_id,
                success=raw.success,
                output=raw.output,
                error=raw.error,
                duration=max(raw.duration or 0, 0),
            )
        )
    return results


def build_flow_result(
    flow_id: str,
    results: list[TaskResult],
    execution_order: list[str],
    total_duration: float,
) -> FlowExecutionResult:
    """Aggregate task results; success is the AND over all of them."""
    return FlowExecutionResult(
        flow_id=flow_id,
        success=all(result.success for result in results),
        results=results,
        total_duration=total_duration,
        execution_order=execution_order,
    )


def failed_flow_result(flow_id: str, error: str, total_duration: float) -> FlowExecutionResult:
    """Whole-flow failure: nothing planned, nothing reported."""
    return FlowExecutionResult(
        flow_id=flow_id,
        success=False,
        results=[],
        total_duration=total_duration,
        execution_order=[],
        error=error,
    )
