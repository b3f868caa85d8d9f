"""Tests for merging raw backend results onto the planned order."""

from flowengine.execution.reconciler import build_flow_result, failed_flow_result, reconcile
from flowengine.schemas.task import RawTaskResult, TaskResult


def test_missing_result_becomes_failure():
    raw = [
        RawTaskResult(id="n1", success=True, output={"ok": 1}, duration=12),
        RawTaskResult(id="n3", success=True, duration=7),
    ]

    results = reconcile(["n1", "n2", "n3"], raw)

    assert [r.id for r in results] == ["n1", "n2", "n3"]
    assert [r.success for r in results] == [True, False, True]
    assert results[1].duration == 0
    assert results[1].output is None
    assert results[0].output == {"ok": 1}


def test_results_follow_planned_order_not_backend_order():
    raw = [RawTaskResult(id="b", success=True), RawTaskResult(id="a", success=True)]

    assert [r.id for r in reconcile(["a", "b"], raw)] == ["a", "b"]


def test_unplanned_results_are_dropped():
    raw = [RawTaskResult(id="a", success=True), RawTaskResult(id="zzz", success=True)]

    assert [r.id for r in reconcile(["a"], raw)] == ["a"]


def test_negative_or_missing_duration_is_clamped():
    raw = [
        RawTaskResult(id="a", success=True, duration=-4),
        RawTaskResult(id="b", success=True),
    ]

    assert [r.duration for r in reconcile(["a", "b"], raw)] == [0, 0]


def test_failure_detail_is_kept():
    raw = [RawTaskResult(id="a", success=False, error="Jira returned 404")]

    [result] = reconcile(["a"], raw)

    assert result.error == "Jira returned 404"


def test_flow_success_requires_every_result():
    results = [
        TaskResult(id="a", success=True),
        TaskResult(id="b", success=False, error="x"),
    ]

    flow_result = build_flow_result("f", results, ["a", "b"], 42.0)

    assert flow_result.success is False
    assert [r.id for r in flow_result.failed_results] == ["b"]
    assert flow_result.total_duration == 42.0


def test_empty_result_list_is_vacuously_successful():
    flow_result = build_flow_result("f", [], [], 0.5)

    assert flow_result.success is True
    assert flow_result.results == []


def test_failed_flow_result_has_nothing_planned():
    flow_result = failed_flow_result("f", "Circular dependency detected in workflow", 3.0)

    assert flow_result.success is False
    assert flow_result.results == []
    assert flow_result.execution_order == []
    assert flow_result.error.startswith("Circular dependency")
