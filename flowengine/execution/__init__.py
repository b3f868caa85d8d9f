"""Execution strategies, dispatch to the backend, and result reconciliation."""

from flowengine.execution.dispatcher import ExecutionClient, ExecutionDispatcher
from flowengine.execution.executor import FlowExecutor, RemoteExecutor, TaskExecutor, TaskRun
from flowengine.execution.local import (
    LOCAL_HANDLERS,
    ExecutionContext,
    LocalRun,
    LocalSimulationExecutor,
    register_local_handler,
    substitute_variables,
)
from flowengine.execution.reconciler import build_flow_result, reconcile

__all__ = [
    # Dispatch
    "ExecutionClient",
    "ExecutionDispatcher",
    # Strategies
    "TaskExecutor",
    "TaskRun",
    "RemoteExecutor",
    "LocalSimulationExecutor",
    "LocalRun",
    "FlowExecutor",
    # Local simulation
    "ExecutionContext",
    "LOCAL_HANDLERS",
    "register_local_handler",
    "substitute_variables",
    # Reconciliation
    "reconcile",
    "build_flow_result",
]
