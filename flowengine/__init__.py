"""
flowengine - plan, translate and dispatch node-graph automation flows.

Quick Start:
    from flowengine import Flow, create_flow_executor

    flow = Flow.model_validate(editor_json)
    result = await create_flow_executor().execute_flow(flow)
"""

from flowengine.config import EngineConfig
from flowengine.errors import (
    BackendError,
    CyclicGraphError,
    ExecutionClientError,
    ExecutionTimeoutError,
    FlowEngineError,
    FlowValidationError,
    NodeExecutionError,
    TransportError,
    UnknownNodeError,
)
from flowengine.execution import (
    ExecutionClient,
    ExecutionDispatcher,
    FlowExecutor,
    LocalSimulationExecutor,
    RemoteExecutor,
    TaskExecutor,
)
from flowengine.graph import Edge, Flow, Node, compute_order, compute_parallel_groups
from flowengine.runner import create_flow_executor
from flowengine.schemas import FlowExecutionResult, RawTaskResult, TaskDescriptor, TaskResult
from flowengine.tasks import TaskTranslator

__all__ = [
    # Graph
    "Flow",
    "Node",
    "Edge",
    "compute_order",
    "compute_parallel_groups",
    # Tasks
    "TaskTranslator",
    "TaskDescriptor",
    "RawTaskResult",
    "TaskResult",
    "FlowExecutionResult",
    # Execution
    "ExecutionClient",
    "ExecutionDispatcher",
    "TaskExecutor",
    "RemoteExecutor",
    "LocalSimulationExecutor",
    "FlowExecutor",
    "EngineConfig",
    "create_flow_executor",
    # Errors
    "FlowEngineError",
    "FlowValidationError",
    "CyclicGraphError",
    "UnknownNodeError",
    "ExecutionClientError",
    "TransportError",
    "ExecutionTimeoutError",
    "BackendError",
    "NodeExecutionError",
]
