"""
Error taxonomy for flow execution.

Planning errors (cycles, invalid graphs, unknown nodes) abort a run before
anything is dispatched. Client errors come from the conversation with the
remote execution backend. NodeExecutionError never reaches callers: the
local executor folds it into the failing node's TaskResult.
"""

from __future__ import annotations


class FlowEngineError(Exception):
    """Base class for every error raised by the engine."""


class FlowValidationError(FlowEngineError):
    """The node/edge set is structurally invalid (dangling edges, duplicate ids)."""

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__("Invalid flow graph: " + "; ".join(self.errors))


class CyclicGraphError(FlowEngineError):
    """Raised when the graph contains a cycle and cannot be ordered."""

    def __init__(self, remaining: list[str] | None = None):
        self.remaining = list(remaining or [])
        message = "Circular dependency detected in workflow"
        if self.remaining:
            message += f" (unresolved nodes: {', '.join(self.remaining)})"
        super().__init__(message)


class UnknownNodeError(FlowEngineError):
    """A planned node id has no corresponding node in the flow."""

    def __init__(self, node_id: str):
        self.node_id = node_id
        super().__init__(f"Node '{node_id}' is not part of the flow")


class ExecutionClientError(FlowEngineError):
    """Base class for failures talking to the execution backend."""

    def __init__(self, message: str, status: int | None = None):
        self.message = message
        self.status = status
        super().__init__(message)


class TransportError(ExecutionClientError):
    """Network-level failure; carries no per-task detail."""


class ExecutionTimeoutError(ExecutionClientError, TimeoutError):
    """The submission exceeded the configured timeout.

    Kept apart from TransportError so callers can back off and retry on
    timeouts specifically. The status is the conventional 408.
    """

    def __init__(self, message: str = "Execute request timeout", status: int = 408):
        super().__init__(message, status)


class BackendError(ExecutionClientError):
    """The backend answered with a non-success status or an unusable body."""


class NodeExecutionError(FlowEngineError):
    """A single local node handler failed."""

    def __init__(self, node_id: str, message: str):
        self.node_id = node_id
        super().__init__(message)
