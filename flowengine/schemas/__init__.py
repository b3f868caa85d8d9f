"""Task and run schemas shared by the translator, executors and reconciler."""

from flowengine.schemas.run import FlowExecutionResult
from flowengine.schemas.task import RawTaskResult, TaskDescriptor, TaskResult

__all__ = [
    "TaskDescriptor",
    "RawTaskResult",
    "TaskResult",
    "FlowExecutionResult",
]
