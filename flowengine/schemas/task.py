"""
Task Schema - The backend-facing shape of a node.

A TaskDescriptor is built once per execution from a node and its
upstream edges, then shipped to the execution backend unchanged.
"""

from typing import Any

from pydantic import BaseModel, Field


class TaskDescriptor(BaseModel):
    """
    One executable task.

    Example:
        TaskDescriptor(
            id="summarize",
            type="llm.task",
            inputs={"context": ["fetch-story", "fetch-comments"]},
            data={"prompt": "Summarize the story", "model": "gpt-4"},
        )
    """

    id: str = Field(description="ID of the node this task was built from")
    type: str = Field(description="Backend task type, e.g. 'jira.getStory'")
    inputs: dict[str, Any] | None = Field(
        default=None,
        description="Upstream reference: {'context': id} or {'context': [id, ...]}",
    )
    data: dict[str, Any] | None = None

    model_config = {"frozen": True}

    @property
    def upstream_ids(self) -> list[str]:
        """Upstream node IDs referenced by ``inputs``, in edge order."""
        if not self.inputs:
            return []
        context = self.inputs.get("context")
        if context is None:
            return []
        if isinstance(context, list):
            return list(context)
        return [context]

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class RawTaskResult(BaseModel):
    """A per-task result exactly as the backend reported it."""

    id: str
    success: bool = False
    output: Any | None = None
    error: str | None = None
    duration: float | None = None

    model_config = {"extra": "allow"}


class TaskResult(BaseModel):
    """Reconciled outcome of one planned task."""

    id: str
    success: bool
    output: Any | None = None
    error: str | None = None
    duration: float = Field(default=0, ge=0, description="Milliseconds")
