"""
Run Schema - The outcome of one flow execution call.

Serialized with camelCase aliases because the editor reads these
objects directly.
"""

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from flowengine.schemas.task import TaskResult


class FlowExecutionResult(BaseModel):
    """
    Flow-level result.

    ``success`` is true only when every task result succeeded; an empty
    result list is vacuously successful. ``total_duration`` is wall-clock
    time for the whole call, not the sum of task durations.
    """

    flow_id: str
    success: bool
    results: list[TaskResult] = Field(default_factory=list)
    total_duration: float = 0
    execution_order: list[str] = Field(default_factory=list)

    # Whole-flow failure reason (cycle, invalid graph, transport, timeout, backend)
    error: str | None = None

    model_config = {"alias_generator": to_camel, "populate_by_name": True}

    @property
    def failed_results(self) -> list[TaskResult]:
        return [result for result in self.results if not result.success]

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True)
