"""Translation of flow nodes into backend task descriptors."""

from flowengine.tasks.translator import (
    CATEGORY_TASKS,
    PayloadField,
    TaskShape,
    TaskTranslator,
    build_inputs,
    graph_payload,
    map_category_to_task_type,
    register_task_shape,
)

__all__ = [
    "CATEGORY_TASKS",
    "PayloadField",
    "TaskShape",
    "TaskTranslator",
    "build_inputs",
    "graph_payload",
    "map_category_to_task_type",
    "register_task_shape",
]
