"""
Task translation - node vocabulary to backend task vocabulary.

All per-category knowledge lives in CATEGORY_TASKS. Adding a node kind
means adding one row; nothing else in the engine branches on category.

No I/O happens here apart from credential lookups.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from flowengine.credentials import CredentialManager, CredentialSource
from flowengine.errors import UnknownNodeError
from flowengine.graph.flow import Flow, Node
from flowengine.schemas.task import TaskDescriptor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PayloadField:
    """One field of a task payload.

    The value is the first non-None config entry among ``config_keys``;
    failing that, the named credential from the credential source.
    """

    key: str
    config_keys: tuple[str, ...] = ()
    credential: str | None = None

    def resolve(self, config: Mapping[str, Any], credentials: CredentialSource) -> Any:
        for config_key in self.config_keys or (self.key,):
            value = config.get(config_key)
            if value is not None:
                return value
        if self.credential is not None:
            return credentials.get(self.credential)
        return None


@dataclass(frozen=True)
class TaskShape:
    """Backend task type plus the payload fields it reads from config."""

    task_type: str
    fields: tuple[PayloadField, ...] = ()

    def build_data(self, config: Mapping[str, Any], credentials: CredentialSource) -> dict:
        data = {}
        for payload_field in self.fields:
            value = payload_field.resolve(config, credentials)
            if value is not None:
                data[payload_field.key] = value
        return data


_JIRA_ACCESS_TOKEN = PayloadField("accessToken", ("accessToken",), credential="jira_api_token")

CATEGORY_TASKS: dict[str, TaskShape] = {
    "get-jira-story": TaskShape(
        task_type="jira.getStory",
        fields=(
            PayloadField("jiraKey", ("issueKey", "jiraKey")),
            PayloadField("email", ("email",), credential="jira_email"),
            PayloadField("apiToken", ("apiToken",), credential="jira_api_token"),
        ),
    ),
    "jira-create-story": TaskShape(
        task_type="jira.createStory",
        fields=(
            PayloadField("summary"),
            PayloadField("description"),
            PayloadField("issueType"),
            PayloadField("priority"),
            PayloadField("assignee"),
            _JIRA_ACCESS_TOKEN,
        ),
    ),
    "jira-add-comment": TaskShape(
        task_type="jira.addComment",
        fields=(
            PayloadField("issueKey", ("issueKey", "storyId")),
            PayloadField("comment"),
            PayloadField("visibility"),
            _JIRA_ACCESS_TOKEN,
        ),
    ),
    "llm": TaskShape(
        task_type="llm.task",
        fields=(
            PayloadField("prompt"),
            PayloadField("model"),
            PayloadField("temperature"),
            PayloadField("maxTokens"),
        ),
    ),
}


def register_task_shape(category: str, shape: TaskShape) -> None:
    """Register (or replace) the task shape for a node category."""
    CATEGORY_TASKS[category] = shape


def map_category_to_task_type(category: str) -> str:
    """Backend task type for a category; unknown categories pass through."""
    shape = CATEGORY_TASKS.get(category)
    return shape.task_type if shape else category


def build_inputs(source_ids: list[str]) -> dict[str, Any] | None:
    """Upstream reference: none, a scalar for one source, a list for several."""
    if not source_ids:
        return None
    if len(source_ids) == 1:
        return {"context": source_ids[0]}
    return {"context": list(source_ids)}


class TaskTranslator:
    """
    Builds backend task descriptors from a flow and a planned order.

    Example:
        translator = TaskTranslator(credentials={"jira_api_token": "..."})
        tasks = translator.build_tasks(flow, compute_order(flow.nodes, flow.edges))
    """

    def __init__(
        self,
        credentials: CredentialSource | None = None,
        shapes: Mapping[str, TaskShape] | None = None,
    ):
        self.credentials = credentials if credentials is not None else CredentialManager()
        self._shapes = shapes if shapes is not None else CATEGORY_TASKS

    def build_task(self, flow: Flow, node: Node) -> TaskDescriptor:
        sources = [edge.source for edge in flow.get_incoming_edges(node.id)]
        shape = self._shapes.get(node.category)
        if shape is None:
            task_type = node.category
            data = dict(node.config)
        else:
            task_type = shape.task_type
            data = shape.build_data(node.config, self.credentials)

        return TaskDescriptor(id=node.id, type=task_type, inputs=build_inputs(sources), data=data)

    def build_tasks(self, flow: Flow, order: list[str]) -> list[TaskDescriptor]:
        """
        Build one task per planned node id, preserving order.

        Raises:
            UnknownNodeError: If an id in ``order`` is not a node of ``flow``.
        """
        nodes = {node.id: node for node in flow.nodes}
        tasks = []
        for node_id in order:
            node = nodes.get(node_id)
            if node is None:
                raise UnknownNodeError(node_id)
            tasks.append(self.build_task(flow, node))

        logger.debug("Built %d task(s) for flow %s", len(tasks), flow.id)
        return tasks

    def build_graph_payload(self, flow: Flow, order: list[str]) -> dict[str, Any]:
        """Graph-shaped payload: ``{"nodes": [{id, type, inputs?, data?}, ...]}``."""
        return graph_payload(self.build_tasks(flow, order))


def graph_payload(tasks: list[TaskDescriptor]) -> dict[str, Any]:
    return {"nodes": [task.to_wire() for task in tasks]}
