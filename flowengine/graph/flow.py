"""
Flow Protocol - The user-authored graph handed to the engine.

A flow is a set of nodes joined by directed edges:
1. Nodes carry a semantic category ("llm", "get-jira-story", ...) and config
2. Edges say "source's output is available to target"
3. Fan-in and fan-out are both allowed

The editor sends richer objects (positions, styles, labels); only the
fields the engine needs are kept. Editor-shaped nodes keep their
configuration under ``data.config``, which is lifted into ``config``.
"""

from typing import Any

from pydantic import BaseModel, Field, model_validator


class Node(BaseModel):
    """
    A single unit of work in a flow.

    Example:
        Node(
            id="summarize",
            category="llm",
            config={"prompt": "Summarize {{jira.summary}}", "model": "gpt-4"},
        )
    """

    id: str
    category: str = Field(description="Semantic node kind, e.g. 'llm' or 'get-jira-story'")
    config: dict[str, Any] = Field(default_factory=dict)

    model_config = {"extra": "ignore", "frozen": True}

    @model_validator(mode="before")
    @classmethod
    def _lift_editor_config(cls, value: Any) -> Any:
        if isinstance(value, dict) and "config" not in value:
            data = value.get("data")
            if isinstance(data, dict) and isinstance(data.get("config"), dict):
                return {**value, "config": data["config"]}
        return value


class Edge(BaseModel):
    """A directed data-availability link between two nodes."""

    id: str
    source: str = Field(description="Source node ID")
    target: str = Field(description="Target node ID")
    type: str | None = None

    model_config = {"extra": "ignore", "frozen": True}


class Flow(BaseModel):
    """
    Complete flow as supplied for one execution call.

    Nodes and edges keep their declaration order, which the planner uses
    to break ties deterministically.
    """

    id: str
    name: str = ""
    description: str | None = None
    nodes: list[Node] = Field(default_factory=list)
    edges: list[Edge] = Field(default_factory=list)

    model_config = {"extra": "ignore"}

    @property
    def node_ids(self) -> list[str]:
        return [node.id for node in self.nodes]

    def get_node(self, node_id: str) -> Node | None:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def get_incoming_edges(self, node_id: str) -> list[Edge]:
        """Edges targeting a node, in declaration order."""
        return [edge for edge in self.edges if edge.target == node_id]

    def get_outgoing_edges(self, node_id: str) -> list[Edge]:
        return [edge for edge in self.edges if edge.source == node_id]

    def validate_graph(self) -> list[str]:
        """Validate the flow structure. Cycles are left to the planner."""
        return validate_edges(self.nodes, self.edges)


def validate_edges(nodes: list[Node], edges: list[Edge]) -> list[str]:
    """Return human-readable structural errors for a node/edge set."""
    errors = []
    seen: set[str] = set()
    for node in nodes:
        if node.id in seen:
            errors.append(f"Duplicate node ID: '{node.id}'")
        seen.add(node.id)

    for edge in edges:
        if edge.source not in seen:
            errors.append(f"Edge '{edge.id}' references missing source '{edge.source}'")
        if edge.target not in seen:
            errors.append(f"Edge '{edge.id}' references missing target '{edge.target}'")

    return errors
