"""
Graph planning: total execution order and parallel levels.

Both planners are pure and synchronous. Every call builds its own
adjacency and in-degree maps; nothing is shared between calls.

Iteration order is fixed to node declaration order (for seeding and
grouping) and edge declaration order (for successor lists), so the same
flow always yields the same plan.
"""

import logging
from collections import deque

from flowengine.errors import CyclicGraphError, FlowValidationError
from flowengine.graph.flow import Edge, Node, validate_edges

logger = logging.getLogger(__name__)


def _build_adjacency(
    nodes: list[Node], edges: list[Edge]
) -> tuple[dict[str, list[str]], dict[str, int]]:
    errors = validate_edges(nodes, edges)
    if errors:
        raise FlowValidationError(errors)

    graph: dict[str, list[str]] = {node.id: [] for node in nodes}
    in_degree: dict[str, int] = {node.id: 0 for node in nodes}

    # Duplicate edges count once each and are released once each.
    for edge in edges:
        graph[edge.source].append(edge.target)
        in_degree[edge.target] += 1

    return graph, in_degree


def compute_order(nodes: list[Node], edges: list[Edge]) -> list[str]:
    """
    Topologically sort the graph with Kahn's algorithm.

    Nodes that become eligible at the same time keep FIFO order: roots in
    declaration order, then successors in the order they reach zero
    in-degree.

    Raises:
        FlowValidationError: If an edge references a missing node.
        CyclicGraphError: If any node never reaches zero in-degree.
    """
    graph, in_degree = _build_adjacency(nodes, edges)

    queue = deque(node.id for node in nodes if in_degree[node.id] == 0)
    order: list[str] = []

    while queue:
        current = queue.popleft()
        order.append(current)
        for neighbor in graph[current]:
            in_degree[neighbor] -= 1
            if in_degree[neighbor] == 0:
                queue.append(neighbor)

    if len(order) != len(nodes):
        placed = set(order)
        remaining = [node.id for node in nodes if node.id not in placed]
        logger.warning(
            "Cycle detected; %d node(s) never became ready",
            len(remaining),
            extra={"event": "plan_cycle"},
        )
        raise CyclicGraphError(remaining)

    return order


def compute_parallel_groups(nodes: list[Node], edges: list[Edge]) -> list[list[str]]:
    """
    Partition the graph into levels that can run concurrently.

    Each level holds every unassigned node whose predecessors are all in
    earlier levels. Levels must run strictly one after another; members of
    a level have no edges between them.

    Raises:
        FlowValidationError: If an edge references a missing node.
        CyclicGraphError: If unassigned nodes remain but none is ready.
    """
    graph, in_degree = _build_adjacency(nodes, edges)

    remaining = [node.id for node in nodes]
    groups: list[list[str]] = []

    while remaining:
        current_group = [node_id for node_id in remaining if in_degree[node_id] == 0]
        if not current_group:
            logger.warning(
                "Cycle detected; %d node(s) cannot be grouped",
                len(remaining),
                extra={"event": "plan_cycle"},
            )
            raise CyclicGraphError(remaining)

        groups.append(current_group)
        assigned = set(current_group)
        remaining = [node_id for node_id in remaining if node_id not in assigned]

        for node_id in current_group:
            for neighbor in graph[node_id]:
                if neighbor not in assigned:
                    in_degree[neighbor] -= 1

    return groups


def flatten_groups(groups: list[list[str]]) -> list[str]:
    """Concatenate parallel groups into one valid topological order."""
    return [node_id for group in groups for node_id in group]
