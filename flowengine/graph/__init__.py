"""Graph structures: Flows, Nodes, Edges, and execution planning."""

from flowengine.graph.flow import Edge, Flow, Node, validate_edges
from flowengine.graph.planner import compute_order, compute_parallel_groups, flatten_groups

__all__ = [
    # Flow
    "Flow",
    "Node",
    "Edge",
    "validate_edges",
    # Planner
    "compute_order",
    "compute_parallel_groups",
    "flatten_groups",
]
