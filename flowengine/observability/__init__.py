"""
Observability: structured logging with automatic flow context.

- Context propagation via ContextVar (flow_id, execution_id, node_id)
- JSON logging for production, human-readable logging for development
"""

from flowengine.observability.logging import (
    clear_trace_context,
    configure_logging,
    get_trace_context,
    set_trace_context,
)

__all__ = [
    "configure_logging",
    "get_trace_context",
    "set_trace_context",
    "clear_trace_context",
]
