"""
Context variables for tracing a single import across the pipeline.

The trace ID is bound once per import run and read by the logging
patcher and by error serialization.
"""

from contextvars import ContextVar

trace_id_var: ContextVar[str] = ContextVar("trace_id", default="")


def get_trace_id() -> str:
    """Get current trace ID from context.

    Returns:
        Trace ID string or empty string if not set.
    """
    return trace_id_var.get()


def set_trace_id(trace_id: str) -> None:
    """Set trace ID in context.

    Args:
        trace_id: Trace ID to set.
    """
    trace_id_var.set(trace_id)
