from .backend import TracingBackend, resolve_host
from .collector import (
    TRACE_EVENTS,
    TraceCollector,
    bind_collector,
    current_collector,
    format_address,
)

__all__ = [
    "TRACE_EVENTS",
    "TraceCollector",
    "TracingBackend",
    "bind_collector",
    "current_collector",
    "format_address",
    "resolve_host",
]
