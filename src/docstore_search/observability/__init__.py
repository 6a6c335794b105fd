"""Observability module for OpenTelemetry-aligned tracing, metrics, and logging."""

from docstore_search.observability.bootstrap import configure_observability
from docstore_search.observability.context import bind_fields, get_trace_context, set_trace_context
from docstore_search.observability.logging import JsonFormatter, configure_logging
from docstore_search.observability.metrics import (
    DOCUMENT_WRITE_COUNT,
    DOCUMENT_WRITE_TOKEN_COUNT,
    SEARCH_HITS,
    SEARCH_LATENCY,
    get_metrics,
    init_metrics,
    track_latency,
)
from docstore_search.observability.tracing import create_span, get_tracer, init_tracing


__all__ = [
    "DOCUMENT_WRITE_COUNT",
    "DOCUMENT_WRITE_TOKEN_COUNT",
    "SEARCH_HITS",
    "SEARCH_LATENCY",
    "JsonFormatter",
    "bind_fields",
    "configure_logging",
    "configure_observability",
    "create_span",
    "get_metrics",
    "get_trace_context",
    "get_tracer",
    "init_metrics",
    "init_tracing",
    "set_trace_context",
    "track_latency",
]
