"""One-call observability setup driven by ``Settings``."""

from __future__ import annotations

from typing import TYPE_CHECKING

from docstore_search.config import Settings
from docstore_search.observability.logging import configure_logging
from docstore_search.observability.metrics import init_metrics
from docstore_search.observability.tracing import init_tracing


if TYPE_CHECKING:
    from collections.abc import Sequence

    from opentelemetry.sdk.metrics.export import MetricReader
    from opentelemetry.sdk.trace import SpanProcessor


def configure_observability(
    settings: Settings | None = None,
    *,
    logger_levels: dict[str, str] | None = None,
    span_processors: Sequence[SpanProcessor] | None = None,
    metric_readers: Sequence[MetricReader] | None = None,
) -> None:
    """Configure logging, tracing and metrics for a process embedding the engine.

    Args:
        settings: Source of the log level, log format and service name
        logger_levels: Per-logger level overrides
        span_processors: Span processors (exporters) for the tracer provider
        metric_readers: Metric readers (exporters) for the meter provider
    """
    settings = settings or Settings()
    configure_logging(level=settings.log_level, json_output=settings.log_json, logger_levels=logger_levels)
    init_metrics(service_name=settings.service_name, metric_readers=metric_readers)
    init_tracing(service_name=settings.service_name, span_processors=span_processors)
