"""Unit tests for logging, tracing and metrics."""

import json
import logging

from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from opentelemetry.trace import StatusCode
import pytest

from docstore_search.config import Settings
from docstore_search.fulltext import FullTextSearch
from docstore_search.observability import (
    SEARCH_LATENCY,
    JsonFormatter,
    bind_fields,
    configure_logging,
    configure_observability,
    create_span,
    get_metrics,
    get_trace_context,
    init_tracing,
    set_trace_context,
    track_latency,
)
from docstore_search.observability.context import update_span_id
from docstore_search.observability.tracing import reset_tracer


pytestmark = pytest.mark.unit


def _record(name="docstore_search.search.engine", msg="searched", **extra):
    record = logging.LogRecord(
        name=name,
        level=logging.INFO,
        pathname="engine.py",
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture
def span_exporter():
    exporter = InMemorySpanExporter()
    init_tracing("docstore-search-tests", span_processors=[SimpleSpanProcessor(exporter)])
    yield exporter
    reset_tracer()


@pytest.fixture
def root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    # Drop the handler installed by the test; pytest manages its own capture handlers
    for handler in root.handlers[:]:
        if handler not in handlers:
            root.removeHandler(handler)
    root.setLevel(level)


class TestJsonFormatter:
    """Tests for structured JSON logging."""

    def test_format_includes_trace_context_and_index(self):
        set_trace_context("aa" * 16, "bb" * 8, index="animals")

        data = json.loads(JsonFormatter().format(_record()))

        assert data["message"] == "searched"
        assert data["level"] == "INFO"
        assert data["trace_id"] == "aa" * 16
        assert data["span_id"] == "bb" * 8
        assert data["index"] == "animals"
        assert data["component"] == "engine"

    def test_cursor_and_secrets_are_redacted(self):
        data = json.loads(JsonFormatter().format(_record(cursor="eyJmIjpbXX0", api_key="k", lang="en")))

        assert data["cursor"] == "[REDACTED]"
        assert data["api_key"] == "[REDACTED]"
        assert data["lang"] == "en"

    def test_long_messages_are_truncated(self):
        data = json.loads(JsonFormatter().format(_record(msg="x" * 5000)))

        assert data["message"].endswith("...")
        assert len(data["message"]) == JsonFormatter.MAX_MESSAGE_LEN + 3

    def test_document_references_are_logged_by_path(self, store):
        data = json.loads(JsonFormatter().format(_record(doc=store.document("animals/corgi"), words={"b", "a"})))

        assert data["doc"] == "animals/corgi"
        assert data["words"] == ["a", "b"]


class TestTraceContext:
    """Tests for trace context propagation."""

    def test_update_span_id_keeps_trace_and_index(self):
        set_trace_context("cc" * 16, "dd" * 8, index="animals")
        update_span_id("ee" * 8)

        ctx = get_trace_context()

        assert ctx == {"trace_id": "cc" * 16, "span_id": "ee" * 8, "index": "animals"}

    def test_bind_fields_keeps_trace_and_span(self):
        set_trace_context("cc" * 16, "dd" * 8)
        bind_fields(index="animals")
        bind_fields(index="plants")

        assert get_trace_context() == {"trace_id": "cc" * 16, "span_id": "dd" * 8, "index": "plants"}

    @pytest.mark.asyncio
    async def test_operations_bind_the_index_path(self, index):
        await index.search("en", "anything")

        assert get_trace_context()["index"] == "index"


class TestTracing:
    """Tests for OpenTelemetry spans."""

    def test_create_span_sets_attributes(self, span_exporter):
        with create_span("fulltext.test", attributes={"index": "animals"}) as span:
            span.set_attribute("fulltext.new_words", 2)

        (finished,) = span_exporter.get_finished_spans()
        assert finished.name == "fulltext.test"
        assert finished.attributes["index"] == "animals"
        assert finished.attributes["fulltext.new_words"] == 2

    def test_create_span_records_and_reraises(self, span_exporter):
        with pytest.raises(RuntimeError, match="boom"), create_span("fulltext.fail"):
            raise RuntimeError("boom")

        (finished,) = span_exporter.get_finished_spans()
        assert finished.status.status_code is StatusCode.ERROR
        assert finished.events[0].name == "exception"

    @pytest.mark.asyncio
    async def test_engine_operations_are_traced(self, span_exporter, store, index):
        doc = store.document("animals/corgi")

        await index.set("en", doc, data={"body": "corgi"})
        await index.search("en", "corgi")
        await index.delete("en", doc, data={"body": "corgi"})

        spans = {span.name: span for span in span_exporter.get_finished_spans()}
        assert set(spans) == {"fulltext.set", "fulltext.search", "fulltext.delete"}
        assert spans["fulltext.set"].attributes["doc"] == "animals/corgi"
        assert spans["fulltext.set"].attributes["fulltext.new_words"] == 1
        assert spans["fulltext.search"].attributes["search.result_count"] == 1


class TestMetrics:
    """Tests for Prometheus metrics."""

    def test_track_latency_is_exported(self):
        with track_latency(SEARCH_LATENCY, index="latency-test"):
            pass

        assert b'search_latency_seconds_count{index="latency-test"} 1.0' in get_metrics()

    @pytest.mark.asyncio
    async def test_writes_and_hits_are_counted(self, store):
        index = FullTextSearch(store, "metrics-test")
        await index.set("en", store.document("animals/corgi"), data={"body": "corgi dog"})
        await index.search("en", "corgi")

        output = get_metrics()
        assert b'document_write_count_total{index="metrics-test",lang="en"} 2.0' in output
        assert b'document_write_token_count_total{index="metrics-test",lang="en"} 2.0' in output
        assert b'search_hits_total{index="metrics-test"} 1.0' in output


def test_configure_logging_installs_json_handler(root_logger):
    configure_logging("debug", logger_levels={"docstore_search.search": "warning"})

    assert root_logger.level == logging.DEBUG
    assert len(root_logger.handlers) == 1
    assert isinstance(root_logger.handlers[0].formatter, JsonFormatter)
    assert logging.getLogger("docstore_search.search").level == logging.WARNING
    logging.getLogger("docstore_search.search").setLevel(logging.NOTSET)


def test_configure_logging_plain_text(root_logger):
    configure_logging("warning", json_output=False)

    assert root_logger.level == logging.WARNING
    assert not isinstance(root_logger.handlers[0].formatter, JsonFormatter)


def test_configure_observability_from_settings(root_logger):
    exporter = InMemorySpanExporter()
    settings = Settings(log_level="warning", log_json=False, service_name="docstore-search-tests")

    configure_observability(settings, span_processors=[SimpleSpanProcessor(exporter)])
    try:
        with create_span("fulltext.bootstrap"):
            pass
    finally:
        reset_tracer()

    assert root_logger.level == logging.WARNING
    assert not isinstance(root_logger.handlers[0].formatter, JsonFormatter)
    (finished,) = exporter.get_finished_spans()
    assert finished.resource.attributes["service.name"] == "docstore-search-tests"


def test_public_names_are_defined():
    import docstore_search.observability as observability

    missing = [name for name in observability.__all__ if not hasattr(observability, name)]

    assert missing == []
