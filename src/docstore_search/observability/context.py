"""Log correlation fields carried across awaits.

The context holds a ``trace_id`` and ``span_id`` plus whatever the engine binds
(the index path), and ``JsonFormatter`` copies it into every record.
"""

from __future__ import annotations

from contextvars import ContextVar
from typing import Any
from uuid import uuid4


_log_context: ContextVar[dict[str, Any] | None] = ContextVar("docstore_search_log_context", default=None)


def get_trace_context() -> dict[str, Any]:
    """Return the current context, starting a fresh trace when there is none."""
    ctx = _log_context.get()
    if not ctx or not ctx.get("trace_id"):
        ctx = {"trace_id": uuid4().hex, "span_id": uuid4().hex[:16]}
        _log_context.set(ctx)
    return ctx


def set_trace_context(trace_id: str, span_id: str, **fields: Any) -> None:
    _log_context.set({"trace_id": trace_id, "span_id": span_id, **fields})


def bind_fields(**fields: Any) -> None:
    """Add ``fields`` to the current context, keeping its trace and span ids."""
    _log_context.set({**get_trace_context(), **fields})


def update_span_id(span_id: str) -> None:
    _log_context.set({**(_log_context.get() or {}), "span_id": span_id})
