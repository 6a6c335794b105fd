"""Type inference for filterable extra fields."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import date, datetime, time, timezone
from enum import Enum
from typing import Any

from docstore_search.errors import UnsupportedFieldTypeError
from docstore_search.store.base import SERVER_TIMESTAMP


class FieldKind(str, Enum):
    """Value kind recorded in a Field Type Entry."""

    STRING = "string"
    NUMBER = "number"
    ARRAY = "array"
    DATE = "date"


def infer_field(name: str, value: Any) -> tuple[FieldKind, Any]:
    """Return the kind of ``value`` and the form it is stored in.

    Arrays are stored sorted so equality filters compare them as sets.
    Naive datetimes and plain dates are taken as UTC.

    Raises:
        UnsupportedFieldTypeError: For None, booleans and any other kind
    """
    if isinstance(value, str):
        return FieldKind.STRING, value
    if isinstance(value, bool):
        raise UnsupportedFieldTypeError(name, value)
    if isinstance(value, (int, float)):
        return FieldKind.NUMBER, value
    if isinstance(value, (list, tuple)):
        try:
            return FieldKind.ARRAY, sorted(value)
        except TypeError as exc:
            raise UnsupportedFieldTypeError(name, value) from exc
    if value is SERVER_TIMESTAMP:
        return FieldKind.DATE, value
    if isinstance(value, datetime):
        return FieldKind.DATE, value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)
    if isinstance(value, date):
        return FieldKind.DATE, datetime.combine(value, time.min, tzinfo=timezone.utc)
    raise UnsupportedFieldTypeError(name, value)


def project_fields(data: Mapping[str, Any], names: Iterable[str] | None) -> dict[str, tuple[FieldKind, Any]]:
    """Infer every requested field present in ``data``; absent names are skipped."""
    projected: dict[str, tuple[FieldKind, Any]] = {}
    for name in names or ():
        if name in data:
            projected[name] = infer_field(name, data[name])
    return projected
