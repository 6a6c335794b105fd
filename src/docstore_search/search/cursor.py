"""Opaque pagination cursors.

A cursor carries the ordering field names of a query and the values those
fields had on the last returned record. It is an orjson payload encoded as
URL-safe base64 without padding. Datetimes and bytes are tagged so they decode
back to the same types.
"""

from __future__ import annotations

import base64
import binascii
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

import orjson

from docstore_search.errors import MalformedCursorError


Cursor = str

_DATETIME_TAG = "$d"
_BYTES_TAG = "$b"


@dataclass(frozen=True)
class CursorInfo:
    """Decoded cursor: ordering fields and the last record's values for them."""

    fields: list[str]
    values: dict[str, Any] = field(default_factory=dict)


def _encode_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return {_DATETIME_TAG: value.isoformat()}
    if isinstance(value, (bytes, bytearray)):
        return {_BYTES_TAG: base64.b64encode(bytes(value)).decode("ascii")}
    if isinstance(value, (list, tuple)):
        return [_encode_value(item) for item in value]
    if isinstance(value, Mapping):
        return {str(key): _encode_value(item) for key, item in value.items()}
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    raise TypeError(f"Cursor values of type {type(value).__name__!r} are not supported")


def _decode_value(value: Any) -> Any:
    if isinstance(value, list):
        return [_decode_value(item) for item in value]
    if isinstance(value, dict):
        if len(value) == 1 and _DATETIME_TAG in value:
            return datetime.fromisoformat(value[_DATETIME_TAG])
        if len(value) == 1 and _BYTES_TAG in value:
            return base64.b64decode(value[_BYTES_TAG], validate=True)
        return {key: _decode_value(item) for key, item in value.items()}
    return value


def build_cursor(fields: Sequence[str], values: Mapping[str, Any]) -> Cursor:
    """Encode ordering fields and their values into a cursor.

    Raises:
        ValueError: If a field has no value or appears twice
        TypeError: If a value cannot be encoded
    """
    if len(set(fields)) != len(fields):
        raise ValueError(f"Duplicate cursor fields: {list(fields)}")
    missing = [name for name in fields if name not in values]
    if missing:
        raise ValueError(f"Missing cursor values for fields: {missing}")

    payload = {"f": list(fields), "v": {name: _encode_value(values[name]) for name in fields}}
    return base64.urlsafe_b64encode(orjson.dumps(payload)).rstrip(b"=").decode("ascii")


def parse_cursor(cursor: Cursor) -> CursorInfo:
    """Decode a cursor produced by :func:`build_cursor`.

    Raises:
        MalformedCursorError: If the cursor is not a structurally valid token
    """
    if not isinstance(cursor, str) or not cursor:
        raise MalformedCursorError("Cursor must be a non-empty string")
    try:
        raw = base64.urlsafe_b64decode(cursor + "=" * (-len(cursor) % 4))
        payload = orjson.loads(raw)
    except (binascii.Error, ValueError, orjson.JSONDecodeError) as exc:
        raise MalformedCursorError(f"Cursor cannot be decoded: {exc}") from exc

    if not isinstance(payload, dict) or set(payload) != {"f", "v"}:
        raise MalformedCursorError("Cursor payload must hold exactly 'f' and 'v'")
    fields, values = payload["f"], payload["v"]
    if not isinstance(fields, list) or not all(isinstance(name, str) for name in fields):
        raise MalformedCursorError("Cursor fields must be a list of strings")
    if len(set(fields)) != len(fields):
        raise MalformedCursorError("Cursor fields must be unique")
    if not isinstance(values, dict) or set(values) != set(fields):
        raise MalformedCursorError("Cursor values must match cursor fields")

    try:
        decoded = {name: _decode_value(values[name]) for name in fields}
    except (binascii.Error, ValueError, TypeError) as exc:
        raise MalformedCursorError(f"Cursor value cannot be decoded: {exc}") from exc
    return CursorInfo(fields=fields, values=decoded)


class CursorBuilder:
    """Accumulates ordering fields one at a time, in query order."""

    def __init__(self) -> None:
        self._fields: list[str] = []
        self._values: dict[str, Any] = {}

    def add(self, field_path: str, value: Any) -> CursorBuilder:
        if field_path in self._values:
            raise ValueError(f"Cursor field already added: {field_path}")
        self._fields.append(field_path)
        self._values[field_path] = value
        return self

    def build(self) -> Cursor:
        return build_cursor(self._fields, self._values)
