"""Query string parser.

Syntax::

    dog "welsh corgi" label:"show dog" -owner:bob like:>=10 created:<2021-01-01

Bare or quoted terms are keywords. ``name:value`` terms are field filters; a
leading ``-`` on the name negates them. Values starting with ``>``, ``<``,
``>=`` or ``<=`` followed by an integer or an ISO-8601 date become range
filters on numbers or dates.
"""

from __future__ import annotations

from datetime import datetime, timezone
import re
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


FilterOperator = Literal["==", "!=", ">", ">=", "<", "<="]
FilterValueType = Literal["string", "number", "date"]

_TERM_PATTERN = re.compile(
    r"""(\S+:'(?:[^'\\]|\\.)*')"""
    r"""|(\S+:"(?:[^"\\]|\\.)*")"""
    r"""|(-?"(?:[^"\\]|\\.)*")"""
    r"""|(-?'(?:[^'\\]|\\.)*')"""
    r"""|\S+"""
)
_RANGE_OPERATORS = (">=", "<=", ">", "<")
_INTEGER = re.compile(r"-?[0-9]+")


class FieldFilter(BaseModel):
    """A typed predicate on one filterable field."""

    model_config = ConfigDict(frozen=True)

    name: str
    type: FilterValueType
    operator: FilterOperator
    value: int | float | datetime | str


class SearchQuery(BaseModel):
    """Parsed search query.

    ``fields`` is None when the query has no filters at all, which is distinct
    from an empty list of filters.
    """

    model_config = ConfigDict(frozen=True)

    keywords: list[str] = Field(default_factory=list)
    fields: list[FieldFilter] | None = None


def _unquote(text: str) -> str:
    if len(text) >= 2 and text[0] == text[-1] and text[0] in "'\"":
        return text[1:-1]
    return text


def _parse_keyword(term: str) -> str:
    if term.startswith("-") and len(term) > 1 and term[1] in "'\"":
        return "-" + _unquote(term[1:])
    return _unquote(term)


def parse_datetime(text: str) -> datetime | None:
    """Parse an ISO-8601 timestamp, taking naive values as UTC; None if unparsable."""
    try:
        value = datetime.fromisoformat(text)
    except ValueError:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def _parse_filter(term: str) -> FieldFilter:
    name, value = term.split(":", 1)
    operator: FilterOperator = "=="
    if name.startswith("-"):
        name = name[1:]
        operator = "!="

    comparator = next((candidate for candidate in _RANGE_OPERATORS if value.startswith(candidate)), None)
    if comparator is not None:
        remainder = value[len(comparator) :]
        if _INTEGER.fullmatch(remainder):
            return FieldFilter(name=name, type="number", operator=comparator, value=int(remainder))
        moment = parse_datetime(remainder)
        if moment is not None:
            return FieldFilter(name=name, type="date", operator=comparator, value=moment)

    return FieldFilter(name=name, type="string", operator=operator, value=_unquote(value))


def parse_query(raw: str) -> SearchQuery:
    """Parse a query string into keywords and field filters.

    Filters keep their order of appearance. Blank input yields a query with no
    keywords and no filters.
    """
    if not raw or not raw.strip():
        return SearchQuery()

    keywords: list[str] = []
    fields: list[FieldFilter] | None = None
    for match in _TERM_PATTERN.finditer(raw):
        term = match.group(0)
        if match.group(3) or match.group(4) or ":" not in term:
            keyword = _parse_keyword(term)
            if keyword:
                keywords.append(keyword)
            continue
        if fields is None:
            fields = []
        fields.append(_parse_filter(term))

    return SearchQuery(keywords=keywords, fields=fields)
