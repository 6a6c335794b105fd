"""Exceptions raised by the full-text search engine."""

from __future__ import annotations


class FullTextSearchError(Exception):
    """Base class for engine errors."""


class DocumentNotFoundError(FullTextSearchError, LookupError):
    """Raised when the document to index or remove does not exist."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Document does not exist: {path}")
        self.path = path


class EmptyDocumentError(FullTextSearchError, ValueError):
    """Raised when the document to index or remove has no fields."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Document is empty: {path}")
        self.path = path


class UnsupportedLanguageError(FullTextSearchError, ValueError):
    """Raised when no tokenizer is registered for a language identifier."""

    def __init__(self, language: str, available: list[str] | None = None) -> None:
        message = f"Unsupported language: {language!r}"
        if available:
            message += f". Available: {available}"
        super().__init__(message)
        self.language = language


class UnsupportedFieldTypeError(FullTextSearchError, TypeError):
    """Raised when a filterable extra field holds an unsupported value kind."""

    def __init__(self, field_name: str, value: object) -> None:
        super().__init__(f"Unsupported field type {type(value).__name__!r} for field {field_name!r}")
        self.field_name = field_name


class AlreadyCommittedError(FullTextSearchError, RuntimeError):
    """Raised when a batched writer is committed twice."""


class MalformedCursorError(FullTextSearchError, ValueError):
    """Raised when a pagination cursor cannot be decoded."""
