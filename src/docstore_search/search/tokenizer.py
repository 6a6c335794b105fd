"""Language registry and token aggregation.

Each language provides an object implementing :class:`LanguageTokenizer`.
:func:`tokenize` is shared by all languages: it drops stop words, stems the
remaining words and groups positions by normalized form.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
import logging
from typing import Protocol

from docstore_search.errors import UnsupportedLanguageError
from docstore_search.search.english import EnglishTokenizer
from docstore_search.search.japanese import JapaneseTokenizer


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Token:
    """One occurrence of a word in a field.

    ``positions`` lists every position of ``normalized_word`` in the same
    text, so tokens sharing a normalized form share the same tuple.
    """

    word: str
    normalized_word: str
    positions: tuple[int, ...]


class LanguageTokenizer(Protocol):
    """Protocol implemented by per-language tokenizers."""

    def splitter(self, text: str) -> list[str]:  # pragma: no cover - interface definition
        ...

    def stop_words(self) -> frozenset[str]:  # pragma: no cover - interface definition
        ...

    def stemmer(self, word: str) -> str:  # pragma: no cover - interface definition
        ...


TokenizerFactory = Callable[[], LanguageTokenizer]

_TOKENIZER_FACTORIES: dict[str, TokenizerFactory] = {
    "en": EnglishTokenizer,
    "ja": JapaneseTokenizer,
}
_TOKENIZERS: dict[str, LanguageTokenizer] = {}


def register_tokenizer(language: str, factory: TokenizerFactory) -> None:
    """Register (or replace) the tokenizer factory for ``language``."""
    _TOKENIZER_FACTORIES[language] = factory
    _TOKENIZERS.pop(language, None)


def available_languages() -> list[str]:
    return sorted(_TOKENIZER_FACTORIES)


def get_tokenizer(language: str) -> LanguageTokenizer:
    """Return the cached tokenizer for ``language``, building it on first use."""
    tokenizer = _TOKENIZERS.get(language)
    if tokenizer is not None:
        return tokenizer
    factory = _TOKENIZER_FACTORIES.get(language)
    if factory is None:
        raise UnsupportedLanguageError(language, available_languages())
    tokenizer = factory()
    _TOKENIZERS[language] = tokenizer
    logger.debug("Built tokenizer for language %s", language)
    return tokenizer


def tokenize(language: str, text: str) -> list[Token]:
    """Split ``text`` into one token per non-stop-word position.

    Args:
        language: Registered language identifier (``en``, ``ja``)
        text: Field text

    Returns:
        Tokens in text order. ``len(result)`` equals the number of
        non-stop-words and ``result[i]`` is the word at position ``i``.

    Raises:
        UnsupportedLanguageError: If no tokenizer is registered for ``language``
    """
    tokenizer = get_tokenizer(language)
    stop_words = tokenizer.stop_words()

    surfaces: dict[str, str] = {}
    positions: dict[str, list[int]] = {}
    order: list[str] = []
    for word in tokenizer.splitter(text):
        lowered = word.lower()
        if lowered in stop_words:
            continue
        normalized = tokenizer.stemmer(lowered)
        if normalized not in positions:
            surfaces[normalized] = word
            positions[normalized] = []
        positions[normalized].append(len(order))
        order.append(normalized)

    frozen = {normalized: tuple(offsets) for normalized, offsets in positions.items()}
    return [Token(surfaces[normalized], normalized, frozen[normalized]) for normalized in order]
