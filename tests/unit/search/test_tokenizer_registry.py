"""Unit tests for token aggregation and the language registry."""

import pytest

from docstore_search.errors import UnsupportedLanguageError
from docstore_search.search import tokenizer as tokenizer_module
from docstore_search.search.english import EnglishTokenizer
from docstore_search.search.japanese import JapaneseTokenizer
from docstore_search.search.tokenizer import Token, get_tokenizer, register_tokenizer, tokenize


pytestmark = pytest.mark.unit

NODE_SENTENCE = "Node.js is a JavaScript runtime built on Chrome's V8 JavaScript engine."

JAPANESE_MORPHEMES = [
    ("Node", "名詞"),
    (".", "名詞"),
    ("js", "名詞"),
    (" ", "記号"),
    ("は", "助詞"),
    ("、", "記号"),
    ("Chrome", "名詞"),
    (" ", "記号"),
    ("の", "助詞"),
    ("V", "名詞"),
    ("8", "名詞"),
    ("JavaScript", "名詞"),
    ("エンジン", "名詞"),
    ("で", "助詞"),
    ("動作", "名詞"),
    ("する", "動詞"),
    ("JavaScript", "名詞"),
    ("環境", "名詞"),
    ("です", "助動詞"),
    ("。", "記号"),
]


@pytest.fixture
def isolated_registry(monkeypatch):
    """Give each test its own tokenizer registry and cache."""
    monkeypatch.setattr(tokenizer_module, "_TOKENIZER_FACTORIES", dict(tokenizer_module._TOKENIZER_FACTORIES))
    monkeypatch.setattr(tokenizer_module, "_TOKENIZERS", {})


def test_tokenize_english_sentence():
    tokens = tokenize("en", NODE_SENTENCE)

    assert tokens == [
        Token("Node.js", "nodej", (0,)),
        Token("JavaScript", "javascript", (1, 6)),
        Token("runtime", "runtim", (2,)),
        Token("built", "built", (3,)),
        Token("Chrome's", "chrome", (4,)),
        Token("V8", "v8", (5,)),
        Token("JavaScript", "javascript", (1, 6)),
        Token("engine", "engin", (7,)),
    ]


def test_tokenize_position_counts_match_non_stop_words():
    tokens = tokenize("en", NODE_SENTENCE)

    distinct = {token.normalized_word: token.positions for token in tokens}
    assert sum(len(positions) for positions in distinct.values()) == len(tokens) == 8
    for position, token in enumerate(tokens):
        assert position in token.positions


def test_tokenize_keeps_first_seen_surface_form():
    tokens = tokenize("en", "Searching searching SEARCH")

    assert [token.word for token in tokens] == ["Searching", "Searching", "Searching"]
    assert {token.normalized_word for token in tokens} == {"search"}
    assert tokens[0].positions == (0, 1, 2)


def test_tokenize_drops_stop_words_case_insensitively():
    tokens = tokenize("en", "The Dog IS on THE mat")

    assert [token.normalized_word for token in tokens] == ["dog", "mat"]
    assert [token.positions for token in tokens] == [(0,), (1,)]


def test_tokenize_empty_text():
    assert tokenize("en", "") == []
    assert tokenize("en", "the and of") == []


def test_tokenize_unknown_language_raises():
    with pytest.raises(UnsupportedLanguageError) as exc_info:
        tokenize("xx", "text")

    assert exc_info.value.language == "xx"
    assert isinstance(exc_info.value, ValueError)
    assert "en" in str(exc_info.value)


def test_get_tokenizer_caches_instances():
    assert get_tokenizer("en") is get_tokenizer("en")
    assert isinstance(get_tokenizer("en"), EnglishTokenizer)


def test_register_tokenizer_with_japanese_analyzer(isolated_registry):
    register_tokenizer("ja", lambda: JapaneseTokenizer(analyzer=lambda text: JAPANESE_MORPHEMES))

    tokens = tokenize("ja", "Node.js は、Chrome の V8 JavaScript エンジン で動作する JavaScript 環境です。")

    assert [(token.word, token.normalized_word, token.positions) for token in tokens] == [
        ("Node", "node", (0,)),
        ("js", "js", (1,)),
        ("Chrome", "chrome", (2,)),
        ("V", "v", (3,)),
        ("8", "8", (4,)),
        ("JavaScript", "javascript", (5, 8)),
        ("エンジン", "エンジン", (6,)),
        ("動作", "動作", (7,)),
        ("JavaScript", "javascript", (5, 8)),
        ("環境", "環境", (9,)),
    ]


def test_register_tokenizer_replaces_cached_instance(isolated_registry):
    first = get_tokenizer("en")

    register_tokenizer("en", EnglishTokenizer)

    assert get_tokenizer("en") is not first
