"""Japanese tokenizer backed by a morphological analyzer.

Japanese text is not whitespace-delimited, so splitting is delegated to an
analyzer that yields ``(surface, part_of_speech)`` morphemes. The default
analyzer is janome (install the ``ja`` extra); any callable with the same
shape can be injected instead.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
import logging


logger = logging.getLogger(__name__)

Morpheme = tuple[str, str]
Analyzer = Callable[[str], Iterable[Morpheme]]

# Parts of speech that never carry search meaning
_DROPPED_PARTS_OF_SPEECH = frozenset({"助詞", "記号"})

STOP_WORDS: frozenset[str] = frozenset(
    {
        "あそこ", "あっ", "あの", "あのかた", "あの人", "あり", "あります", "ある",
        "あれ", "い", "いう", "います", "いる", "う", "うち", "え", "お", "および",
        "おり", "おります", "か", "かつて", "から", "が", "き", "ここ", "こちら",
        "こと", "この", "これ", "これら", "さ", "さらに", "し", "しかし", "する",
        "ず", "せ", "せる", "そこ", "そして", "その", "その他", "その後", "それ",
        "それぞれ", "それで", "た", "ただし", "たち", "ため", "たり", "だ", "だっ",
        "だれ", "つ", "て", "で", "でき", "できる", "です", "では", "でも", "と",
        "という", "といった", "とき", "ところ", "として", "とともに", "とも",
        "と共に", "どこ", "どの", "な", "ない", "なお", "なかっ", "ながら", "なく",
        "なっ", "など", "なに", "なら", "なり", "なる", "なん", "に", "において",
        "における", "について", "にて", "によって", "により", "による", "に対して",
        "に対する", "に関する", "の", "ので", "のみ", "は", "ば", "へ", "ほか",
        "ほとんど", "ほど", "ます", "また", "または", "まで", "も", "もの", "ものの",
        "や", "よう", "より", "ら", "られ", "られる", "れ", "れる", "を", "ん", "何",
        "及び", "彼", "彼女", "我々", "特に", "私", "私達", "貴方", "貴方方",
    }
)  # fmt: skip


def janome_analyzer() -> Analyzer:
    """Build an analyzer from janome's dictionary-backed tokenizer."""
    from janome.tokenizer import Tokenizer

    tokenizer = Tokenizer()
    logger.debug("Loaded janome tokenizer")

    def analyze(text: str) -> list[Morpheme]:
        return [(token.surface, token.part_of_speech.split(",")[0]) for token in tokenizer.tokenize(text)]

    return analyze


class JapaneseTokenizer:
    """Tokenizer for Japanese text; words are indexed as analyzed, without stemming."""

    language = "ja"

    def __init__(self, analyzer: Analyzer | None = None) -> None:
        self._analyzer = analyzer if analyzer is not None else janome_analyzer()

    def splitter(self, text: str) -> list[str]:
        words: list[str] = []
        for surface, part_of_speech in self._analyzer(text):
            if part_of_speech in _DROPPED_PARTS_OF_SPEECH or surface == ".":
                continue
            if surface.strip():
                words.append(surface)
        return words

    def stop_words(self) -> frozenset[str]:
        return STOP_WORDS

    def stemmer(self, word: str) -> str:
        return word
