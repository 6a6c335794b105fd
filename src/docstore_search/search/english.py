"""English tokenizer: whitespace splitting, stop words and the Snowball stemmer.

The stemmer follows the Snowball English (Porter2) algorithm: an exception
table, the R1/R2 regions, steps 0 through 5 and the ``Y`` consonant marker.
See https://snowballstem.org/algorithms/english/stemmer.html.
"""

from __future__ import annotations

import re


STOP_WORDS: frozenset[str] = frozenset(
    {
        # pronouns
        "i", "me", "my", "myself", "we", "us", "our", "ours", "ourselves",
        "you", "your", "yours", "yourself", "yourselves", "he", "him", "his",
        "himself", "she", "her", "hers", "herself", "it", "its", "itself",
        "they", "them", "their", "theirs", "themselves", "what", "which",
        "who", "whom", "this", "that", "these", "those",
        # verbs
        "am", "is", "are", "was", "were", "be", "been", "being", "have", "has",
        "had", "having", "do", "does", "did", "doing", "will", "would", "shall",
        "should", "can", "could", "may", "might", "must", "ought",
        # contractions
        "i'm", "you're", "he's", "she's", "it's", "we're", "they're", "i've",
        "you've", "we've", "they've", "i'd", "you'd", "he'd", "she'd", "we'd",
        "they'd", "i'll", "you'll", "he'll", "she'll", "we'll", "they'll",
        "isn't", "aren't", "wasn't", "weren't", "hasn't", "haven't", "hadn't",
        "doesn't", "don't", "didn't", "won't", "wouldn't", "shan't",
        "shouldn't", "can't", "cannot", "couldn't", "mustn't", "let's",
        "that's", "who's", "what's", "here's", "there's", "when's", "where's",
        "why's", "how's", "daren't", "needn't", "doubtful", "oughtn't",
        "mightn't",
        # articles, conjunctions and prepositions
        "a", "an", "the", "and", "but", "if", "or", "because", "as", "until",
        "while", "of", "at", "by", "for", "with", "about", "against",
        "between", "into", "through", "during", "before", "after", "above",
        "below", "to", "from", "up", "down", "in", "out", "on", "off", "over",
        "under", "again", "further", "then", "once", "here", "there", "when",
        "where", "why", "how", "all", "any", "both", "each", "few", "more",
        "most", "other", "some", "such", "no", "nor", "not", "only", "own",
        "same", "so", "than", "too", "very",
        # frequent low-signal words
        "one", "every", "least", "less", "many", "now", "ever", "never", "say",
        "says", "said", "also", "get", "go", "goes", "just", "made", "make",
        "put", "see", "seen", "whether", "like", "well", "back", "even",
        "still", "way", "take", "since", "another", "however", "two", "three",
        "four", "five", "first", "second", "new", "old", "high", "long",
    }
)  # fmt: skip

_TRAILING_PUNCTUATION = re.compile(r'[.,:"]+$')
_WHITESPACE = re.compile(r"\s+")
_NON_ALPHA = re.compile(r"[^a-z']")

_VOWELS = frozenset("aeiouy")
_DOUBLES = ("bb", "dd", "ff", "gg", "mm", "nn", "pp", "rr", "tt")
_LI_ENDINGS = frozenset("cdeghkmnrt")
_R1_PREFIXES = ("gener", "commun", "arsen")

_EXCEPTIONS = {
    "skis": "ski",
    "skies": "sky",
    "dying": "die",
    "lying": "lie",
    "tying": "tie",
    "idly": "idl",
    "gently": "gentl",
    "ugly": "ugli",
    "early": "earli",
    "only": "onli",
    "singly": "singl",
    # invariant forms
    "sky": "sky",
    "news": "news",
    "howe": "howe",
    "atlas": "atlas",
    "cosmos": "cosmos",
    "bias": "bias",
    "andes": "andes",
}

_POST_STEP_1A_INVARIANTS = frozenset(
    {"inning", "outing", "canning", "herring", "earring", "proceed", "exceed", "succeed"}
)

_STEP_2_SUFFIXES = {
    "ization": "ize",
    "ational": "ate",
    "fulness": "ful",
    "ousness": "ous",
    "iveness": "ive",
    "tional": "tion",
    "biliti": "ble",
    "lessli": "less",
    "entli": "ent",
    "ation": "ate",
    "alism": "al",
    "aliti": "al",
    "ousli": "ous",
    "iviti": "ive",
    "fulli": "ful",
    "enci": "ence",
    "anci": "ance",
    "abli": "able",
    "izer": "ize",
    "ator": "ate",
    "alli": "al",
    "bli": "ble",
    "ogi": "og",
    "li": "",
}

_STEP_3_SUFFIXES = {
    "ational": "ate",
    "tional": "tion",
    "alize": "al",
    "icate": "ic",
    "iciti": "ic",
    "ative": "",
    "ical": "ic",
    "ness": "",
    "ful": "",
}

_STEP_4_SUFFIXES = (
    "ement", "ance", "ence", "able", "ible", "ment", "ant", "ent", "ism",
    "ate", "iti", "ous", "ive", "ize", "ion", "al", "er", "ic",
)  # fmt: skip


def _longest_suffix(word: str, suffixes) -> str | None:
    best = None
    for suffix in suffixes:
        if word.endswith(suffix) and (best is None or len(suffix) > len(best)):
            best = suffix
    return best


def _region_after(word: str, start: int) -> int:
    """Index after the first non-vowel that follows a vowel, searching from ``start``."""
    for index in range(start + 1, len(word)):
        if word[index] not in _VOWELS and word[index - 1] in _VOWELS:
            return index + 1
    return len(word)


def _ends_with_short_syllable(word: str) -> bool:
    if len(word) == 2:
        return word[0] in _VOWELS and word[1] not in _VOWELS
    if len(word) > 2:
        return (
            word[-3] not in _VOWELS
            and word[-2] in _VOWELS
            and word[-1] not in _VOWELS
            and word[-1] not in "wxY"
        )
    return False


def _mark_consonant_y(word: str) -> str:
    chars = list(word)
    for index, char in enumerate(chars):
        if char == "y" and (index == 0 or chars[index - 1] in _VOWELS):
            chars[index] = "Y"
    return "".join(chars)


def stem(word: str) -> str:
    """Return the stem of a lower-cased word.

    One Snowball pass can leave a word that stems further (``accelerated`` ->
    ``acceler`` -> ``accel``), so passes repeat until the word is stable and
    ``stem(stem(word)) == stem(word)`` holds. Words shorter than three
    characters are returned unchanged. Characters outside ``[a-z']`` are
    dropped before stemming; a word consisting only of such characters is
    returned as is.
    """
    # A pass that changes the word shortens it or replaces a y with i or an i with e,
    # so real words settle within a few passes.
    for _ in range(3 * len(word) + 1):
        stemmed = _stem_once(word)
        if stemmed == word:
            break
        word = stemmed
    return word


def _stem_once(word: str) -> str:
    if len(word) < 3:
        return word
    if word in _EXCEPTIONS:
        return _EXCEPTIONS[word]

    cleaned = _NON_ALPHA.sub("", word.lower().replace("’", "'")).lstrip("'")
    if not cleaned:
        return word.lower()
    if len(cleaned) < 3:
        return cleaned

    word = _mark_consonant_y(cleaned)
    if word.startswith(_R1_PREFIXES):
        r1 = next(len(prefix) for prefix in _R1_PREFIXES if word.startswith(prefix))
    else:
        r1 = _region_after(word, 0)
    r2 = _region_after(word, r1)

    # Step 0: possessives
    suffix = _longest_suffix(word, ("'s'", "'s", "'"))
    if suffix:
        word = word[: -len(suffix)]

    # Step 1a: plurals
    suffix = _longest_suffix(word, ("sses", "ied", "ies", "us", "ss", "s"))
    if suffix == "sses":
        word = word[:-2]
    elif suffix in ("ied", "ies"):
        word = word[:-3] + ("i" if len(word) > 4 else "ie")
    elif suffix == "s" and any(char in _VOWELS for char in word[:-2]):
        word = word[:-1]

    if word in _POST_STEP_1A_INVARIANTS:
        return word

    # Step 1b: verb endings
    suffix = _longest_suffix(word, ("eedly", "ingly", "edly", "eed", "ing", "ed"))
    if suffix in ("eed", "eedly"):
        if len(word) - len(suffix) >= r1:
            word = word[: -len(suffix)] + "ee"
    elif suffix:
        base = word[: -len(suffix)]
        if any(char in _VOWELS for char in base):
            word = base
            if word.endswith(("at", "bl", "iz")):
                word += "e"
            elif word.endswith(_DOUBLES):
                word = word[:-1]
            elif r1 >= len(word) and _ends_with_short_syllable(word):
                word += "e"

    # Step 1c
    if len(word) > 2 and word[-1] in "yY" and word[-2] not in _VOWELS:
        word = word[:-1] + "i"

    # Step 2: derivational suffixes in R1
    suffix = _longest_suffix(word, _STEP_2_SUFFIXES)
    if suffix and len(word) - len(suffix) >= r1:
        base = word[: -len(suffix)]
        if suffix == "ogi":
            if base.endswith("l"):
                word = base + "og"
        elif suffix == "li":
            if base and base[-1] in _LI_ENDINGS:
                word = base
        else:
            word = base + _STEP_2_SUFFIXES[suffix]

    # Step 3
    suffix = _longest_suffix(word, _STEP_3_SUFFIXES)
    if suffix and len(word) - len(suffix) >= r1:
        if suffix != "ative" or len(word) - len(suffix) >= r2:
            word = word[: -len(suffix)] + _STEP_3_SUFFIXES[suffix]

    # Step 4: suffixes removed from R2
    suffix = _longest_suffix(word, _STEP_4_SUFFIXES)
    if suffix and len(word) - len(suffix) >= r2:
        base = word[: -len(suffix)]
        if suffix != "ion" or base.endswith(("s", "t")):
            word = base

    # Step 5: final e and ll
    if word.endswith("e"):
        position = len(word) - 1
        if position >= r2 or (position >= r1 and not _ends_with_short_syllable(word[:-1])):
            word = word[:-1]
    elif word.endswith("ll") and len(word) - 1 >= r2:
        word = word[:-1]

    return word.replace("Y", "y")


class EnglishTokenizer:
    """Whitespace-delimited tokenizer for English text."""

    language = "en"

    def splitter(self, text: str) -> list[str]:
        words = (_TRAILING_PUNCTUATION.sub("", word) for word in _WHITESPACE.split(text.strip()))
        return [word for word in words if word]

    def stop_words(self) -> frozenset[str]:
        return STOP_WORDS

    def stemmer(self, word: str) -> str:
        return stem(word)
