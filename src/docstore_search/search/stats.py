"""TF-IDF scoring."""

from __future__ import annotations

import math


def calculate_idf(docs_with_term: int, total_docs: int) -> float:
    """Return ``ln(total_docs / docs_with_term)``, or 1.0 when that is not a usable weight.

    The fallback covers a term present in every document (log is 0) and
    inconsistent counters (zero, negative or non-finite results).
    """
    try:
        idf = math.log(total_docs / docs_with_term)
    except (ZeroDivisionError, ValueError):
        return 1.0
    if not math.isfinite(idf) or idf <= 0:
        return 1.0
    return idf


def calc_score(tf: int, total_terms: int, docs_with_term: int, total_docs: int) -> float:
    """Return the TF-IDF score of a term within one field.

    Args:
        tf: Occurrences of the term in the field
        total_terms: Non-stop-words in the field
        docs_with_term: Documents containing the term, this one included
        total_docs: Documents in the corpus, this one included
    """
    if total_terms <= 0:
        return 0.0
    return (tf / total_terms) * calculate_idf(docs_with_term, total_docs)
