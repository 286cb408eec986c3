"""Keyword retrieval over handbook chunks.

Scoring is plain term frequency: every query term longer than three
characters contributes its number of literal occurrences in a chunk.
"""

from __future__ import annotations

from typing import List, Sequence, Tuple

PUNCTUATION = ".,?!;:()\"'"
_STRIP_TABLE = str.maketrans("", "", PUNCTUATION)
MIN_TERM_LENGTH = 4


def query_terms(query: str) -> List[str]:
    terms: List[str] = []
    for token in query.lower().split():
        if len(token) < MIN_TERM_LENGTH:
            continue
        term = token.translate(_STRIP_TABLE)
        if term and term not in terms:
            terms.append(term)
    return terms


def score_chunks(terms: Sequence[str], chunks: Sequence[str]) -> List[Tuple[str, int]]:
    scored: List[Tuple[str, int]] = []
    for chunk in chunks:
        chunk_lower = chunk.lower()
        # str.count is literal and non-overlapping
        score = sum(chunk_lower.count(term) for term in terms)
        scored.append((chunk, score))
    return scored


def retrieve(query: str, chunks: Sequence[str], top_k: int = 3) -> List[str]:
    """Return up to ``top_k`` chunks ranked by keyword score.

    Chunks scoring zero are dropped; ties keep document order.
    """
    terms = query_terms(query)
    if not terms:
        return []

    matches = [item for item in score_chunks(terms, chunks) if item[1] > 0]
    matches.sort(key=lambda item: item[1], reverse=True)
    return [chunk for chunk, _ in matches[:top_k]]
