"""Fixed-size text chunking for the handbook."""

from __future__ import annotations

from typing import List


def chunk_text(text: str, max_size: int = 800) -> List[str]:
    """Greedily pack whitespace-separated words into chunks of at most ``max_size``.

    Words are re-joined with single spaces. A single word longer than
    ``max_size`` is emitted as its own oversized chunk.
    """
    if max_size <= 0:
        raise ValueError("max_size must be positive")

    chunks: List[str] = []
    current = ""
    for word in text.split():
        if not current:
            current = word
        elif len(current) + 1 + len(word) <= max_size:
            current = f"{current} {word}"
        else:
            chunks.append(current)
            current = word
    if current:
        chunks.append(current)
    return chunks
