"""Whitespace-token sliding-window chunker.

Splits text into windows of ``window_size`` tokens where adjacent windows
share ``overlap`` tokens:

  "A B C D E F", window 3, overlap 1  ->  ["A B C", "C D E", "E F"]

The output order defines chunk ids, so the split is a pure function of its
inputs.
"""

import logging

from rag.errors import InvalidConfiguration

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_SIZE = 100
DEFAULT_OVERLAP = 10


class Chunker:
    """Fixed-size overlapping window splitter."""

    def __init__(self, window_size: int = DEFAULT_WINDOW_SIZE, overlap: int = DEFAULT_OVERLAP):
        if window_size <= 0:
            raise InvalidConfiguration(f"window_size must be positive, got {window_size}")
        if overlap < 0:
            raise InvalidConfiguration(f"overlap must not be negative, got {overlap}")
        if overlap >= window_size:
            raise InvalidConfiguration(
                f"overlap ({overlap}) must be smaller than window_size ({window_size})"
            )
        self.window_size = window_size
        self.overlap = overlap

    @property
    def step(self) -> int:
        return self.window_size - self.overlap

    def split(self, text: str) -> list[str]:
        """Split ``text`` into overlapping windows joined by single spaces."""
        tokens = text.split()
        chunks = []

        for start in range(0, len(tokens), self.step):
            window = tokens[start:start + self.window_size]
            chunks.append(" ".join(window))

        logger.debug(
            "Split %d tokens into %d chunks (window=%d, overlap=%d)",
            len(tokens), len(chunks), self.window_size, self.overlap,
        )
        return chunks


def chunk(text: str, window_size: int = DEFAULT_WINDOW_SIZE, overlap: int = DEFAULT_OVERLAP) -> list[str]:
    """Convenience wrapper around ``Chunker(window_size, overlap).split(text)``."""
    return Chunker(window_size=window_size, overlap=overlap).split(text)
