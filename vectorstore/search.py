"""Cosine similarity and linear-scan nearest-chunk search.

The corpus of a single web page is small, so every query scans all chunks
once (O(chunks x dimensions)). ``search`` has the ``SearchFn`` signature so
an indexed implementation can be swapped in through the Retriever.
"""

import logging
import math
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from rag.errors import DegenerateVector, InvalidConfiguration, NotFound
from vectorstore.store import Corpus

logger = logging.getLogger(__name__)

RETRIEVAL_FLOOR = 0.0


@dataclass
class SearchResult:
    """Best matching chunk for a query, or ``found=False`` when none qualifies."""
    chunk: str
    score: float
    found: bool
    chunk_id: Optional[int] = None


SearchFn = Callable[[Corpus, Sequence[float]], SearchResult]


def cosine_similarity(a: Sequence[float], b: Sequence[float], strict_dimensions: bool = False) -> float:
    """Cosine similarity of two vectors.

    For vectors of unequal length the dot product covers only the common
    prefix while each norm covers the whole vector, which gives a damped
    value rather than a true cosine. Pass ``strict_dimensions=True`` to
    reject such pairs instead.

    Raises:
        DegenerateVector: if either vector has zero magnitude.
        InvalidConfiguration: on a length mismatch in strict mode.
    """
    if strict_dimensions and len(a) != len(b):
        raise InvalidConfiguration(f"vector dimensions differ: {len(a)} != {len(b)}")

    common = min(len(a), len(b))
    dot = sum(a[i] * b[i] for i in range(common))
    norm_a = sum(x * x for x in a)
    norm_b = sum(x * x for x in b)

    if norm_a == 0 or norm_b == 0:
        raise DegenerateVector("vectors should not be null (all zeros)")

    return dot / (math.sqrt(norm_a) * math.sqrt(norm_b))


def search(
    corpus: Corpus,
    query: Sequence[float],
    floor: float = RETRIEVAL_FLOOR,
    strict_dimensions: bool = False,
    require: bool = False,
) -> SearchResult:
    """Return the chunk with the strictly highest score above ``floor``.

    Ties keep the earliest chunk. When nothing scores above the floor the
    result has ``found=False`` and an empty chunk, unless ``require`` is set,
    in which case ``NotFound`` is raised.
    """
    best = SearchResult(chunk="", score=floor, found=False)
    mismatched = 0

    for record in corpus:
        if record.dimensions != len(query):
            mismatched += 1
        score = cosine_similarity(record.vector, query, strict_dimensions=strict_dimensions)
        if score > best.score:
            best = SearchResult(chunk=record.text, score=score, found=True, chunk_id=record.id)

    if mismatched:
        logger.warning(
            "%d of %d chunks differ in dimension from the query (%d); scores are approximate",
            mismatched, len(corpus), len(query),
        )

    if not best.found:
        if require:
            raise NotFound(f"no chunk scored above {floor}")
        best.score = 0.0
        logger.info("No chunk scored above %.2f; answering without context", floor)
    else:
        logger.debug("Best chunk id=%d score=%.4f", best.chunk_id, best.score)

    return best
