"""Ingestion pipeline: document text -> chunks -> embeddings -> frozen Corpus.

Ingestion is fail-fast: the first embedding failure aborts the build and no
partial corpus is returned.
"""

import logging
import time
from concurrent.futures import FIRST_COMPLETED, ThreadPoolExecutor, wait
from typing import Callable, Optional, Sequence

from rag.errors import RAGError, UpstreamFailure
from schemas.chunk import ChunkRecord
from schemas.source_document import SourceDocument
from vectorstore.chunker import Chunker
from vectorstore.store import Corpus

logger = logging.getLogger(__name__)

EmbedFn = Callable[[str], list[float]]


def _embed_one(embed_fn: EmbedFn, text: str) -> list[float]:
    try:
        return embed_fn(text)
    except RAGError:
        raise
    except Exception as e:
        raise UpstreamFailure("embedding", str(e)) from e


def _embed_sequential(chunks: Sequence[str], embed_fn: EmbedFn) -> list[list[float]]:
    vectors = []
    total = len(chunks)
    for i, text in enumerate(chunks):
        logger.info("Embedding chunk %d of %d", i + 1, total)
        vectors.append(_embed_one(embed_fn, text))
    return vectors


def _embed_parallel(chunks: Sequence[str], embed_fn: EmbedFn, workers: int) -> list[list[float]]:
    """Scatter embedding calls over a bounded pool and gather them by id."""
    total = len(chunks)
    vectors: list[Optional[list[float]]] = [None] * total

    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = {
            executor.submit(_embed_one, embed_fn, text): idx
            for idx, text in enumerate(chunks)
        }
        pending = set(futures)
        completed = 0
        while pending:
            done, pending = wait(pending, return_when=FIRST_COMPLETED)
            for future in done:
                error = future.exception()
                if error is not None:
                    for other in pending:
                        other.cancel()
                    logger.error(
                        "Embedding chunk %d failed; aborting ingestion", futures[future]
                    )
                    raise error
                vectors[futures[future]] = future.result()
                completed += 1
                logger.info("Embedding chunk %d of %d", completed, total)

    return vectors


def ingest(
    chunks: Sequence[str],
    embed_fn: EmbedFn,
    source_url: Optional[str] = None,
    workers: int = 1,
) -> Corpus:
    """Embed every chunk in order and return the frozen corpus.

    Args:
        chunks: Chunk texts; their position becomes the chunk id.
        embed_fn: Maps a text to its embedding vector.
        source_url: Provenance recorded on every chunk.
        workers: Concurrent embedding calls (1 = strictly sequential).

    Raises:
        UpstreamFailure: on the first failed embedding call.
    """
    if workers > 1 and len(chunks) > 1:
        vectors = _embed_parallel(chunks, embed_fn, workers)
    else:
        vectors = _embed_sequential(chunks, embed_fn)

    corpus = Corpus()
    for i, (text, vector) in enumerate(zip(chunks, vectors)):
        corpus.append(ChunkRecord(
            id=i,
            text=text,
            vector=vector,
            metadata=text,
            source_url=source_url,
        ))
    return corpus.freeze()


def ingest_document(
    document: SourceDocument,
    chunker: Chunker,
    embed_fn: EmbedFn,
    workers: int = 1,
) -> tuple[Corpus, dict]:
    """Chunk and embed a fetched document.

    Returns (corpus, stats) where stats records chunk counts and timings.
    """
    pipeline_start = time.perf_counter()

    logger.info("STEP 1/2: Chunking %s (%d words)...", document.url, document.word_count)
    t0 = time.perf_counter()
    chunks = chunker.split(document.text)
    chunk_elapsed = time.perf_counter() - t0
    if not chunks:
        logger.warning("No chunks produced for %s", document.url)
    logger.info("STEP 1/2 done: %d chunks in %.2fs", len(chunks), chunk_elapsed)

    logger.info("STEP 2/2: Generating embeddings for %d chunks...", len(chunks))
    t0 = time.perf_counter()
    corpus = ingest(chunks, embed_fn, source_url=document.url, workers=workers)
    embed_elapsed = time.perf_counter() - t0
    logger.info("STEP 2/2 done: %d embeddings in %.1fs", len(corpus), embed_elapsed)

    stats = {
        "chunks_created": len(chunks),
        "chunks_stored": len(corpus),
        "dimensions": sorted(corpus.dimensions),
        "timings": {
            "chunk_s": round(chunk_elapsed, 2),
            "embed_s": round(embed_elapsed, 1),
            "total_s": round(time.perf_counter() - pipeline_start, 1),
        },
    }
    logger.info("Ingestion complete: %s", stats)
    return corpus, stats
