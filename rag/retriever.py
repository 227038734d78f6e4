"""Query-time retrieval: embed the query, then search the corpus."""

import logging
from typing import Callable

from rag.errors import InvalidConfiguration, RAGError, UpstreamFailure
from vectorstore.search import SearchFn, SearchResult, search
from vectorstore.store import Corpus

logger = logging.getLogger(__name__)


class Retriever:
    """Single-best-chunk retrieval over a frozen corpus.

    ``search_fn`` defaults to the linear cosine scan; any callable with the
    same signature (e.g. an approximate index) can be passed instead.
    """

    def __init__(
        self,
        corpus: Corpus,
        embed_fn: Callable[[str], list[float]],
        search_fn: SearchFn = search,
    ):
        if not corpus.frozen:
            raise InvalidConfiguration("corpus must be frozen before it is searched")
        self.corpus = corpus
        self.embed_fn = embed_fn
        self.search_fn = search_fn

    def retrieve(self, query: str) -> SearchResult:
        try:
            vector = self.embed_fn(query)
        except RAGError:
            raise
        except Exception as e:
            raise UpstreamFailure("embedding", str(e)) from e

        result = self.search_fn(self.corpus, vector)
        if result.found:
            logger.info("Retrieved chunk %d (score %.4f)", result.chunk_id, result.score)
        return result
