"""
Test suite for cosine similarity and linear-scan search.
"""

import logging
import math

import pytest

from rag.errors import DegenerateVector, InvalidConfiguration, NotFound
from schemas.chunk import ChunkRecord
from vectorstore.search import SearchResult, cosine_similarity, search
from vectorstore.store import Corpus


def _corpus(*vectors) -> Corpus:
    records = [
        ChunkRecord(id=i, text=f"chunk {i}", vector=list(v), metadata=f"chunk {i}")
        for i, v in enumerate(vectors)
    ]
    return Corpus(records).freeze()


class TestCosineSimilarity:
    @pytest.mark.parametrize("v", [[1.0], [3.0, 4.0], [0.2, -0.7, 1.5, 9.0], [1e-3] * 512])
    def test_vector_with_itself_is_one(self, v) -> None:
        assert cosine_similarity(v, v) == pytest.approx(1.0)

    @pytest.mark.parametrize("v", [[1.0], [3.0, 4.0], [0.2, -0.7, 1.5, 9.0]])
    def test_vector_with_its_negation_is_minus_one(self, v) -> None:
        assert cosine_similarity(v, [-x for x in v]) == pytest.approx(-1.0)

    def test_orthogonal_vectors_score_zero(self) -> None:
        assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == 0.0

    def test_known_value(self) -> None:
        expected = 0.9 / math.sqrt(0.9 ** 2 + 0.1 ** 2)

        assert cosine_similarity([0.9, 0.1], [1.0, 0.0]) == pytest.approx(expected)

    @pytest.mark.parametrize("a,b", [([0.0, 0.0], [1.0, 2.0]), ([1.0, 2.0], [0.0, 0.0]), ([0.0], [0.0])])
    def test_zero_vector_is_degenerate(self, a, b) -> None:
        with pytest.raises(DegenerateVector):
            cosine_similarity(a, b)

    def test_mismatched_lengths_use_prefix_dot_and_full_norms(self) -> None:
        # dot over [1, 0] . [1, 0] = 1; norms 1 and sqrt(2)
        assert cosine_similarity([1.0, 0.0], [1.0, 0.0, 1.0]) == pytest.approx(1 / math.sqrt(2))

    def test_zero_prefix_with_nonzero_tail_is_not_degenerate(self) -> None:
        assert cosine_similarity([0.0, 0.0, 5.0], [1.0, 1.0]) == 0.0

    def test_mismatched_lengths_rejected_in_strict_mode(self) -> None:
        with pytest.raises(InvalidConfiguration):
            cosine_similarity([1.0, 0.0], [1.0, 0.0, 1.0], strict_dimensions=True)


class TestSearch:
    def test_returns_unique_maximum(self) -> None:
        corpus = _corpus([1.0, 0.0], [0.0, 1.0], [0.9, 0.1])

        result = search(corpus, [1.0, 0.0])

        assert result == SearchResult(chunk="chunk 0", score=pytest.approx(1.0), found=True, chunk_id=0)

    def test_not_found_when_every_score_is_non_positive(self) -> None:
        corpus = _corpus([0.0, 1.0], [-1.0, 0.0], [-0.5, -0.5])

        result = search(corpus, [1.0, 0.0])

        assert result.found is False
        assert result.chunk == ""
        assert result.chunk_id is None
        assert result.score == 0.0

    def test_require_raises_not_found(self) -> None:
        corpus = _corpus([-1.0, 0.0])

        with pytest.raises(NotFound):
            search(corpus, [1.0, 0.0], require=True)

    def test_empty_corpus_finds_nothing(self) -> None:
        assert search(Corpus().freeze(), [1.0, 0.0]).found is False

    def test_ties_keep_the_lowest_id(self) -> None:
        corpus = _corpus([0.0, 1.0], [2.0, 2.0], [2.0, 2.0])

        result = search(corpus, [1.0, 1.0])

        assert result.chunk_id == 1

    def test_custom_floor_excludes_weak_matches(self) -> None:
        corpus = _corpus([1.0, 1.0])

        assert search(corpus, [1.0, 0.0], floor=0.8).found is False
        assert search(corpus, [1.0, 0.0], floor=0.5).found is True

    def test_degenerate_chunk_vector_aborts_search(self) -> None:
        corpus = _corpus([1.0, 0.0], [0.0, 0.0])

        with pytest.raises(DegenerateVector):
            search(corpus, [1.0, 0.0])

    def test_degenerate_query_aborts_search(self) -> None:
        with pytest.raises(DegenerateVector):
            search(_corpus([1.0, 0.0]), [0.0, 0.0])

    def test_dimension_mismatch_warns_in_lenient_mode(self, caplog) -> None:
        corpus = _corpus([1.0, 0.0, 0.0], [0.0, 1.0])
        caplog.set_level(logging.WARNING, logger="vectorstore.search")

        result = search(corpus, [1.0, 0.0, 0.0])

        assert result.chunk_id == 0
        assert "differ in dimension" in caplog.text

    def test_dimension_mismatch_raises_in_strict_mode(self) -> None:
        corpus = _corpus([1.0, 0.0, 0.0], [0.0, 1.0])

        with pytest.raises(InvalidConfiguration):
            search(corpus, [1.0, 0.0, 0.0], strict_dimensions=True)
