"""
Test suite for the whitespace window chunker.

Covers window/overlap semantics, parameter validation and edge cases.
"""

import pytest

from rag.errors import InvalidConfiguration
from vectorstore.chunker import Chunker, chunk


def _reconstruct(chunks: list[str], overlap: int) -> list[str]:
    """Undo the overlap: first window whole, then each window minus its shared prefix."""
    tokens: list[str] = []
    for i, window in enumerate(chunks):
        words = window.split()
        tokens.extend(words if i == 0 else words[overlap:])
    return tokens


class TestChunkWindows:
    def test_overlapping_windows_for_short_document(self) -> None:
        assert chunk("A B C D E F", window_size=3, overlap=1) == ["A B C", "C D E", "E F"]

    def test_no_overlap_partitions_tokens(self) -> None:
        assert chunk("a b c d e", window_size=2, overlap=0) == ["a b", "c d", "e"]

    def test_any_whitespace_is_a_separator(self) -> None:
        text = "alpha\tbeta\n\ngamma   delta"

        assert chunk(text, window_size=2, overlap=0) == ["alpha beta", "gamma delta"]

    def test_final_partial_window_is_emitted(self) -> None:
        chunks = chunk(" ".join(str(i) for i in range(7)), window_size=4, overlap=1)

        assert chunks == ["0 1 2 3", "3 4 5 6", "6"]

    def test_text_shorter_than_window_is_single_chunk(self) -> None:
        assert chunk("just three words", window_size=100, overlap=10) == ["just three words"]

    @pytest.mark.parametrize("text", ["", "   ", "\n\t "])
    def test_empty_text_yields_no_chunks(self, text: str) -> None:
        assert chunk(text, window_size=3, overlap=1) == []

    @pytest.mark.parametrize("window_size,overlap", [(3, 1), (5, 2), (4, 0), (10, 9), (1, 0)])
    def test_removing_overlap_restores_original_tokens(self, window_size: int, overlap: int) -> None:
        text = " ".join(f"t{i}" for i in range(37))

        chunks = chunk(text, window_size=window_size, overlap=overlap)

        assert _reconstruct(chunks, overlap) == text.split()

    def test_same_inputs_give_same_output(self) -> None:
        text = "the quick brown fox jumps over the lazy dog " * 20

        assert chunk(text, 7, 3) == chunk(text, 7, 3)

    def test_defaults_are_100_tokens_with_10_overlap(self) -> None:
        chunker = Chunker()

        assert (chunker.window_size, chunker.overlap, chunker.step) == (100, 10, 90)


class TestChunkerValidation:
    @pytest.mark.parametrize("window_size,overlap", [(3, 3), (3, 4), (1, 1)])
    def test_overlap_not_smaller_than_window_is_rejected(self, window_size: int, overlap: int) -> None:
        with pytest.raises(InvalidConfiguration):
            Chunker(window_size=window_size, overlap=overlap)

    @pytest.mark.parametrize("window_size", [0, -5])
    def test_non_positive_window_is_rejected(self, window_size: int) -> None:
        with pytest.raises(InvalidConfiguration):
            chunk("a b c", window_size=window_size, overlap=0)

    def test_negative_overlap_is_rejected(self) -> None:
        with pytest.raises(InvalidConfiguration):
            Chunker(window_size=3, overlap=-1)

    def test_invalid_configuration_is_a_value_error(self) -> None:
        with pytest.raises(ValueError):
            Chunker(window_size=2, overlap=2)
