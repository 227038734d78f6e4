"""
Shared test fixtures for the page chat pipeline.

Provides: settings, fake embedding table, fake streaming LLM, small corpus
System role: Test infrastructure; no test touches the network
"""

from typing import Optional

import pytest

from rag.config import Settings
from rag.errors import UpstreamFailure
from vectorstore.ingest import ingest


CHUNKS = ["A B C", "C D E", "E F"]

VECTORS = {
    "A B C": [1.0, 0.0, 0.0],
    "C D E": [0.0, 1.0, 0.0],
    "E F": [0.0, 0.0, 1.0],
    # Queries
    "what about D?": [0.0, 1.0, 0.0],
    "tell me about A": [0.9, 0.1, 0.0],
    "nothing relevant": [-1.0, -1.0, -1.0],
}


class FakeEmbedder:
    """Looks vectors up in a table and records every call."""

    def __init__(self, table: Optional[dict] = None, fail_on: Optional[str] = None):
        self.table = table if table is not None else VECTORS
        self.fail_on = fail_on
        self.calls: list[str] = []

    def __call__(self, text: str) -> list[float]:
        self.calls.append(text)
        if text == self.fail_on:
            raise UpstreamFailure("embedding", f"refused {text!r}")
        return list(self.table[text])


class FakeLLM:
    """Streams canned fragments and records the messages it was given."""

    def __init__(self, fragments=None, error: Optional[Exception] = None):
        self.fragments = fragments if fragments is not None else ["The ", "answer ", "is D."]
        self.error = error
        self.calls: list[list] = []

    def chat_stream(self, messages, max_tokens=1000, temperature=0.3):
        self.calls.append(list(messages))
        for fragment in self.fragments:
            yield fragment
        if self.error is not None:
            raise self.error


class FakeFactuality:
    def __init__(self, score: float = 0.87, error: Optional[Exception] = None):
        self._score = score
        self.error = error
        self.calls: list[tuple[str, str]] = []

    def score(self, reference: str, text: str) -> float:
        self.calls.append((reference, text))
        if self.error is not None:
            raise self.error
        return self._score


@pytest.fixture
def settings() -> Settings:
    return Settings(api_key="test-key", host="https://llm.example.test")


@pytest.fixture
def embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture
def corpus(embedder):
    return ingest(CHUNKS, embedder, source_url="https://example.test/page")


@pytest.fixture
def fake_llm() -> FakeLLM:
    return FakeLLM()
