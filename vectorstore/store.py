"""In-memory corpus of embedded chunks.

The corpus is filled once during ingestion and then frozen; after that it is
read-only and can be shared between queries without locking. Nothing is
persisted.
"""

import logging
from typing import Iterator, Optional

from rag.errors import InvalidConfiguration, NotFound
from schemas.chunk import ChunkRecord

logger = logging.getLogger(__name__)


class Corpus:
    """Ordered sequence of ChunkRecords for one ingested document."""

    def __init__(self, records: Optional[list[ChunkRecord]] = None):
        self._records: list[ChunkRecord] = []
        self._frozen = False
        for record in records or []:
            self.append(record)

    def append(self, record: ChunkRecord) -> None:
        if self._frozen:
            raise InvalidConfiguration("corpus is frozen; chunks cannot be added after ingestion")
        if record.id != len(self._records):
            raise InvalidConfiguration(
                f"chunk id {record.id} does not match its position {len(self._records)}"
            )
        self._records.append(record)

    def freeze(self) -> "Corpus":
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def get(self, chunk_id: int) -> ChunkRecord:
        if 0 <= chunk_id < len(self._records):
            return self._records[chunk_id]
        raise NotFound(f"no chunk with id {chunk_id} (corpus size {len(self._records)})")

    @property
    def dimensions(self) -> set[int]:
        """Distinct vector lengths present in the corpus."""
        return {record.dimensions for record in self._records}

    def get_stats(self) -> dict:
        dims = sorted(self.dimensions)
        return {
            "count": len(self._records),
            "dimensions": dims,
            "frozen": self._frozen,
        }

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[ChunkRecord]:
        return iter(self._records)

    def __repr__(self) -> str:
        return f"Corpus(count={len(self._records)}, frozen={self._frozen})"
