"""Pydantic model for embedded chunks held in the in-memory corpus.

Records are immutable once built, so a frozen corpus can be shared between
queries without copying.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, Tuple


class ChunkRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int = Field(ge=0, description="Zero-based position in emission order")
    text: str = Field(description="The literal window of the source document")
    vector: Tuple[float, ...] = Field(description="Dense embedding of `text`")
    metadata: str = Field(
        description="Auxiliary payload; currently a copy of `text`"
    )
    source_url: Optional[str] = Field(
        None, description="Page the chunk was taken from"
    )

    @property
    def dimensions(self) -> int:
        return len(self.vector)
