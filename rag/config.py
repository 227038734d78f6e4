"""Runtime settings for the page chat pipeline.

The API credential is read from the environment exactly once, in
``load_settings()``. Everything downstream receives a ``Settings`` instance
explicitly; no component reads the environment on its own.
"""

import logging
import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from rag.errors import InvalidConfiguration

logger = logging.getLogger(__name__)

API_KEY_ENV = "PGKEY"
DEFAULT_HOST = "https://api.predictionguard.com"
DEFAULT_EMBEDDING_MODEL = "bridgetower-large-itm-mlm-itc"
DEFAULT_CHAT_MODEL = "llava-1.5-7b-hf"


class Settings(BaseModel):
    api_key: str = Field(description="Credential for the embedding/generation/factuality host")
    host: str = DEFAULT_HOST
    embedding_model: str = DEFAULT_EMBEDDING_MODEL
    chat_model: str = DEFAULT_CHAT_MODEL

    max_tokens: int = Field(1000, gt=0)
    temperature: float = Field(0.3, ge=0.0, le=2.0)
    timeout: float = Field(10.0, gt=0, description="Deadline in seconds for every remote call")

    chunk_size: int = Field(100, gt=0, description="Window size in whitespace tokens")
    chunk_overlap: int = Field(10, ge=0, description="Tokens shared by adjacent windows")

    max_history_tokens: Optional[int] = Field(
        4000, description="Token budget for prior turns sent to the generator (None = unbounded)"
    )
    embed_workers: int = Field(1, ge=1, description="Concurrent embedding calls during ingestion")
    stream_buffer: int = Field(1000, gt=0, description="Max fragments buffered between network and console")
    stream_deadline: Optional[float] = Field(
        120.0, description="Overall bound in seconds on one streamed answer (None = stall timeout only)"
    )


def load_settings(api_key: Optional[str] = None, **overrides) -> Settings:
    """Build Settings, reading the API credential from the environment once.

    A ``.env`` file in the working directory is honoured. Raises
    ``InvalidConfiguration`` when no credential is available.
    """
    load_dotenv()
    key = api_key or os.getenv(API_KEY_ENV)
    if not key:
        raise InvalidConfiguration(
            f"missing API credential: set {API_KEY_ENV} in the environment or a .env file"
        )
    settings = Settings(api_key=key, **overrides)
    if settings.chunk_overlap >= settings.chunk_size:
        raise InvalidConfiguration(
            f"chunk_overlap ({settings.chunk_overlap}) must be smaller than chunk_size ({settings.chunk_size})"
        )
    logger.debug("Loaded settings for host %s", settings.host)
    return settings
