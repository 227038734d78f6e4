"""Remote embedding client.

Talks to the configured host through the OpenAI SDK (the host exposes an
OpenAI-compatible ``/embeddings`` route). The default model is multimodal,
so every input is sent in the multimodal object form ``{"text": ...}``, with
an ``"image"`` URL added when one is given.

Calls are not retried: a failed embedding is surfaced to the caller, which
aborts ingestion or the current chat turn.
"""

import logging
from typing import Optional

from openai import APIError, OpenAI

from rag.config import Settings
from rag.errors import UpstreamFailure

logger = logging.getLogger(__name__)


class Embedder:
    """Generate embeddings for chunk and query text."""

    def __init__(self, settings: Settings, client: Optional[OpenAI] = None):
        self.model = settings.embedding_model
        self.client = client or OpenAI(
            api_key=settings.api_key,
            base_url=settings.host,
            timeout=settings.timeout,
            max_retries=0,
        )

    def embed(self, text: str, image_url: Optional[str] = None) -> list[float]:
        """Embed a single text (optionally paired with an image reference).

        Raises:
            UpstreamFailure: on any API error or an empty embedding.
        """
        item = {"text": text}
        if image_url:
            item["image"] = image_url

        try:
            response = self.client.embeddings.create(
                model=self.model,
                input=[item],
            )
        except APIError as e:
            raise UpstreamFailure(
                "embedding", str(e), status_code=getattr(e, "status_code", None)
            ) from e

        if not response.data:
            raise UpstreamFailure("embedding", "no data returned from embedding")

        vector = list(response.data[0].embedding)
        if not vector:
            raise UpstreamFailure("embedding", "embedding vector is empty")
        return vector

    def __call__(self, text: str) -> list[float]:
        return self.embed(text)
