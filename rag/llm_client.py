"""Streaming chat-completion client for answer generation.

Uses the OpenAI SDK against the configured host's OpenAI-compatible
``/chat/completions`` route.
"""

import logging
from typing import Iterator, Optional, Sequence

from openai import APIError, OpenAI

from rag.config import Settings
from rag.errors import UpstreamFailure
from schemas.message import Message

logger = logging.getLogger(__name__)


class ChatStream:
    """Text fragments of one streamed completion.

    Iterate it from one thread; ``abort()`` may be called from another to
    close the HTTP response and unblock a pending read.
    """

    def __init__(self, response):
        self._response = response
        self._closed = False

    def __iter__(self) -> Iterator[str]:
        try:
            for chunk in self._response:
                for choice in chunk.choices:
                    if choice.delta and choice.delta.content:
                        yield choice.delta.content
        except APIError as e:
            raise UpstreamFailure("generation", f"stream interrupted: {e}") from e
        finally:
            self.close()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        close = getattr(self._response, "close", None)
        if close is not None:
            close()

    def abort(self) -> None:
        logger.debug("Aborting chat stream")
        self.close()


class LLMClient:
    """Thin wrapper over chat completions that yields text fragments."""

    def __init__(self, settings: Settings, client: Optional[OpenAI] = None):
        self.model = settings.chat_model
        self.client = client or OpenAI(
            api_key=settings.api_key,
            base_url=settings.host,
            timeout=settings.timeout,
            max_retries=0,
        )

    def chat_stream(
        self,
        messages: Sequence[Message],
        max_tokens: int = 1000,
        temperature: float = 0.3,
    ) -> ChatStream:
        """Open a streaming chat completion.

        The request is sent immediately; iterating the returned stream yields
        fragments until the service signals end-of-stream. The HTTP response
        is closed when iteration ends or the stream is aborted.
        """
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                max_tokens=max_tokens,
                temperature=temperature,
                stream=True,
                messages=[m.to_api() for m in messages],
            )
        except APIError as e:
            raise UpstreamFailure(
                "generation", str(e), status_code=getattr(e, "status_code", None)
            ) from e
        return ChatStream(response)
