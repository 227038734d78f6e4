"""Error taxonomy shared by ingestion, retrieval and the chat loop."""

from typing import Optional


class RAGError(Exception):
    """Base class for every error raised by this project."""


class InvalidConfiguration(RAGError, ValueError):
    """Bad parameters: chunk window, dimension policy, credentials, markers."""


class DegenerateVector(RAGError, ValueError):
    """A vector with zero magnitude was used in a similarity computation."""


class NotFound(RAGError, LookupError):
    """No chunk scored above the retrieval floor, or an unknown chunk id."""


class UpstreamFailure(RAGError):
    """A remote collaborator (fetch, embed, generate, factuality) failed."""

    def __init__(self, service: str, message: str, status_code: Optional[int] = None):
        self.service = service
        self.status_code = status_code
        super().__init__(f"{service}: {message}")
