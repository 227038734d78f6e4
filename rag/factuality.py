"""Factuality check: how well an answer is supported by its context."""

import logging
from typing import Optional

import requests

from rag.config import Settings
from rag.errors import UpstreamFailure

logger = logging.getLogger(__name__)


class FactualityClient:
    """Scores ``text`` against ``reference`` via the host's /factuality route."""

    def __init__(self, settings: Settings, session: Optional[requests.Session] = None):
        self.url = f"{settings.host.rstrip('/')}/factuality"
        self.timeout = settings.timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            "Authorization": f"Bearer {settings.api_key}",
            "Content-Type": "application/json",
        })

    def score(self, reference: str, text: str) -> float:
        """Return a confidence in [0, 1] that ``text`` is supported by ``reference``.

        Raises:
            UpstreamFailure: on transport errors, non-2xx responses, a
                malformed body, or a score outside [0, 1].
        """
        try:
            response = self.session.post(
                self.url,
                json={"reference": reference, "text": text},
                timeout=self.timeout,
            )
            response.raise_for_status()
            body = response.json()
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            raise UpstreamFailure("factuality", str(e), status_code=status) from e
        except (requests.RequestException, ValueError) as e:
            raise UpstreamFailure("factuality", str(e)) from e

        try:
            score = float(body["checks"][0]["score"])
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise UpstreamFailure("factuality", f"malformed response: {body!r}") from e

        if not 0.0 <= score <= 1.0:
            raise UpstreamFailure("factuality", f"score {score} outside [0, 1]")

        logger.debug("Factuality score %.3f", score)
        return score
