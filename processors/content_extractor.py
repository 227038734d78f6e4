"""Content extractor for cleaning converted page text.

Runs after the HTML conversion in scrapers/utils.py: strips leftover markup,
reduces markdown links and images to their visible text, normalizes
whitespace, and can cut the document down to a marked section.
"""

import logging
import re
from typing import Optional

from rag.errors import InvalidConfiguration

logger = logging.getLogger(__name__)

_HTML_TAG = re.compile(r"<[^>]+>")
_MD_IMAGE = re.compile(r"!\[([^\]]*)\]\([^)]*\)")
_MD_LINK = re.compile(r"\[([^\]]+)\]\([^)]*\)")


class ContentExtractor:
    """Cleans and normalizes page text before chunking."""

    def clean(self, text: str) -> str:
        text = _MD_IMAGE.sub(r"\1", text)
        text = _MD_LINK.sub(r"\1", text)
        text = self._strip_tags(text)
        text = self._normalize_whitespace(text)

        # Remove excessive blank lines (more than 2 consecutive)
        text = re.sub(r"\n{3,}", "\n\n", text)
        return text.strip()

    def slice_section(self, text: str, start: Optional[str] = None, end: Optional[str] = None) -> str:
        """Keep the text after the first ``start`` marker and before the first ``end`` marker.

        Raises InvalidConfiguration when ``start`` is given but absent, since
        an unmatched marker would otherwise ingest nothing or the wrong text.
        A missing ``end`` marker keeps the rest of the document.
        """
        if start:
            _, sep, tail = text.partition(start)
            if not sep:
                raise InvalidConfiguration(f"start marker {start!r} not found in document")
            text = tail
        if end:
            text = text.split(end, 1)[0]
        return text

    def _strip_tags(self, text: str) -> str:
        # Fenced code may legitimately contain angle brackets
        parts = re.split(r"(```[\s\S]*?```)", text)
        return "".join(
            part if part.startswith("```") else _HTML_TAG.sub(" ", part)
            for part in parts
        )

    def _normalize_whitespace(self, text: str) -> str:
        """Normalize whitespace while preserving code blocks and tables."""
        parts = re.split(r"(```[\s\S]*?```)", text)
        normalized = []

        for part in parts:
            if part.startswith("```"):
                normalized.append(part)
                continue
            cleaned_lines = []
            for line in part.split("\n"):
                if line.strip().startswith("|"):
                    cleaned_lines.append(line.rstrip())
                else:
                    cleaned_lines.append(re.sub(r"[ \t]+", " ", line).strip())
            normalized.append("\n".join(cleaned_lines))

        return "".join(normalized)
