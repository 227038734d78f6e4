"""Single-page document source: fetch, convert, clean, optionally slice."""

import logging
from typing import Optional

from processors.content_extractor import ContentExtractor
from schemas.source_document import SourceDocument
from scrapers.utils import count_words, extract_content, fetch_url

logger = logging.getLogger(__name__)


def scrape_page(
    url: str,
    start: Optional[str] = None,
    end: Optional[str] = None,
    timeout: float = 10,
    content_selector: str = "article",
) -> SourceDocument:
    """Fetch ``url`` and return its cleaned text as a SourceDocument.

    ``start``/``end`` optionally restrict the document to the text between
    two markers (e.g. a heading and the next one).

    Raises:
        UpstreamFailure: if the page cannot be fetched.
        InvalidConfiguration: if ``start`` does not occur in the page.
    """
    html = fetch_url(url, timeout=timeout)
    title, text = extract_content(html, content_selector=content_selector)

    extractor = ContentExtractor()
    if start or end:
        text = extractor.slice_section(text, start=start, end=end)
    text = extractor.clean(text)

    document = SourceDocument(
        url=url,
        title=title,
        text=text,
        word_count=count_words(text),
    )
    if not document.word_count:
        logger.warning("No text extracted from %s", url)
    logger.info("Scraped '%s' (%d words) from %s", title, document.word_count, url)
    return document
