"""Shared scraping utilities: fetch with retry, HTML to markdown-ish text."""

import logging
import re
from typing import Optional

import requests
from bs4 import BeautifulSoup, Tag
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)

from rag.errors import UpstreamFailure

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "User-Agent": "PageRAG/1.0 (single-page question answering)",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
}


def fetch_url(
    url: str,
    headers: Optional[dict] = None,
    timeout: float = 10,
) -> str:
    """Fetch a URL and return its body as text.

    Connection errors and timeouts are retried; anything still failing is
    raised as UpstreamFailure.
    """
    try:
        response = _fetch_url_with_retry(url, headers=headers, timeout=timeout)
    except requests.HTTPError as e:
        status = e.response.status_code if e.response is not None else None
        raise UpstreamFailure("fetch", f"HTTP error fetching {url}: {e}", status_code=status) from e
    except requests.RequestException as e:
        logger.error("All retries exhausted for %s: %s", url, e)
        raise UpstreamFailure("fetch", f"could not fetch {url}: {e}") from e

    logger.info("Fetched %s (%d bytes)", url, len(response.content))
    return response.text


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    retry=retry_if_exception_type((requests.ConnectionError, requests.Timeout)),
    reraise=True,
)
def _fetch_url_with_retry(
    url: str,
    headers: Optional[dict] = None,
    timeout: float = 10,
) -> requests.Response:
    """Inner fetch with retry decorator."""
    merged_headers = {**DEFAULT_HEADERS, **(headers or {})}
    response = requests.get(url, headers=merged_headers, timeout=timeout)
    response.raise_for_status()
    return response


def extract_content(
    html: str,
    content_selector: str = "article",
) -> tuple[str, str]:
    """Extract main content text and title from HTML.

    Headings become ``#`` lines, lists ``-`` items, tables markdown rows and
    ``pre`` blocks fenced code. Returns (title, text).
    """
    soup = BeautifulSoup(html, "lxml")

    title = ""
    title_tag = soup.find("title")
    if title_tag:
        title = title_tag.get_text(strip=True)
    if not title:
        h1 = soup.find("h1")
        if h1:
            title = h1.get_text(strip=True)

    content_area = soup.select_one(content_selector)
    if not content_area:
        for fallback in ["main", "article", "[role='main']", ".content", "#content"]:
            content_area = soup.select_one(fallback)
            if content_area:
                break

    if not content_area:
        content_area = soup.find("body")

    if not content_area:
        return title, ""

    for tag_name in ["nav", "header", "footer", "aside", "script", "style", "noscript"]:
        for tag in content_area.find_all(tag_name):
            tag.decompose()

    for class_pattern in ["cookie", "banner", "popup", "modal", "overlay"]:
        for tag in content_area.find_all(class_=re.compile(class_pattern, re.I)):
            tag.decompose()

    text = _extract_structured_text(content_area)
    return title, text


def _extract_structured_text(element: Tag) -> str:
    """Extract text from an element, preserving code blocks and tables."""
    parts = []

    for child in element.children:
        if isinstance(child, str):
            text = child.strip()
            if text:
                parts.append(text)
            continue

        if not isinstance(child, Tag):
            continue

        tag = child.name

        if tag == "pre":
            lang = ""
            code = child.find("code")
            classes = (code.get("class") if code else None) or child.get("class") or []
            for cls in classes:
                if cls.startswith("language-"):
                    lang = cls.replace("language-", "")
                    break
            parts.append(f"\n```{lang}\n{child.get_text()}\n```\n")

        elif tag == "table":
            parts.append(_extract_table(child))

        elif tag in ("h1", "h2", "h3", "h4", "h5", "h6"):
            prefix = "#" * int(tag[1])
            parts.append(f"\n{prefix} {child.get_text(strip=True)}\n")

        elif tag in ("ul", "ol"):
            for li in child.find_all("li", recursive=False):
                parts.append(f"- {li.get_text(' ', strip=True)}")

        elif tag in ("p", "div", "section", "article", "main", "blockquote"):
            inner = _extract_structured_text(child)
            if inner.strip():
                parts.append(inner)

        else:
            text = child.get_text(strip=True)
            if text:
                parts.append(text)

    return "\n".join(parts)


def _extract_table(table: Tag) -> str:
    """Extract a table as markdown."""
    rows = []
    for tr in table.find_all("tr"):
        cells = [cell.get_text(strip=True) for cell in tr.find_all(["th", "td"])]
        if cells:
            rows.append("| " + " | ".join(cells) + " |")

    if not rows:
        return ""

    if len(rows) > 1:
        num_cols = rows[0].count("|") - 1
        separator = "| " + " | ".join(["---"] * num_cols) + " |"
        rows.insert(1, separator)

    return "\n" + "\n".join(rows) + "\n"


def count_words(text: str) -> int:
    """Count words in text."""
    return len(text.split())
