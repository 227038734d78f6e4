#!/usr/bin/env python3
"""Chat with a single web page.

Usage:
  python pipeline.py https://go.dev/doc/contribute
  page-rag https://go.dev/doc/contribute

The page is fetched, split into overlapping windows and embedded; then each
line typed on stdin is answered using the best-matching window as context.
Type 'exit' to quit. The API credential is read from PGKEY (or a .env file).
"""

import argparse
import logging
import sys

from rag.config import Settings, load_settings
from rag.conversation import ConversationManager
from rag.errors import InvalidConfiguration, RAGError
from rag.factuality import FactualityClient
from rag.llm_client import LLMClient
from rag.retriever import Retriever
from scrapers.page_scraper import scrape_page
from vectorstore.chunker import Chunker
from vectorstore.embedder import Embedder
from vectorstore.ingest import ingest_document

logger = logging.getLogger(__name__)


def configure_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    # Per-request HTTP logs would interleave with streamed answers
    for noisy in ("httpx", "openai", "urllib3"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def build_session(url: str, settings: Settings) -> ConversationManager:
    """Ingest ``url`` and return a conversation ready for queries."""
    document = scrape_page(url, timeout=settings.timeout)

    embedder = Embedder(settings)
    chunker = Chunker(window_size=settings.chunk_size, overlap=settings.chunk_overlap)
    corpus, _ = ingest_document(document, chunker, embedder, workers=settings.embed_workers)
    if not len(corpus):
        logger.warning("Corpus is empty; answers will not be grounded in %s", url)
    logger.info("Corpus ready: %s", corpus.get_stats())

    return ConversationManager(
        retriever=Retriever(corpus, embedder),
        llm=LLMClient(settings),
        factuality=FactualityClient(settings),
        max_tokens=settings.max_tokens,
        temperature=settings.temperature,
        max_history_tokens=settings.max_history_tokens,
        stream_buffer=settings.stream_buffer,
        timeout=settings.timeout,
        stream_deadline=settings.stream_deadline,
    )


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="Ask questions about a web page using retrieval-augmented generation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("url", help="Web page to ingest")
    args = parser.parse_args(argv)

    configure_logging()

    try:
        settings = load_settings()
    except InvalidConfiguration as e:
        logger.error("%s", e)
        return 1

    logger.info("=" * 60)
    logger.info("INGESTING: %s", args.url)
    logger.info("=" * 60)
    try:
        session = build_session(args.url, settings)
    except RAGError as e:
        logger.error("Ingestion failed: %s", e)
        return 1

    print("")
    try:
        session.run()
    except KeyboardInterrupt:
        session.close()
        print("")
        logger.info("Interrupted")
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())
