"""Vector store module for the page chat RAG pipeline.

Provides whitespace-window chunking, remote embedding generation, an
in-memory corpus of embedded chunks, and linear-scan cosine search.
"""
