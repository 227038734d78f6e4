"""Retrieval-augmented chat over a single ingested web page.

Wires the vector store (chunking, embeddings, similarity search) to a
streaming generation client and an optional factuality check.
"""
