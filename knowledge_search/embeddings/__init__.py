"""Embedding client module."""

from knowledge_search.embeddings.service import EmbeddingClient, HTTPEmbeddingClient

__all__ = [
    "EmbeddingClient",
    "HTTPEmbeddingClient",
]
