"""Vector store module."""

from knowledge_search.vectorstore.models import VectorEntry, VectorMatch
from knowledge_search.vectorstore.service import (
    QdrantVectorBackend,
    VectorBackend,
    VectorIndex,
)

__all__ = [
    "QdrantVectorBackend",
    "VectorBackend",
    "VectorEntry",
    "VectorIndex",
    "VectorMatch",
]
