"""Lexical, semantic and hybrid search."""

from knowledge_search.search.filters import StoreFilter
from knowledge_search.search.hybrid import HybridSearchService
from knowledge_search.search.lexical import LexicalSearcher
from knowledge_search.search.models import SearchFilters, SearchResult, SearchSource
from knowledge_search.search.ranker import HybridRanker
from knowledge_search.search.semantic import SemanticSearcher

__all__ = [
    "HybridRanker",
    "HybridSearchService",
    "LexicalSearcher",
    "SearchFilters",
    "SearchResult",
    "SearchSource",
    "SemanticSearcher",
    "StoreFilter",
]
