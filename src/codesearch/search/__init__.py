"""Hybrid search over indexed chunks."""

from codesearch.search.ranker import HybridRanker, SearchResult, cosine_similarity

__all__ = ["HybridRanker", "SearchResult", "cosine_similarity"]
