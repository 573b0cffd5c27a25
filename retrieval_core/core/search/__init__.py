"""
Search: semantic, keyword and hybrid retrieval, and document similarity.
"""

from retrieval_core.core.search.document_similarity import DocumentSimilarity, title_similarity
from retrieval_core.core.search.hybrid_ranker import HybridRanker, merge_results
from retrieval_core.core.search.keyword_search import KeywordSearch
from retrieval_core.core.search.models import (
    DuplicateGroup,
    HybridSearchResult,
    KeywordMatch,
    MatchType,
    SearchResult,
    SimilarDocument,
    SimilarityReason,
)
from retrieval_core.core.search.semantic_search import SemanticSearch
from retrieval_core.core.search.tokenizer import expand_query, extract_keywords

__all__ = [
    "DocumentSimilarity",
    "title_similarity",
    "HybridRanker",
    "merge_results",
    "KeywordSearch",
    "SemanticSearch",
    "expand_query",
    "extract_keywords",
    "HybridSearchResult",
    "KeywordMatch",
    "MatchType",
    "SearchResult",
    "DuplicateGroup",
    "SimilarDocument",
    "SimilarityReason",
]
