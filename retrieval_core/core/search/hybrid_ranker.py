"""
Hybrid ranker.

Runs semantic and keyword search concurrently and fuses both result sets
by chunk id with a weighted sum:

    both:          semantic * w + keyword * (1 - w)   -> HYBRID
    semantic only: semantic * w                       -> SEMANTIC
    keyword only:  keyword * (1 - w)                  -> KEYWORD

Candidates from a path whose weight is zero are not admitted on their own,
so w=1 ranks exactly like semantic search and w=0 exactly like keyword
search. The zero-weight path is not queried at all, so a keyword-only search
still works while the embedding service is down. Final order is hybrid score descending, then chunk id ascending.

Dependencies: asyncio, retrieval_core.core.search
System role: Score fusion for hybrid retrieval
"""

import asyncio
import logging

from retrieval_core.core.exceptions import ValidationError
from retrieval_core.core.search.keyword_search import KeywordSearch
from retrieval_core.core.search.models import (
    HybridSearchResult,
    KeywordMatch,
    MatchType,
    SearchResult,
)
from retrieval_core.core.search.semantic_search import SemanticSearch

logger = logging.getLogger(__name__)

CANDIDATE_MULTIPLIER = 2


async def _no_results() -> list:
    return []


def merge_results(
    semantic_results: list[SearchResult],
    keyword_results: list[KeywordMatch],
    semantic_weight: float,
) -> list[HybridSearchResult]:
    """
    Fuse both result sets into one ranked list.

    Args:
        semantic_results: Output of semantic search
        keyword_results: Output of keyword search
        semantic_weight: Weight of the semantic score in [0, 1]

    Returns:
        list[HybridSearchResult]: All fused candidates in final order
    """
    keyword_weight = 1.0 - semantic_weight
    semantic_by_id = {r.chunk_id: r for r in semantic_results}
    keyword_by_id = {m.chunk_id: m for m in keyword_results}

    merged: list[HybridSearchResult] = []
    for chunk_id in semantic_by_id.keys() | keyword_by_id.keys():
        semantic = semantic_by_id.get(chunk_id)
        keyword = keyword_by_id.get(chunk_id)

        if semantic is not None and keyword is not None:
            source = semantic
            semantic_score, keyword_score = semantic.score, keyword.score
            match_type = MatchType.HYBRID
        elif semantic is not None:
            if semantic_weight == 0:
                continue
            source = semantic
            semantic_score, keyword_score = semantic.score, 0.0
            match_type = MatchType.SEMANTIC
        else:
            if keyword_weight == 0:
                continue
            source = keyword
            semantic_score, keyword_score = 0.0, keyword.score
            match_type = MatchType.KEYWORD

        merged.append(
            HybridSearchResult(
                chunk_id=chunk_id,
                document_id=source.document_id,
                content=source.content,
                title=source.title,
                chunk_index=source.chunk_index,
                metadata=source.metadata,
                semantic_score=semantic_score,
                keyword_score=keyword_score,
                hybrid_score=semantic_score * semantic_weight + keyword_score * keyword_weight,
                match_type=match_type,
            )
        )

    return sorted(merged, key=lambda r: (-r.hybrid_score, r.chunk_id))


class HybridRanker:
    """Concurrent semantic + keyword retrieval with weighted score fusion."""

    def __init__(self, semantic_search: SemanticSearch, keyword_search: KeywordSearch) -> None:
        self._semantic = semantic_search
        self._keyword = keyword_search

    async def hybrid_search(
        self,
        query: str,
        organization_id: str,
        limit: int = 10,
        semantic_weight: float = 0.7,
        score_threshold: float = 0.6,
    ) -> list[HybridSearchResult]:
        """
        Search both paths concurrently and return the fused top results.

        Args:
            query: Query text
            organization_id: Tenant id
            limit: Maximum number of results
            semantic_weight: Weight of the semantic score in [0, 1]
            score_threshold: Minimum cosine similarity for semantic candidates

        Returns:
            list[HybridSearchResult]: At most limit results

        Raises:
            ValidationError: On invalid arguments
            EmbeddingServiceError: If the query cannot be embedded
            VectorStoreError: If the vector store query fails
        """
        if not 0.0 <= semantic_weight <= 1.0:
            raise ValidationError("semantic_weight must be within [0, 1]", field="semantic_weight")
        if limit < 1:
            raise ValidationError("limit must be >= 1", field="limit")

        candidates = limit * CANDIDATE_MULTIPLIER
        # A path with zero weight cannot change the ranking, so it is not queried
        semantic_results, keyword_results = await asyncio.gather(
            self._semantic.search_similar(query, organization_id, candidates, score_threshold)
            if semantic_weight > 0
            else _no_results(),
            self._keyword.keyword_search(query, organization_id, candidates)
            if semantic_weight < 1
            else _no_results(),
        )

        ranked = merge_results(semantic_results, keyword_results, semantic_weight)
        logger.info(
            f"{__name__}:hybrid_search - semantic={len(semantic_results)} "
            f"keyword={len(keyword_results)} merged={len(ranked)} "
            f"(semantic_weight={semantic_weight}, limit={limit})"
        )
        return ranked[:limit]
