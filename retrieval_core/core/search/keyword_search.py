"""
Keyword search.

Case-insensitive substring matching of query keywords against chunk
content, scoped to one organization. Score is lexical overlap:
distinct matched keywords divided by the number of keywords. This is not
BM25; there is no term frequency or document-length weighting.

Dependencies: sqlalchemy, retrieval_core.boundary.db
System role: Lexical retrieval path of hybrid search
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from retrieval_core.boundary.db.CRUD.chunk_crud import chunk_crud
from retrieval_core.core.exceptions import ValidationError
from retrieval_core.core.search.models import KeywordMatch
from retrieval_core.core.search.tokenizer import extract_keywords

logger = logging.getLogger(__name__)


class KeywordSearch:
    """Lexical-overlap search over persisted chunks."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        candidate_cap: int = 500,
    ) -> None:
        """
        Initialize keyword search.

        Args:
            session_factory: Factory for metadata store sessions
            candidate_cap: Maximum chunks fetched per query before ranking
        """
        self._session_factory = session_factory
        self._candidate_cap = candidate_cap

    async def keyword_search(
        self,
        query: str,
        organization_id: str,
        limit: int = 10,
    ) -> list[KeywordMatch]:
        """
        Rank chunks by keyword overlap with the query.

        Args:
            query: Query text
            organization_id: Tenant id
            limit: Maximum number of results

        Returns:
            list[KeywordMatch]: Score descending, ties broken by chunk id;
            empty when the query has no usable keywords

        Raises:
            ValidationError: On invalid arguments
        """
        if limit < 1:
            raise ValidationError("limit must be >= 1", field="limit")
        if not organization_id:
            raise ValidationError("organization_id is required", field="organization_id")

        keywords = extract_keywords(query)
        if not keywords:
            return []

        async with self._session_factory() as session:
            rows = await chunk_crud.find_by_keywords(
                session, organization_id, keywords, limit=self._candidate_cap
            )

        matches: list[KeywordMatch] = []
        for chunk, title in rows:
            content_lower = chunk.content.lower()
            matched = [kw for kw in keywords if kw in content_lower]
            if not matched:
                continue
            matches.append(
                KeywordMatch(
                    chunk_id=str(chunk.id),
                    document_id=str(chunk.document_id),
                    content=chunk.content,
                    score=len(matched) / len(keywords),
                    matched_keywords=matched,
                    title=title,
                    chunk_index=chunk.chunk_index,
                    metadata=chunk.metadata_model,
                )
            )

        matches.sort(key=lambda m: (-m.score, m.chunk_id))
        logger.info(
            f"{__name__}:keyword_search - {len(matches)} candidates for {len(keywords)} "
            f"keywords in organization {organization_id}"
        )
        return matches[:limit]
