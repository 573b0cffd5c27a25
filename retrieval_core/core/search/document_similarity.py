"""
Document similarity.

Finds documents of the same organization that resemble a given document,
with three checks applied in order:

1. Hash: identical uploaded bytes (similarity 1.0)
2. Title: Levenshtein similarity of lowercased titles above 0.5
3. Content: the first 1000 characters of the document are run through
   semantic search; hits are grouped by document and kept when their
   average score is above 0.7

A document found by an earlier check keeps that reason. Duplicate
detection walks the organization oldest first and groups each document
with the ones that resemble it above 0.9.

Dependencies: sqlalchemy, retrieval_core.boundary.db, retrieval_core.core.search.semantic_search
System role: Similar document and duplicate detection for the knowledge base
"""

import logging
from collections import defaultdict
from typing import Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from retrieval_core.boundary.db.CRUD.chunk_crud import chunk_crud
from retrieval_core.boundary.db.CRUD.document_crud import document_crud
from retrieval_core.boundary.db.models import DocumentModel
from retrieval_core.core.exceptions import (
    EmbeddingServiceError,
    NotFoundError,
    ValidationError,
    VectorStoreError,
)
from retrieval_core.core.search.models import DuplicateGroup, SimilarDocument, SimilarityReason
from retrieval_core.core.search.semantic_search import SemanticSearch

logger = logging.getLogger(__name__)

TITLE_SIMILARITY_THRESHOLD = 0.5
CONTENT_SEARCH_THRESHOLD = 0.6
CONTENT_SIMILARITY_THRESHOLD = 0.7
CONTENT_SAMPLE_CHARS = 1000
STRATEGY_LIMIT = 5
DUPLICATE_THRESHOLD = 0.9
DUPLICATE_CANDIDATES = 10


def levenshtein_distance(first: str, second: str) -> int:
    """Minimum number of single-character edits turning first into second."""
    if len(first) < len(second):
        first, second = second, first
    previous = list(range(len(second) + 1))
    for i, left in enumerate(first, start=1):
        current = [i]
        for j, right in enumerate(second, start=1):
            current.append(
                min(
                    previous[j - 1] + (left != right),
                    previous[j] + 1,
                    current[j - 1] + 1,
                )
            )
        previous = current
    return previous[-1]


def title_similarity(first: str, second: str) -> float:
    """
    Case-insensitive similarity of two titles in [0, 1].

    Computed as (len(longer) - edit distance) / len(longer); two empty
    titles are identical.
    """
    first, second = first.lower(), second.lower()
    longest = max(len(first), len(second))
    if longest == 0:
        return 1.0
    return (longest - levenshtein_distance(first, second)) / longest


class DocumentSimilarity:
    """Similar document lookup and duplicate grouping within one organization."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        semantic_search: SemanticSearch,
    ) -> None:
        self._session_factory = session_factory
        self._semantic = semantic_search

    async def find_similar_documents(
        self,
        document_id: UUID,
        organization_id: str,
        limit: int = 5,
    ) -> list[SimilarDocument]:
        """
        Find documents that resemble the given one.

        Args:
            document_id: Document to compare against
            organization_id: Owning tenant
            limit: Maximum number of similar documents

        Returns:
            list[SimilarDocument]: Highest similarity first, never the
            document itself

        Raises:
            ValidationError: If limit < 1
            NotFoundError: If the document does not exist for the tenant
        """
        if limit < 1:
            raise ValidationError("limit must be >= 1", field="limit")

        async with self._session_factory() as session:
            document = await document_crud.get_for_organization(session, document_id, organization_id)
            if document is None:
                raise NotFoundError("document", str(document_id))
            same_hash = (
                await document_crud.list_by_content_hash(session, organization_id, document.content_hash)
                if document.content_hash
                else []
            )
            documents = await document_crud.list_by_organization(session, organization_id)
            chunks = await chunk_crud.list_by_document(session, document_id)

        found: dict[str, SimilarDocument] = {}
        for other in same_hash:
            if other.id != document.id:
                found[str(other.id)] = SimilarDocument(
                    document_id=str(other.id),
                    title=other.title,
                    similarity=1.0,
                    reason=SimilarityReason.HASH,
                )

        for candidate in self._by_title(document, documents):
            found.setdefault(candidate.document_id, candidate)

        sample = "".join(chunk.content for chunk in chunks)[:CONTENT_SAMPLE_CHARS]
        if sample.strip():
            # Own chunks come back as hits too, so ask for enough to cover them
            candidates = STRATEGY_LIMIT * 2 + len(chunks)
            for candidate in await self._by_content(sample, organization_id, str(document.id), candidates):
                found.setdefault(candidate.document_id, candidate)

        similar = sorted(found.values(), key=lambda s: (-s.similarity, s.document_id))
        logger.info(
            f"{__name__}:find_similar_documents - {len(similar)} similar documents "
            f"for {document_id}"
        )
        return similar[:limit]

    async def find_duplicates(
        self,
        organization_id: str,
        threshold: float = DUPLICATE_THRESHOLD,
    ) -> list[DuplicateGroup]:
        """
        Group an organization's documents with their near duplicates.

        Documents are visited oldest first; a document that already belongs
        to a group does not start a new one.

        Args:
            organization_id: Tenant id
            threshold: Similarity a document must exceed to count as a duplicate

        Returns:
            list[DuplicateGroup]: One group per original with duplicates
        """
        async with self._session_factory() as session:
            documents = list(reversed(await document_crud.list_by_organization(session, organization_id)))

        groups: list[DuplicateGroup] = []
        grouped: set[str] = set()
        for document in documents:
            if str(document.id) in grouped:
                continue
            similar = await self.find_similar_documents(
                document.id, organization_id, limit=DUPLICATE_CANDIDATES
            )
            duplicates = [s for s in similar if s.similarity > threshold]
            if not duplicates:
                continue
            groups.append(
                DuplicateGroup(
                    original_id=str(document.id),
                    original_title=document.title,
                    duplicates=duplicates,
                )
            )
            grouped.add(str(document.id))
            grouped.update(d.document_id for d in duplicates)

        logger.info(
            f"{__name__}:find_duplicates - {len(groups)} duplicate groups for organization "
            f"{organization_id}"
        )
        return groups

    def _by_title(
        self,
        document: DocumentModel,
        documents: Sequence[DocumentModel],
    ) -> list[SimilarDocument]:
        matches = []
        for other in documents:
            if other.id == document.id:
                continue
            similarity = title_similarity(document.title, other.title)
            if similarity > TITLE_SIMILARITY_THRESHOLD:
                matches.append(
                    SimilarDocument(
                        document_id=str(other.id),
                        title=other.title,
                        similarity=similarity,
                        reason=SimilarityReason.TITLE,
                    )
                )
        matches.sort(key=lambda s: (-s.similarity, s.document_id))
        return matches[:STRATEGY_LIMIT]

    async def _by_content(
        self,
        sample: str,
        organization_id: str,
        exclude_id: str,
        candidates: int,
    ) -> list[SimilarDocument]:
        try:
            hits = await self._semantic.search_similar(
                sample, organization_id, limit=candidates, score_threshold=CONTENT_SEARCH_THRESHOLD
            )
        except (EmbeddingServiceError, VectorStoreError) as e:
            # Hash and title matches are still returned
            logger.error(f"{__name__}:_by_content - Content similarity unavailable: {e}")
            return []

        scores: dict[str, list[float]] = defaultdict(list)
        titles: dict[str, str] = {}
        for hit in hits:
            if hit.document_id == exclude_id:
                continue
            scores[hit.document_id].append(hit.score)
            titles.setdefault(hit.document_id, hit.title)

        matches = []
        for document_id, document_scores in scores.items():
            average = sum(document_scores) / len(document_scores)
            if average > CONTENT_SIMILARITY_THRESHOLD:
                matches.append(
                    SimilarDocument(
                        document_id=document_id,
                        title=titles[document_id],
                        similarity=average,
                        reason=SimilarityReason.CONTENT,
                    )
                )
        matches.sort(key=lambda s: (-s.similarity, s.document_id))
        return matches[:STRATEGY_LIMIT]
