"""
Chunk CRUD operations.

Bulk creation of a document's chunks, ordered reads for indexing, and the
tenant-scoped content queries behind keyword search and suggestions.

Dependencies: sqlalchemy, retrieval_core.boundary.db.models
System role: Chunk persistence operations
"""

from typing import Iterable, Sequence
from uuid import UUID

from sqlalchemy import Row, case, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from retrieval_core.boundary.db.models.chunk_model import ChunkModel
from retrieval_core.boundary.db.models.document_model import DocumentModel
from retrieval_core.boundary.db.CRUD.base_crud import BaseCRUD
from retrieval_core.core.document_processing.models import TextChunk


def _like_pattern(term: str) -> str:
    """Build a LIKE pattern matching term anywhere, with wildcards escaped."""
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class ChunkCRUD(BaseCRUD[ChunkModel]):
    """CRUD operations for ChunkModel."""

    def __init__(self) -> None:
        """Initialize ChunkCRUD with ChunkModel."""
        super().__init__(ChunkModel)

    async def create_many(
        self,
        session: AsyncSession,
        document_id: UUID,
        chunks: Iterable[TextChunk],
    ) -> list[ChunkModel]:
        """
        Persist all chunks of a document.

        Args:
            session: Async database session
            document_id: Owning document UUID
            chunks: Chunks produced by the chunker

        Returns:
            Created ChunkModels in chunk_index order
        """
        instances = [
            ChunkModel(
                document_id=document_id,
                chunk_index=chunk.chunk_index,
                content=chunk.content,
                token_count=chunk.token_count,
                chunk_metadata=chunk.metadata.to_json(),
            )
            for chunk in chunks
        ]
        session.add_all(instances)
        await session.flush()
        return sorted(instances, key=lambda c: c.chunk_index)

    async def list_by_document(
        self,
        session: AsyncSession,
        document_id: UUID,
    ) -> Sequence[ChunkModel]:
        """
        Retrieve all chunks of a document in original order.

        Args:
            session: Async database session
            document_id: Owning document UUID

        Returns:
            ChunkModels ordered by chunk_index
        """
        stmt = (
            select(ChunkModel)
            .where(ChunkModel.document_id == document_id)
            .order_by(ChunkModel.chunk_index)
        )
        result = await session.execute(stmt)
        return result.scalars().all()

    async def count_by_document(self, session: AsyncSession, document_id: UUID) -> int:
        """Count chunks persisted for a document."""
        stmt = select(func.count()).select_from(ChunkModel).where(
            ChunkModel.document_id == document_id
        )
        result = await session.execute(stmt)
        return int(result.scalar_one())

    async def find_by_keywords(
        self,
        session: AsyncSession,
        organization_id: str,
        keywords: Sequence[str],
        limit: int,
    ) -> Sequence[Row]:
        """
        Find chunks of an organization whose content contains any keyword.

        Matching is case-insensitive substring matching. Rows are ranked by
        the number of distinct keywords they contain before the limit applies,
        so a cap never drops a better match in favour of a weaker one.

        Args:
            session: Async database session
            organization_id: Tenant id
            keywords: Lowercase keywords (OR-ed together)
            limit: Maximum number of rows

        Returns:
            Rows of (ChunkModel, document title), most keywords matched first,
            then by chunk id
        """
        if not keywords:
            return []

        content = func.lower(ChunkModel.content)
        conditions = [content.like(_like_pattern(kw), escape="\\") for kw in keywords]
        matched_count = sum(case((condition, 1), else_=0) for condition in conditions)
        stmt = (
            select(ChunkModel, DocumentModel.title)
            .join(DocumentModel, ChunkModel.document_id == DocumentModel.id)
            .where(DocumentModel.organization_id == organization_id, or_(*conditions))
            .order_by(matched_count.desc(), ChunkModel.id)
            .limit(limit)
        )
        result = await session.execute(stmt)
        return result.all()

    async def find_containing(
        self,
        session: AsyncSession,
        organization_id: str,
        phrase: str,
        limit: int = 10,
    ) -> list[str]:
        """
        Return contents of chunks containing a phrase (case-insensitive).

        Args:
            session: Async database session
            organization_id: Tenant id
            phrase: Text to look for
            limit: Maximum chunks to inspect

        Returns:
            Chunk contents
        """
        stmt = (
            select(ChunkModel.content)
            .join(DocumentModel, ChunkModel.document_id == DocumentModel.id)
            .where(
                DocumentModel.organization_id == organization_id,
                func.lower(ChunkModel.content).like(_like_pattern(phrase.lower()), escape="\\"),
            )
            .order_by(ChunkModel.document_id, ChunkModel.chunk_index)
            .limit(limit)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())


chunk_crud = ChunkCRUD()
