"""
Document CRUD operations.

Provides Create, Read, Update, Delete operations for DocumentModel with
tenant-scoped queries, guarded status transitions and indexing status updates.

Dependencies: sqlalchemy, retrieval_core.boundary.db.models
System role: Document persistence operations
"""

from datetime import datetime, timezone
from typing import Sequence
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from retrieval_core.boundary.db.models.chunk_model import ChunkModel
from retrieval_core.boundary.db.models.document_model import (
    ALLOWED_TRANSITIONS,
    DocumentModel,
    DocumentStatus,
    IndexStatus,
)
from retrieval_core.boundary.db.CRUD.base_crud import BaseCRUD


class DocumentCRUD(BaseCRUD[DocumentModel]):
    """
    CRUD operations for DocumentModel.

    Every lookup that originates from a caller carries organization_id;
    a document owned by another organization behaves as absent.
    """

    def __init__(self) -> None:
        """Initialize DocumentCRUD with DocumentModel."""
        super().__init__(DocumentModel)

    async def get_for_organization(
        self,
        session: AsyncSession,
        id: UUID,
        organization_id: str,
    ) -> DocumentModel | None:
        """
        Retrieve a document if it belongs to the organization.

        Args:
            session: Async database session
            id: Document UUID
            organization_id: Tenant id

        Returns:
            DocumentModel if found and owned by the tenant, None otherwise
        """
        stmt = select(DocumentModel).where(
            DocumentModel.id == id,
            DocumentModel.organization_id == organization_id,
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def exists_for_organization(
        self,
        session: AsyncSession,
        id: UUID,
        organization_id: str,
    ) -> bool:
        """
        Check whether a document exists for the organization.

        Args:
            session: Async database session
            id: Document UUID
            organization_id: Tenant id

        Returns:
            True if the document exists and is owned by the tenant
        """
        stmt = select(DocumentModel.id).where(
            DocumentModel.id == id,
            DocumentModel.organization_id == organization_id,
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def list_by_organization(
        self,
        session: AsyncSession,
        organization_id: str,
        status: DocumentStatus | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> Sequence[DocumentModel]:
        """
        Retrieve documents for an organization, newest first.

        Args:
            session: Async database session
            organization_id: Tenant id
            status: Optional processing status filter
            limit: Maximum number of documents to return
            offset: Number of documents to skip

        Returns:
            Sequence of DocumentModels
        """
        stmt = select(DocumentModel).where(DocumentModel.organization_id == organization_id)
        if status is not None:
            stmt = stmt.where(DocumentModel.status == status)
        stmt = stmt.order_by(DocumentModel.created_at.desc(), DocumentModel.id).offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await session.execute(stmt)
        return result.scalars().all()

    async def transition_status(
        self,
        session: AsyncSession,
        id: UUID,
        status: DocumentStatus,
        **fields,
    ) -> DocumentModel | None:
        """
        Move a document to a new status if the transition is allowed.

        The guard is part of the UPDATE statement, so a concurrent writer
        cannot slip an illegal transition in between a read and a write.

        Args:
            session: Async database session
            id: Document UUID
            status: Target status
            **fields: Extra columns to set in the same statement

        Returns:
            Updated DocumentModel, or None if the document is missing or
            its current status does not allow the transition
        """
        allowed_from = [
            source for source, targets in ALLOWED_TRANSITIONS.items() if status in targets
        ]
        stmt = (
            update(DocumentModel)
            .where(DocumentModel.id == id, DocumentModel.status.in_(allowed_from))
            .values(status=status, **fields)
            .returning(DocumentModel)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def mark_processing(self, session: AsyncSession, id: UUID) -> DocumentModel | None:
        """Move a pending document to PROCESSING."""
        return await self.transition_status(session, id, DocumentStatus.PROCESSING)

    async def mark_completed(
        self,
        session: AsyncSession,
        id: UUID,
        chunk_count: int,
    ) -> DocumentModel | None:
        """
        Mark document as successfully processed.

        Args:
            session: Async database session
            id: Document UUID
            chunk_count: Number of chunks persisted for the document

        Returns:
            Updated DocumentModel if the transition applied, None otherwise
        """
        return await self.transition_status(
            session, id, DocumentStatus.COMPLETED, chunk_count=chunk_count
        )

    async def mark_failed(
        self,
        session: AsyncSession,
        id: UUID,
        error_message: str,
    ) -> DocumentModel | None:
        """
        Mark document as failed with error details.

        Args:
            session: Async database session
            id: Document UUID
            error_message: Human-readable error description

        Returns:
            Updated DocumentModel if the transition applied, None otherwise
        """
        return await self.transition_status(
            session, id, DocumentStatus.FAILED, error_message=error_message[:2048]
        )

    async def set_index_status(
        self,
        session: AsyncSession,
        id: UUID,
        index_status: IndexStatus,
        index_error: str | None = None,
    ) -> DocumentModel | None:
        """
        Record the outcome of an indexing attempt.

        Args:
            session: Async database session
            id: Document UUID
            index_status: New indexing status
            index_error: Error details when FAILED (cleared otherwise)

        Returns:
            Updated DocumentModel if found, None otherwise
        """
        fields: dict = {
            "index_status": index_status,
            "index_error": index_error[:2048] if index_error else None,
        }
        if index_status == IndexStatus.INDEXED:
            fields["indexed_at"] = datetime.now(timezone.utc)
        return await self.update_by_id(session, id, **fields)

    async def list_ids_by_organization(
        self,
        session: AsyncSession,
        organization_id: str,
        status: DocumentStatus = DocumentStatus.COMPLETED,
    ) -> list[UUID]:
        """
        List document ids of an organization in a given processing status.

        Args:
            session: Async database session
            organization_id: Tenant id
            status: Processing status to match

        Returns:
            Document UUIDs ordered by id
        """
        stmt = (
            select(DocumentModel.id)
            .where(
                DocumentModel.organization_id == organization_id,
                DocumentModel.status == status,
            )
            .order_by(DocumentModel.id)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    async def list_by_content_hash(
        self,
        session: AsyncSession,
        organization_id: str,
        content_hash: str,
    ) -> Sequence[DocumentModel]:
        """
        Retrieve an organization's documents uploaded with identical bytes.

        Args:
            session: Async database session
            organization_id: Tenant id
            content_hash: Hex SHA-256 of the uploaded content

        Returns:
            Sequence of DocumentModels ordered by id
        """
        stmt = (
            select(DocumentModel)
            .where(
                DocumentModel.organization_id == organization_id,
                DocumentModel.content_hash == content_hash,
            )
            .order_by(DocumentModel.id)
        )
        result = await session.execute(stmt)
        return result.scalars().all()

    async def delete_for_organization(
        self,
        session: AsyncSession,
        id: UUID,
        organization_id: str,
    ) -> int | None:
        """
        Delete a document and all of its chunks.

        Chunks are deleted explicitly in the same transaction so the cascade
        does not depend on the database enforcing foreign keys.

        Args:
            session: Async database session
            id: Document UUID
            organization_id: Tenant id

        Returns:
            Number of chunks removed, or None if the document was not found
        """
        if not await self.exists_for_organization(session, id, organization_id):
            return None

        chunk_count = await session.scalar(
            select(func.count()).select_from(ChunkModel).where(ChunkModel.document_id == id)
        )
        await session.execute(delete(ChunkModel).where(ChunkModel.document_id == id))
        await session.execute(
            delete(DocumentModel).where(
                DocumentModel.id == id,
                DocumentModel.organization_id == organization_id,
            )
        )
        return int(chunk_count or 0)


document_crud = DocumentCRUD()
