"""
Document ORM model.

Represents an organization-owned document with its processing status
and, separately, the status of its vector indexing.

Dependencies: sqlalchemy, retrieval_core.boundary.db.base
System role: Document persistence for ingestion tracking
"""

import enum
from datetime import datetime

from sqlalchemy import DateTime, Enum, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from retrieval_core.boundary.db.base import Base, UUIDMixin, TimestampMixin


class DocumentStatus(str, enum.Enum):
    """
    Document processing lifecycle states.

    PENDING: Document record created, processing not started
    PROCESSING: Text extraction and chunking in progress
    COMPLETED: Chunks persisted; says nothing about indexing (see IndexStatus)
    FAILED: Processing error; error_message field contains details
    """

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class IndexStatus(str, enum.Enum):
    """
    Vector indexing states, tracked independently of DocumentStatus.

    PENDING: Chunks not yet embedded and upserted
    INDEXED: Every chunk has a vector record; document is searchable
    FAILED: Indexing exhausted its retries; index_error holds details
    """

    PENDING = "pending"
    INDEXED = "indexed"
    FAILED = "failed"


ALLOWED_TRANSITIONS: dict[DocumentStatus, frozenset[DocumentStatus]] = {
    DocumentStatus.PENDING: frozenset({DocumentStatus.PROCESSING}),
    DocumentStatus.PROCESSING: frozenset({DocumentStatus.COMPLETED, DocumentStatus.FAILED}),
    DocumentStatus.COMPLETED: frozenset(),
    DocumentStatus.FAILED: frozenset(),
}


class DocumentModel(Base, UUIDMixin, TimestampMixin):
    """
    Document ORM model tracking ingestion pipeline state.

    Lifecycle: PENDING → PROCESSING → COMPLETED | FAILED. Indexing is tracked by
    index_status and never changes status.

    Attributes:
        id: UUID primary key (auto-generated)
        organization_id: Tenant partition key (immutable)
        title: Display title
        content_type: MIME type of the uploaded content
        content_hash: SHA-256 of the uploaded bytes, used to spot exact duplicates
        status: Processing state
        chunk_count: Number of persisted chunks once COMPLETED
        error_message: Null if success; human-readable error if FAILED
        index_status: Vector indexing state
        index_error: Last indexing error, if any
        indexed_at: When indexing last succeeded

    Relationships:
        chunks: Owned ChunkModels (cascade delete)
    """

    __tablename__ = "documents"
    __table_args__ = (
        Index("ix_documents_organization_status", "organization_id", "status"),
        Index("ix_documents_organization_hash", "organization_id", "content_hash"),
    )

    organization_id: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        index=True,
        doc="Tenant partition key",
    )

    title: Mapped[str] = mapped_column(
        String(512),
        nullable=False,
    )

    content_type: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    content_hash: Mapped[str | None] = mapped_column(
        String(64),
        nullable=True,
        doc="Hex SHA-256 of the uploaded bytes",
    )

    status: Mapped[DocumentStatus] = mapped_column(
        Enum(DocumentStatus, native_enum=False),
        nullable=False,
        default=DocumentStatus.PENDING,
    )

    chunk_count: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )

    error_message: Mapped[str | None] = mapped_column(
        String(2048),
        nullable=True,
        doc="Error details if processing failed",
    )

    index_status: Mapped[IndexStatus] = mapped_column(
        Enum(IndexStatus, native_enum=False),
        nullable=False,
        default=IndexStatus.PENDING,
    )

    index_error: Mapped[str | None] = mapped_column(
        String(2048),
        nullable=True,
        doc="Error details if indexing failed",
    )

    indexed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Relationships
    chunks = relationship(
        "ChunkModel",
        back_populates="document",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ChunkModel.chunk_index",
    )
