"""
Chunk ORM model.

An ordered text segment of a document; the unit of retrieval. Immutable once
created and removed only together with its document.

Dependencies: sqlalchemy, retrieval_core.boundary.db.base
System role: Chunk persistence for keyword search and indexing
"""

from uuid import UUID

from sqlalchemy import ForeignKey, Integer, JSON, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from retrieval_core.boundary.db.base import Base, UUIDMixin, TimestampMixin
from retrieval_core.core.document_processing.models import ChunkMetadata


class ChunkModel(Base, UUIDMixin, TimestampMixin):
    """
    Chunk ORM model.

    Attributes:
        id: UUID primary key; also the id of the chunk's vector record
        document_id: Owning document (ON DELETE CASCADE)
        chunk_index: 0-based position defining original order
        content: Chunk text
        token_count: Approximate token count (optional)
        chunk_metadata: ChunkMetadata serialized as JSON (column "metadata")
    """

    __tablename__ = "document_chunks"
    __table_args__ = (
        UniqueConstraint("document_id", "chunk_index", name="uq_chunk_document_index"),
    )

    document_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("documents.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    chunk_index: Mapped[int] = mapped_column(Integer, nullable=False)

    content: Mapped[str] = mapped_column(Text, nullable=False)

    token_count: Mapped[int | None] = mapped_column(Integer, nullable=True)

    chunk_metadata: Mapped[dict] = mapped_column(
        "metadata",
        JSON,
        nullable=False,
        default=dict,
    )

    # Relationships
    document = relationship("DocumentModel", back_populates="chunks")

    @property
    def metadata_model(self) -> ChunkMetadata:
        """Stored metadata parsed back into its validated form."""
        return ChunkMetadata.model_validate(self.chunk_metadata or {})
