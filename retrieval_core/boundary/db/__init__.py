"""
Database boundary layer: ORM models, CRUD operations, and connection management.

Exports:
  - Base, UUIDMixin, TimestampMixin: Model building blocks
  - get_async_engine(), get_async_session_factory(): Async connection management
  - DocumentModel, ChunkModel: Domain entities
  - DocumentStatus, IndexStatus: Enum types for state tracking
  - document_crud, chunk_crud: CRUD operation singletons

Dependencies: sqlalchemy, retrieval_core.configs
System role: Metadata store adapter for documents and chunks
"""

from retrieval_core.boundary.db.base import Base, TimestampMixin, UUIDMixin
from retrieval_core.boundary.db.connection import (
    get_async_engine,
    get_async_session_factory,
)
from retrieval_core.boundary.db.models import (
    ChunkModel,
    DocumentModel,
    DocumentStatus,
    IndexStatus,
)
from retrieval_core.boundary.db.CRUD import (
    BaseCRUD,
    ChunkCRUD,
    DocumentCRUD,
    chunk_crud,
    document_crud,
)

__all__ = [
    # Base classes
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    # Connection
    "get_async_engine",
    "get_async_session_factory",
    # Models
    "DocumentModel",
    "DocumentStatus",
    "IndexStatus",
    "ChunkModel",
    # CRUD classes
    "BaseCRUD",
    "DocumentCRUD",
    "ChunkCRUD",
    # CRUD singletons
    "document_crud",
    "chunk_crud",
]
