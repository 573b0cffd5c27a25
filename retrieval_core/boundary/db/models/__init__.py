"""
Database models package.

Exports:
  - DocumentModel, DocumentStatus, IndexStatus: Document ORM model and status enums
  - ChunkModel: Chunk ORM model

Dependencies: sqlalchemy, retrieval_core.boundary.db.base
System role: Database model definitions for domain entities
"""

from retrieval_core.boundary.db.models.document_model import (
    ALLOWED_TRANSITIONS,
    DocumentModel,
    DocumentStatus,
    IndexStatus,
)
from retrieval_core.boundary.db.models.chunk_model import ChunkModel

__all__ = [
    "ALLOWED_TRANSITIONS",
    "DocumentModel",
    "DocumentStatus",
    "IndexStatus",
    "ChunkModel",
]
