"""
CRUD operations for database models.

Exports base CRUD class and model-specific CRUD implementations
with pre-instantiated singletons for direct use.

Usage:
    from retrieval_core.boundary.db.CRUD import document_crud, chunk_crud

    document = await document_crud.get_for_organization(db, document_id, org_id)
"""

from retrieval_core.boundary.db.CRUD.base_crud import BaseCRUD
from retrieval_core.boundary.db.CRUD.document_crud import DocumentCRUD, document_crud
from retrieval_core.boundary.db.CRUD.chunk_crud import ChunkCRUD, chunk_crud

__all__ = [
    "BaseCRUD",
    "DocumentCRUD",
    "document_crud",
    "ChunkCRUD",
    "chunk_crud",
]
