"""
Vector store boundary: Qdrant adapter, payload schemas and factory.
"""

from retrieval_core.boundary.vdb.qdrant_store import QdrantVectorStore, build_filter
from retrieval_core.boundary.vdb.vector_schemas import (
    CollectionInfo,
    ScoredVector,
    StoredVector,
    VectorPayload,
    VectorRecord,
)
from retrieval_core.boundary.vdb.vector_store_factory import get_vector_store

__all__ = [
    "QdrantVectorStore",
    "build_filter",
    "CollectionInfo",
    "ScoredVector",
    "StoredVector",
    "VectorPayload",
    "VectorRecord",
    "get_vector_store",
]
