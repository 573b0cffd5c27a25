"""
Vector database schemas.

Pydantic models for vector records, their payload, and vector store results.
Used for type-safe vector store interactions.

Dependencies: pydantic
System role: Type definitions for vector operations
"""

from typing import Any

from pydantic import BaseModel, Field

from retrieval_core.core.document_processing.models import ChunkMetadata


class VectorPayload(BaseModel):
    """
    Payload stored with every vector record.

    organization_id and document_id are indexed and used for filtering;
    the rest lets search results be returned without a metadata store lookup.
    """

    document_id: str = Field(description="Owning document id")
    organization_id: str = Field(description="Tenant partition key")
    chunk_id: str = Field(description="Chunk id, equal to the point id")
    chunk_index: int = Field(ge=0, description="Position of the chunk in its document")
    content: str = Field(description="Chunk text content")
    title: str = Field(default="", description="Document title")
    content_type: str | None = Field(default=None, description="Document MIME type")
    metadata: ChunkMetadata = Field(default_factory=ChunkMetadata)

    def to_qdrant(self) -> dict[str, Any]:
        """Serialize for the Qdrant payload."""
        payload = self.model_dump(exclude={"metadata"})
        payload["metadata"] = self.metadata.to_json()
        return payload


class VectorRecord(BaseModel):
    """A point to upsert: id equals the chunk id."""

    id: str = Field(description="Point id (chunk UUID)")
    vector: list[float] = Field(description="Embedding vector")
    payload: VectorPayload


class ScoredVector(BaseModel):
    """Single hit returned by a similarity query."""

    id: str = Field(description="Point id")
    score: float = Field(description="Cosine similarity")
    payload: dict[str, Any] = Field(default_factory=dict)


class StoredVector(BaseModel):
    """Single record returned by a scroll page."""

    id: str = Field(description="Point id")
    payload: dict[str, Any] = Field(default_factory=dict)


class CollectionInfo(BaseModel):
    """Summary of the collection backing the vector store."""

    name: str
    status: str
    points_count: int = 0
    indexed_vectors_count: int = 0
    segments_count: int = 0
    vector_size: int | None = None
