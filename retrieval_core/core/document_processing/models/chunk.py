"""
Chunk domain models for document processing pipeline.

ChunkMetadata is the only structure allowed in a chunk's metadata column and
in the metadata part of a vector payload, so both stores share one schema.

Dependencies: pydantic
System role: Data structures for chunks in the ingestion pipeline
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ChunkMetadata(BaseModel):
    """Validated chunk metadata with named optional fields."""

    model_config = ConfigDict(extra="forbid")

    start_index: int | None = Field(
        default=None,
        ge=0,
        description="Character offset of the chunk in the extracted text",
    )
    page: int | None = Field(default=None, ge=1, description="Page number in source document")
    section: str | None = Field(default=None, max_length=512, description="Section heading")
    source: str | None = Field(default=None, max_length=1024, description="Source file name or URI")

    def to_json(self) -> dict[str, Any]:
        """Serialize without unset fields for storage."""
        return self.model_dump(exclude_none=True)


class TextChunk(BaseModel):
    """A chunk produced by the chunker, before persistence."""

    chunk_index: int = Field(ge=0, description="0-based position in the document")
    content: str = Field(description="Chunk text content")
    token_count: int | None = Field(default=None, description="Approximate token count")
    metadata: ChunkMetadata = Field(default_factory=ChunkMetadata)
