"""
Processing result model for document ingestion.

Dependencies: pydantic
System role: Return type for DocumentService.process_document()
"""

from uuid import UUID

from pydantic import BaseModel, Field


class ProcessingResult(BaseModel):
    """Outcome of synchronous document processing (indexing runs afterwards)."""

    document_id: UUID = Field(description="Document identifier")
    organization_id: str = Field(description="Owning organization")
    status: str = Field(description="Document status after processing")
    index_status: str = Field(description="Indexing status at return time")
    chunk_count: int = Field(description="Number of chunks persisted")
    processing_time_ms: float = Field(description="Total processing time in milliseconds")
