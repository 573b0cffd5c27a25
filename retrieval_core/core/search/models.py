"""
Search result models.

Dependencies: pydantic
System role: Return types of semantic, keyword and hybrid search and of
    document similarity
"""

import enum

from pydantic import BaseModel, Field

from retrieval_core.core.document_processing.models import ChunkMetadata


class MatchType(str, enum.Enum):
    """Which retrieval path produced a hybrid result."""

    SEMANTIC = "semantic"
    KEYWORD = "keyword"
    HYBRID = "hybrid"


class SearchResult(BaseModel):
    """A chunk returned by semantic search."""

    chunk_id: str
    document_id: str
    content: str
    score: float = Field(description="Cosine similarity, higher is more relevant")
    title: str = ""
    chunk_index: int | None = None
    metadata: ChunkMetadata = Field(default_factory=ChunkMetadata)


class KeywordMatch(BaseModel):
    """A chunk returned by keyword search."""

    chunk_id: str
    document_id: str
    content: str
    score: float = Field(ge=0.0, le=1.0, description="Distinct matched keywords / keywords")
    matched_keywords: list[str] = Field(default_factory=list)
    title: str = ""
    chunk_index: int | None = None
    metadata: ChunkMetadata = Field(default_factory=ChunkMetadata)


class HybridSearchResult(BaseModel):
    """A chunk ranked by the weighted fusion of both scores."""

    chunk_id: str
    document_id: str
    content: str
    title: str = ""
    chunk_index: int | None = None
    metadata: ChunkMetadata = Field(default_factory=ChunkMetadata)
    semantic_score: float = 0.0
    keyword_score: float = 0.0
    hybrid_score: float
    match_type: MatchType


class SimilarityReason(str, enum.Enum):
    """Which check found a similar document."""

    HASH = "hash"
    TITLE = "title"
    CONTENT = "content"


class SimilarDocument(BaseModel):
    """A document that resembles another one in the same organization."""

    document_id: str
    title: str = ""
    similarity: float = Field(description="1.0 for identical bytes, otherwise title or content similarity")
    reason: SimilarityReason


class DuplicateGroup(BaseModel):
    """A document and the documents that nearly duplicate it."""

    original_id: str
    original_title: str
    duplicates: list[SimilarDocument] = Field(default_factory=list)
