"""
Models for document processing pipeline.

Exports: ChunkMetadata, TextChunk, ProcessingResult
"""

from .chunk import ChunkMetadata, TextChunk
from .processing_result import ProcessingResult

__all__ = [
    "ChunkMetadata",
    "TextChunk",
    "ProcessingResult",
]
