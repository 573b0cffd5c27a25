"""
Task modules for document processing pipeline.

Exports: ExtractionTask, ChunkingTask
"""

from .chunking_task import ChunkingTask
from .extraction_task import (
    SUPPORTED_CONTENT_TYPES,
    ExtractionTask,
    content_type_charset,
    normalize_content_type,
)

__all__ = [
    "ExtractionTask",
    "ChunkingTask",
    "SUPPORTED_CONTENT_TYPES",
    "content_type_charset",
    "normalize_content_type",
]
