"""
Indexing: embedding persisted chunks and upserting their vector records.
"""

from retrieval_core.core.indexing.indexer import Indexer

__all__ = ["Indexer"]
