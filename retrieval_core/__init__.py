"""
Retrieval core: tenant-scoped document ingestion, indexing and hybrid search.
"""

__version__ = "0.1.0"
