"""
Background workers.

In-process asyncio worker pool consuming indexing jobs with bounded retry.
"""

from retrieval_core.workers.indexing_pool import IndexingJob, IndexingWorkerPool

__all__ = ["IndexingJob", "IndexingWorkerPool"]
