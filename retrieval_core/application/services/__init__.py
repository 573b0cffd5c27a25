"""
Application services: document lifecycle, search and analytics.
"""

from retrieval_core.application.services.analytics_service import AnalyticsService
from retrieval_core.application.services.document_service import DeletionResult, DocumentService
from retrieval_core.application.services.search_service import SearchService

__all__ = [
    "AnalyticsService",
    "DeletionResult",
    "DocumentService",
    "SearchService",
]
