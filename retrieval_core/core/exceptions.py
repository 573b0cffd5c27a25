"""
Exception hierarchy for the retrieval core.

Provides layered exception structure for domain-specific errors.
All exceptions include context for observability and debugging.

Dependencies: None (pure domain layer)
System role: Centralized exception handling across the retrieval core
"""

from typing import Any


class RetrievalCoreException(Exception):
    """Base exception for all retrieval core errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize base exception with message and optional context.

        Args:
            message: Human-readable error message
            details: Optional dictionary of additional context for debugging
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation including details."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ValidationError(RetrievalCoreException):
    """Raised when input validation fails."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize validation error.

        Args:
            message: Error message
            field: Field name that failed validation
            details: Additional context
        """
        details = details or {}
        if field:
            details["field"] = field
        super().__init__(message, details)


class ExtractionError(RetrievalCoreException):
    """Raised when content is unsupported or cannot be turned into text."""

    def __init__(
        self,
        message: str,
        content_type: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize extraction error.

        Args:
            message: Error message
            content_type: MIME type of the rejected content
            details: Additional context
        """
        details = details or {}
        if content_type:
            details["content_type"] = content_type
        super().__init__(message, details)


class EmbeddingServiceError(RetrievalCoreException):
    """Raised when the embedding service fails or times out."""

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize embedding service error.

        Args:
            message: Error message
            operation: Operation that failed (embed_documents, embed_query)
            details: Additional context
        """
        details = details or {}
        if operation:
            details["operation"] = operation
        super().__init__(message, details)


class VectorStoreError(RetrievalCoreException):
    """Raised when vector store operations fail."""

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize vector store error.

        Args:
            message: Error message
            operation: Operation that failed (upsert, search, delete, scroll, count)
            details: Additional context
        """
        details = details or {}
        if operation:
            details["operation"] = operation
        super().__init__(message, details)


class NotFoundError(RetrievalCoreException):
    """Raised when a referenced document or chunk does not exist for the tenant."""

    def __init__(
        self,
        resource: str,
        resource_id: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize not found error.

        Args:
            resource: Resource kind (document, chunk)
            resource_id: ID of the missing resource
            details: Additional context
        """
        details = details or {}
        details["resource"] = resource
        details["resource_id"] = resource_id
        super().__init__(f"{resource.capitalize()} not found: {resource_id}", details)


class ConsistencyWarning(UserWarning):
    """
    Informational signal that the two stores disagree (orphaned vector).

    Never raised to callers; the reconciler logs it and removes the orphan.
    """

    def __init__(self, point_id: str, document_id: str, organization_id: str) -> None:
        self.point_id = point_id
        self.document_id = document_id
        self.organization_id = organization_id
        super().__init__(
            f"Orphaned vector {point_id}: document {document_id} "
            f"no longer exists for organization {organization_id}"
        )
