"""
Unit tests for the exception hierarchy.

Dependencies: pytest, retrieval_core.core.exceptions
System role: Error contract verification
"""

import pytest

from retrieval_core.core.exceptions import (
    ConsistencyWarning,
    EmbeddingServiceError,
    ExtractionError,
    NotFoundError,
    RetrievalCoreException,
    ValidationError,
    VectorStoreError,
)


class TestRetrievalCoreException:
    """Test suite for the base exception."""

    def test_str_should_include_details(self) -> None:
        error = RetrievalCoreException("boom", {"key": "value"})

        assert str(error) == "boom | Details: {'key': 'value'}"

    def test_str_should_be_message_without_details(self) -> None:
        assert str(RetrievalCoreException("boom")) == "boom"


class TestSubclasses:
    """Test suite for context carried by subclasses."""

    @pytest.mark.parametrize(
        "error, key, value",
        [
            (ValidationError("bad", field="limit"), "field", "limit"),
            (ExtractionError("bad", content_type="image/png"), "content_type", "image/png"),
            (EmbeddingServiceError("bad", operation="embed_query"), "operation", "embed_query"),
            (VectorStoreError("bad", operation="upsert"), "operation", "upsert"),
        ],
    )
    def test_subclass_should_record_context(self, error: RetrievalCoreException, key: str, value: str) -> None:
        assert isinstance(error, RetrievalCoreException)
        assert error.details[key] == value

    def test_not_found_should_format_message(self) -> None:
        error = NotFoundError("document", "abc")

        assert error.message == "Document not found: abc"
        assert error.details == {"resource": "document", "resource_id": "abc"}

    def test_consistency_warning_should_be_a_warning(self) -> None:
        warning = ConsistencyWarning("p1", "d1", "org-1")

        assert isinstance(warning, Warning)
        assert not isinstance(warning, RetrievalCoreException)
        assert "p1" in str(warning) and "d1" in str(warning)
