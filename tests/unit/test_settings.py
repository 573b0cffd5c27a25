"""
Unit tests for the aggregated settings.

Tests root log level handling and that subsystem settings come from their
own prefixed environment variables.
Dependencies: pytest, pydantic, retrieval_core.configs
System role: Configuration verification
"""

import pytest
from pydantic import ValidationError as PydanticValidationError

from retrieval_core.configs.retrieval import RetrievalSettings
from retrieval_core.configs.settings import Settings
from retrieval_core.configs.vector_store import VectorStoreSettings


class TestSettings:
    """Test suite for Settings."""

    def test_log_level_should_be_normalized_to_upper_case(self, monkeypatch) -> None:
        # Arrange
        monkeypatch.setenv("LOG_LEVEL", " debug ")

        # Act
        settings = Settings()

        # Assert
        assert settings.log_level == "DEBUG"

    def test_log_level_should_reject_unknown_names(self) -> None:
        with pytest.raises(PydanticValidationError):
            Settings(log_level="LOUD")

    def test_subsystem_settings_should_use_their_prefixes(self, monkeypatch) -> None:
        """Test prefixed variables are read by the settings they belong to."""
        # Arrange
        monkeypatch.setenv("RETRIEVAL_CHUNK_SIZE", "512")
        monkeypatch.setenv("VECTOR_STORE_COLLECTION_NAME", "org_chunks")

        # Act
        retrieval = RetrievalSettings()
        vector_store = VectorStoreSettings()

        # Assert
        assert retrieval.chunk_size == 512
        assert vector_store.collection_name == "org_chunks"
