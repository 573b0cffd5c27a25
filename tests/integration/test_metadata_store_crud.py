"""
Integration tests for document and chunk CRUD on SQLite.

Tests tenant-scoped reads, guarded status transitions, index status
updates, chunk ordering, explicit cascade on delete and the keyword
candidate queries.
Dependencies: pytest, sqlalchemy, aiosqlite, retrieval_core.boundary.db
System role: Metadata Store verification
"""

import uuid

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from retrieval_core.boundary.db.CRUD import chunk_crud, document_crud
from retrieval_core.boundary.db.models import DocumentStatus, IndexStatus
from retrieval_core.core.document_processing.models import ChunkMetadata, TextChunk


async def _create_document(session: AsyncSession, organization_id: str = "org-1", **fields):
    values = {"title": "Doc", "content_type": "text/plain", **fields}
    return await document_crud.create(session, organization_id=organization_id, **values)


def _chunks(*texts: str) -> list[TextChunk]:
    return [
        TextChunk(chunk_index=i, content=t, token_count=len(t.split()), metadata=ChunkMetadata(start_index=i * 10))
        for i, t in enumerate(texts)
    ]


class TestDocumentCRUDTenantScope:
    """Test suite for organization-scoped document reads."""

    @pytest.mark.asyncio
    async def test_get_for_organization_should_hide_other_tenants_documents(self, db_session: AsyncSession) -> None:
        # Arrange
        document = await _create_document(db_session, organization_id="org-1")

        # Act & Assert
        assert (await document_crud.get_for_organization(db_session, document.id, "org-1")).id == document.id
        assert await document_crud.get_for_organization(db_session, document.id, "org-2") is None
        assert await document_crud.exists_for_organization(db_session, document.id, "org-1")
        assert not await document_crud.exists_for_organization(db_session, document.id, "org-2")

    @pytest.mark.asyncio
    async def test_list_by_organization_should_filter_by_status(self, db_session: AsyncSession) -> None:
        # Arrange
        await _create_document(db_session, status=DocumentStatus.COMPLETED)
        await _create_document(db_session, status=DocumentStatus.FAILED)
        await _create_document(db_session, organization_id="org-2", status=DocumentStatus.COMPLETED)

        # Act
        everything = await document_crud.list_by_organization(db_session, "org-1")
        completed = await document_crud.list_by_organization(db_session, "org-1", status=DocumentStatus.COMPLETED)

        # Assert
        assert len(everything) == 2
        assert [d.status for d in completed] == [DocumentStatus.COMPLETED]

    @pytest.mark.asyncio
    async def test_list_ids_by_organization_should_return_completed_ids(self, db_session: AsyncSession) -> None:
        done = await _create_document(db_session, status=DocumentStatus.COMPLETED)
        await _create_document(db_session, status=DocumentStatus.PENDING)

        assert await document_crud.list_ids_by_organization(db_session, "org-1") == [done.id]


class TestDocumentCRUDStateMachine:
    """Test suite for guarded status transitions."""

    @pytest.mark.asyncio
    async def test_transitions_should_follow_pending_processing_completed(self, db_session: AsyncSession) -> None:
        # Arrange
        document = await _create_document(db_session)
        assert document.status == DocumentStatus.PENDING

        # Act
        processing = await document_crud.mark_processing(db_session, document.id)
        completed = await document_crud.mark_completed(db_session, document.id, chunk_count=4)

        # Assert
        assert processing.status == DocumentStatus.PROCESSING
        assert completed.status == DocumentStatus.COMPLETED
        assert completed.chunk_count == 4

    @pytest.mark.asyncio
    async def test_transition_should_refuse_skipping_processing(self, db_session: AsyncSession) -> None:
        """Test PENDING cannot jump straight to COMPLETED."""
        document = await _create_document(db_session)

        assert await document_crud.mark_completed(db_session, document.id, chunk_count=1) is None

    @pytest.mark.asyncio
    async def test_transition_should_refuse_leaving_terminal_state(self, db_session: AsyncSession) -> None:
        # Arrange
        document = await _create_document(db_session)
        await document_crud.mark_processing(db_session, document.id)
        await document_crud.mark_failed(db_session, document.id, "broken")

        # Act
        result = await document_crud.mark_processing(db_session, document.id)

        # Assert
        assert result is None
        stored = await document_crud.get_by_id(db_session, document.id)
        assert stored.status == DocumentStatus.FAILED
        assert stored.error_message == "broken"

    @pytest.mark.asyncio
    async def test_set_index_status_should_stamp_indexed_at(self, db_session: AsyncSession) -> None:
        # Arrange
        document = await _create_document(db_session)

        # Act
        indexed = await document_crud.set_index_status(db_session, document.id, IndexStatus.INDEXED)
        failed = await document_crud.set_index_status(db_session, document.id, IndexStatus.FAILED, "timeout")

        # Assert
        assert indexed.indexed_at is not None
        assert failed.index_status == IndexStatus.FAILED
        assert failed.index_error == "timeout"


class TestChunkCRUD:
    """Test suite for chunk persistence and queries."""

    @pytest.mark.asyncio
    async def test_list_by_document_should_return_chunks_in_order(self, db_session: AsyncSession) -> None:
        # Arrange
        document = await _create_document(db_session)
        await chunk_crud.create_many(db_session, document.id, list(reversed(_chunks("zero", "one", "two"))))

        # Act
        chunks = await chunk_crud.list_by_document(db_session, document.id)

        # Assert
        assert [c.content for c in chunks] == ["zero", "one", "two"]
        assert chunks[1].metadata_model.start_index == 10
        assert await chunk_crud.count_by_document(db_session, document.id) == 3

    @pytest.mark.asyncio
    async def test_delete_for_organization_should_remove_chunks(self, db_session: AsyncSession) -> None:
        # Arrange
        document = await _create_document(db_session)
        await chunk_crud.create_many(db_session, document.id, _chunks("a", "b", "c"))

        # Act
        removed = await document_crud.delete_for_organization(db_session, document.id, "org-1")

        # Assert
        assert removed == 3
        assert await document_crud.get_by_id(db_session, document.id) is None
        assert await chunk_crud.count_by_document(db_session, document.id) == 0

    @pytest.mark.asyncio
    async def test_delete_for_organization_should_ignore_other_tenant(self, db_session: AsyncSession) -> None:
        document = await _create_document(db_session, organization_id="org-1")

        assert await document_crud.delete_for_organization(db_session, document.id, "org-2") is None
        assert await document_crud.get_by_id(db_session, document.id) is not None

    @pytest.mark.asyncio
    async def test_delete_for_organization_should_return_none_for_unknown_id(self, db_session: AsyncSession) -> None:
        assert await document_crud.delete_for_organization(db_session, uuid.uuid4(), "org-1") is None

    @pytest.mark.asyncio
    async def test_find_by_keywords_should_match_any_keyword_case_insensitively(
        self, db_session: AsyncSession
    ) -> None:
        # Arrange
        document = await _create_document(db_session, title="Handbook")
        await chunk_crud.create_many(
            db_session, document.id, _chunks("Qdrant stores VECTORS", "Postgres stores rows", "Nothing here")
        )

        # Act
        rows = await chunk_crud.find_by_keywords(db_session, "org-1", ["vectors", "rows"], limit=10)

        # Assert
        assert sorted((chunk.content, title) for chunk, title in rows) == [
            ("Postgres stores rows", "Handbook"),
            ("Qdrant stores VECTORS", "Handbook"),
        ]

    @pytest.mark.asyncio
    async def test_find_by_keywords_should_rank_before_applying_limit(self, db_session: AsyncSession) -> None:
        """Test the chunk matching most keywords survives a tight limit."""
        # Arrange
        document = await _create_document(db_session)
        await chunk_crud.create_many(
            db_session,
            document.id,
            _chunks("alpha one filler", "alpha two filler", "alpha beta together"),
        )

        # Act
        rows = await chunk_crud.find_by_keywords(db_session, "org-1", ["alpha", "beta"], limit=1)

        # Assert
        assert [chunk.content for chunk, _ in rows] == ["alpha beta together"]

    @pytest.mark.asyncio
    async def test_find_by_keywords_should_stay_within_organization(self, db_session: AsyncSession) -> None:
        own = await _create_document(db_session, organization_id="org-1")
        other = await _create_document(db_session, organization_id="org-2")
        await chunk_crud.create_many(db_session, own.id, _chunks("shared keyword"))
        await chunk_crud.create_many(db_session, other.id, _chunks("shared keyword"))

        rows = await chunk_crud.find_by_keywords(db_session, "org-1", ["keyword"], limit=10)

        assert [chunk.document_id for chunk, _ in rows] == [own.id]

    @pytest.mark.asyncio
    async def test_find_by_keywords_should_treat_wildcards_literally(self, db_session: AsyncSession) -> None:
        """Test % and _ in keywords do not act as LIKE wildcards."""
        document = await _create_document(db_session)
        await chunk_crud.create_many(db_session, document.id, _chunks("abc", "the a_c token"))

        rows = await chunk_crud.find_by_keywords(db_session, "org-1", ["a_c"], limit=10)

        assert [chunk.content for chunk, _ in rows] == ["the a_c token"]

    @pytest.mark.asyncio
    async def test_find_containing_should_return_matching_contents(self, db_session: AsyncSession) -> None:
        document = await _create_document(db_session)
        await chunk_crud.create_many(db_session, document.id, _chunks("Vector search is fast.", "Other text."))

        contents = await chunk_crud.find_containing(db_session, "org-1", "VECTOR SEARCH")

        assert contents == ["Vector search is fast."]
