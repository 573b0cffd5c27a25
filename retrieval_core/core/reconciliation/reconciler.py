"""
Orphaned vector reconciler.

Pages through an organization's vector records with a bounded cursor and
deletes every record whose document is gone from the metadata store. The
existence check re-queries the metadata store for each record, so a record
written mid-scan for a live document is never treated as an orphan. A failed
deletion is counted and the scan goes on. Scans can be bounded by a
deadline or stopped through a cancel event; either returns a partial report.

Dependencies: sqlalchemy, retrieval_core.boundary.db, retrieval_core.boundary.vdb
System role: Eventual consistency between the metadata store and the vector store
"""

import asyncio
import logging
import time
from uuid import UUID

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from retrieval_core.boundary.db.CRUD.document_crud import document_crud
from retrieval_core.boundary.vdb.qdrant_store import QdrantVectorStore
from retrieval_core.core.exceptions import ConsistencyWarning, ValidationError, VectorStoreError
from retrieval_core.observability.correlation import get_correlation_id, set_correlation_id
from retrieval_core.observability.log_utils import log_with_context

logger = logging.getLogger(__name__)


class ReconciliationReport(BaseModel):
    """Outcome of one reconciliation scan."""

    organization_id: str
    scanned: int = 0
    orphaned: int = 0
    deleted: int = 0
    errors: int = 0
    skipped: int = 0
    aborted: bool = False
    duration_ms: float = 0.0


def _parse_uuid(value: object) -> UUID | None:
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        return None


class Reconciler:
    """Detect and remove vector records without an owning document."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        vector_store: QdrantVectorStore,
        page_size: int = 100,
    ) -> None:
        """
        Initialize the reconciler.

        Args:
            session_factory: Factory for metadata store sessions
            vector_store: Vector store adapter
            page_size: Records read per scroll page
        """
        if page_size < 1:
            raise ValidationError("page_size must be >= 1", field="page_size")
        self._session_factory = session_factory
        self._vector_store = vector_store
        self._page_size = page_size

    async def cleanup_orphaned_vectors(
        self,
        organization_id: str,
        deadline_seconds: float | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> ReconciliationReport:
        """
        Scan an organization's vectors and delete the orphans.

        Args:
            organization_id: Tenant id
            deadline_seconds: Stop after this many seconds (no limit if None)
            cancel_event: Stop as soon as this event is set

        Returns:
            ReconciliationReport: Counters; aborted=True when stopped early

        Raises:
            VectorStoreError: If a scroll page cannot be read
        """
        if not get_correlation_id():
            set_correlation_id()
        report = ReconciliationReport(organization_id=organization_id)
        started = time.monotonic()
        expires_at = started + deadline_seconds if deadline_seconds is not None else None

        def should_stop() -> bool:
            if cancel_event is not None and cancel_event.is_set():
                return True
            return expires_at is not None and time.monotonic() >= expires_at

        logger.info(f"{__name__}:cleanup_orphaned_vectors - Starting scan for {organization_id}")

        offset: str | None = None
        while True:
            if should_stop():
                report.aborted = True
                break

            page, offset = await self._vector_store.scroll(
                organization_id, limit=self._page_size, offset=offset
            )

            async with self._session_factory() as session:
                for record in page:
                    if should_stop():
                        report.aborted = True
                        break
                    report.scanned += 1

                    document_id = _parse_uuid(record.payload.get("document_id"))
                    if document_id is None:
                        report.skipped += 1
                        logger.warning(
                            f"{__name__}:cleanup_orphaned_vectors - Point {record.id} "
                            f"has no valid document_id, skipping"
                        )
                        continue

                    if await document_crud.exists_for_organization(
                        session, document_id, organization_id
                    ):
                        continue

                    report.orphaned += 1
                    log_with_context(
                        logger,
                        logging.WARNING,
                        f"{__name__}:cleanup_orphaned_vectors - "
                        f"{ConsistencyWarning(record.id, str(document_id), organization_id)}",
                        point_id=record.id,
                        document_id=document_id,
                    )
                    try:
                        await self._vector_store.delete_points([record.id])
                        report.deleted += 1
                    except VectorStoreError as e:
                        report.errors += 1
                        logger.error(
                            f"{__name__}:cleanup_orphaned_vectors - Failed to delete "
                            f"point {record.id}: {e}"
                        )

            if report.aborted or offset is None:
                break

        report.duration_ms = (time.monotonic() - started) * 1000
        logger.info(
            f"{__name__}:cleanup_orphaned_vectors - Finished for {organization_id}: "
            f"scanned={report.scanned} orphaned={report.orphaned} deleted={report.deleted} "
            f"errors={report.errors} skipped={report.skipped} aborted={report.aborted}"
        )
        return report
