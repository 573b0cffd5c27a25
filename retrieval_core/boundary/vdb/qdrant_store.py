"""
Qdrant vector store.

Wraps AsyncQdrantClient with organization filtering for multi-tenant
isolation, bounded call durations, and error translation.

Payload Keys:
- Filterable (indexed): organization_id, document_id
- Stored: chunk_id, chunk_index, content, title, content_type, metadata

Dependencies: qdrant_client, retrieval_core.boundary.vdb.vector_schemas
System role: Vector store adapter (upsert/search/delete/count/scroll)
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Sequence, TypeVar

from qdrant_client import AsyncQdrantClient
from qdrant_client.http import models as qmodels

from retrieval_core.boundary.vdb.vector_schemas import (
    CollectionInfo,
    ScoredVector,
    StoredVector,
    VectorRecord,
)
from retrieval_core.core.exceptions import ValidationError, VectorStoreError

logger = logging.getLogger(__name__)

T = TypeVar("T")

FILTERABLE_FIELDS = ("organization_id", "document_id")


def build_filter(
    organization_id: str | None = None,
    document_id: str | None = None,
) -> qmodels.Filter:
    """
    Build a payload filter from the given keys.

    Args:
        organization_id: Tenant id to match
        document_id: Document id to match

    Returns:
        qmodels.Filter: Conjunction of exact-match conditions
    """
    must: list[qmodels.Condition] = []
    if organization_id is not None:
        must.append(
            qmodels.FieldCondition(
                key="organization_id", match=qmodels.MatchValue(value=organization_id)
            )
        )
    if document_id is not None:
        must.append(
            qmodels.FieldCondition(key="document_id", match=qmodels.MatchValue(value=document_id))
        )
    return qmodels.Filter(must=must)


class QdrantVectorStore:
    """
    Qdrant-backed vector store.

    One collection holds every tenant; isolation comes from the
    organization_id filter that search and scroll refuse to run without.
    Every call is bounded by timeout_seconds and surfaces failures as
    VectorStoreError.
    """

    def __init__(
        self,
        client: AsyncQdrantClient,
        collection_name: str = "knowledge_base",
        vector_size: int = 768,
        timeout_seconds: float = 30.0,
        upsert_batch_size: int = 64,
        create_payload_indexes: bool = True,
    ) -> None:
        """
        Initialize the store.

        Args:
            client: Connected AsyncQdrantClient (server or local mode)
            collection_name: Collection holding all vectors
            vector_size: Embedding dimension
            timeout_seconds: Upper bound for each call
            upsert_batch_size: Maximum points per upsert request
            create_payload_indexes: Create payload indexes (server mode only)
        """
        self._client = client
        self.collection_name = collection_name
        self.vector_size = vector_size
        self._timeout = timeout_seconds
        self._upsert_batch_size = upsert_batch_size
        self._create_payload_indexes = create_payload_indexes
        self._collection_ready = False

    async def _call(self, operation: str, awaitable: Awaitable[T], **context: Any) -> T:
        """Await a client call under the timeout, translating failures."""
        try:
            return await asyncio.wait_for(awaitable, timeout=self._timeout)
        except asyncio.TimeoutError as e:
            logger.error(
                f"{__name__}:{operation} - Timed out after {self._timeout}s",
                extra=context,
            )
            raise VectorStoreError(
                f"Vector store {operation} timed out after {self._timeout}s",
                operation=operation,
                details=context,
            ) from e
        except VectorStoreError:
            raise
        except Exception as e:
            logger.error(
                f"{__name__}:{operation} - {type(e).__name__}: {e}",
                extra=context,
            )
            raise VectorStoreError(
                f"Vector store {operation} failed: {e}",
                operation=operation,
                details=context,
            ) from e

    async def ensure_collection(self) -> None:
        """
        Create the collection and its payload indexes if missing.

        Raises:
            VectorStoreError: If Qdrant is unreachable or rejects the request
        """
        if self._collection_ready:
            return

        exists = await self._call(
            "collection_exists", self._client.collection_exists(self.collection_name)
        )
        if not exists:
            logger.info(
                f"{__name__}:ensure_collection - Creating collection "
                f"{self.collection_name} (size={self.vector_size}, distance=cosine)"
            )
            await self._call(
                "create_collection",
                self._client.create_collection(
                    collection_name=self.collection_name,
                    vectors_config=qmodels.VectorParams(
                        size=self.vector_size,
                        distance=qmodels.Distance.COSINE,
                    ),
                ),
            )
            if self._create_payload_indexes:
                for field in FILTERABLE_FIELDS:
                    await self._call(
                        "create_payload_index",
                        self._client.create_payload_index(
                            collection_name=self.collection_name,
                            field_name=field,
                            field_schema=qmodels.PayloadSchemaType.KEYWORD,
                        ),
                    )
        self._collection_ready = True

    async def upsert(self, records: Sequence[VectorRecord]) -> int:
        """
        Insert or overwrite vector records keyed by id.

        Args:
            records: Records to write; an existing id is overwritten

        Returns:
            int: Number of records written

        Raises:
            VectorStoreError: On failure or timeout
        """
        if not records:
            return 0
        await self.ensure_collection()

        for start in range(0, len(records), self._upsert_batch_size):
            batch = records[start:start + self._upsert_batch_size]
            points = [
                qmodels.PointStruct(
                    id=record.id,
                    vector=record.vector,
                    payload=record.payload.to_qdrant(),
                )
                for record in batch
            ]
            await self._call(
                "upsert",
                self._client.upsert(
                    collection_name=self.collection_name,
                    points=points,
                    wait=True,
                ),
                batch_start=start,
                batch_size=len(points),
            )
        return len(records)

    async def search(
        self,
        vector: list[float],
        organization_id: str,
        limit: int,
        score_threshold: float | None = None,
    ) -> list[ScoredVector]:
        """
        Nearest-neighbour query restricted to one organization.

        Args:
            vector: Query embedding
            organization_id: Tenant id (required)
            limit: Maximum hits
            score_threshold: Minimum cosine similarity

        Returns:
            list[ScoredVector]: Hits ordered by descending score

        Raises:
            ValidationError: If organization_id is empty
            VectorStoreError: On failure or timeout
        """
        if not organization_id:
            raise ValidationError("organization_id is required for search", field="organization_id")
        await self.ensure_collection()

        response = await self._call(
            "search",
            self._client.query_points(
                collection_name=self.collection_name,
                query=vector,
                query_filter=build_filter(organization_id=organization_id),
                limit=limit,
                score_threshold=score_threshold,
                with_payload=True,
            ),
            organization_id=organization_id,
        )
        return [
            ScoredVector(id=str(point.id), score=point.score, payload=point.payload or {})
            for point in response.points
        ]

    async def count(
        self,
        organization_id: str | None = None,
        document_id: str | None = None,
    ) -> int:
        """
        Count records matching the given payload keys.

        Returns:
            int: Exact number of matching points
        """
        await self.ensure_collection()
        result = await self._call(
            "count",
            self._client.count(
                collection_name=self.collection_name,
                count_filter=build_filter(organization_id, document_id),
                exact=True,
            ),
        )
        return result.count

    async def delete_by_document(self, document_id: str) -> int:
        """
        Delete every vector of a document.

        Counts first so callers learn how many records were removed; a zero
        count skips the delete request.

        Args:
            document_id: Owning document id

        Returns:
            int: Number of records deleted

        Raises:
            VectorStoreError: On failure or timeout
        """
        start = time.perf_counter()
        existing = await self.count(document_id=document_id)
        if existing == 0:
            logger.info(
                f"{__name__}:delete_by_document - No vectors for document {document_id}"
            )
            return 0

        await self._call(
            "delete",
            self._client.delete(
                collection_name=self.collection_name,
                points_selector=qmodels.FilterSelector(
                    filter=build_filter(document_id=document_id)
                ),
                wait=True,
            ),
            document_id=document_id,
        )
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(
            f"{__name__}:delete_by_document - Deleted {existing} vectors for document "
            f"{document_id} in {elapsed_ms:.1f}ms"
        )
        return existing

    async def delete_points(self, point_ids: Sequence[str]) -> None:
        """
        Delete records by id.

        Raises:
            VectorStoreError: On failure or timeout
        """
        if not point_ids:
            return
        await self._call(
            "delete",
            self._client.delete(
                collection_name=self.collection_name,
                points_selector=qmodels.PointIdsList(points=list(point_ids)),
                wait=True,
            ),
            point_count=len(point_ids),
        )

    async def scroll(
        self,
        organization_id: str,
        limit: int,
        offset: str | None = None,
    ) -> tuple[list[StoredVector], str | None]:
        """
        Read one page of an organization's records.

        Args:
            organization_id: Tenant id (required)
            limit: Page size
            offset: Cursor returned by the previous page

        Returns:
            tuple: (records, next cursor or None when exhausted)

        Raises:
            ValidationError: If organization_id is empty
            VectorStoreError: On failure or timeout
        """
        if not organization_id:
            raise ValidationError("organization_id is required for scroll", field="organization_id")
        await self.ensure_collection()

        records, next_offset = await self._call(
            "scroll",
            self._client.scroll(
                collection_name=self.collection_name,
                scroll_filter=build_filter(organization_id=organization_id),
                limit=limit,
                offset=offset,
                with_payload=True,
                with_vectors=False,
            ),
            organization_id=organization_id,
        )
        page = [StoredVector(id=str(r.id), payload=r.payload or {}) for r in records]
        return page, (str(next_offset) if next_offset is not None else None)

    async def document_ids(self, organization_id: str, page_size: int = 100) -> set[str]:
        """
        Collect the distinct document ids that have vectors for an organization.

        Args:
            organization_id: Tenant id
            page_size: Scroll page size

        Returns:
            set[str]: Document ids present in the vector store
        """
        found: set[str] = set()
        offset: str | None = None
        while True:
            page, offset = await self.scroll(organization_id, limit=page_size, offset=offset)
            found.update(
                str(record.payload["document_id"])
                for record in page
                if record.payload.get("document_id")
            )
            if offset is None:
                return found

    async def collection_info(self) -> CollectionInfo:
        """
        Describe the backing collection.

        Returns:
            CollectionInfo: Name, status, point and segment counts
        """
        await self.ensure_collection()
        info = await self._call(
            "get_collection", self._client.get_collection(self.collection_name)
        )
        vectors = info.config.params.vectors
        return CollectionInfo(
            name=self.collection_name,
            status=str(getattr(info.status, "value", info.status)),
            points_count=info.points_count or 0,
            indexed_vectors_count=info.indexed_vectors_count or 0,
            segments_count=info.segments_count or 0,
            vector_size=getattr(vectors, "size", None),
        )

    async def close(self) -> None:
        """Close the underlying client."""
        await self._client.close()
