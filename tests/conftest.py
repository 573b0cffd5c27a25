"""
Shared test fixtures and configuration for entire test suite.

Provides: in-memory SQLite engine and session factory, Qdrant local-mode
vector store, deterministic bag-of-words embeddings, fakeredis client,
document seeding helper
Dependencies: pytest, sqlalchemy, aiosqlite, qdrant_client, fakeredis
System role: Test infrastructure and fixture management
"""

import math
import re
import uuid
import zlib
from typing import Awaitable, Callable

import fakeredis
import pytest
from langchain_core.embeddings import Embeddings
from qdrant_client import AsyncQdrantClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from retrieval_core.boundary.db.base import Base
from retrieval_core.boundary.db.connection import get_async_session_factory
from retrieval_core.boundary.db.CRUD.chunk_crud import chunk_crud
from retrieval_core.boundary.db.CRUD.document_crud import document_crud
from retrieval_core.boundary.db.models import DocumentModel, DocumentStatus
from retrieval_core.boundary.embeddings import EmbeddingClient
from retrieval_core.boundary.vdb import QdrantVectorStore
from retrieval_core.core.document_processing.models import ChunkMetadata, TextChunk

EMBEDDING_DIM = 256

_WORD = re.compile(r"\w+")


class BagOfWordsEmbeddings(Embeddings):
    """
    Deterministic embeddings: normalized word counts hashed into buckets.

    Texts sharing words get a high cosine similarity, texts sharing none
    get zero, which makes semantic search assertions predictable.
    """

    def __init__(self, dimension: int = EMBEDDING_DIM) -> None:
        self.dimension = dimension

    def _embed(self, text: str) -> list[float]:
        vector = [0.0] * self.dimension
        words = _WORD.findall(text.lower())
        if not words:
            vector[0] = 1.0
            return vector
        for word in words:
            vector[1 + zlib.crc32(word.encode("utf-8")) % (self.dimension - 1)] += 1.0
        norm = math.sqrt(sum(v * v for v in vector))
        return [v / norm for v in vector]

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        return [self._embed(text) for text in texts]

    def embed_query(self, text: str) -> list[float]:
        return self._embed(text)


@pytest.fixture
async def engine() -> AsyncEngine:
    """
    Create in-memory SQLite async engine with all tables.

    Yields:
        AsyncEngine: Engine sharing one connection across sessions
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Provide session factory bound to the test engine."""
    return get_async_session_factory(engine)


@pytest.fixture
async def db_session(session_factory: async_sessionmaker[AsyncSession]) -> AsyncSession:
    """Provide a single session for CRUD-level tests."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
async def vector_store() -> QdrantVectorStore:
    """
    Provide Qdrant store running in local in-memory mode.

    Yields:
        QdrantVectorStore: Store with an empty collection
    """
    store = QdrantVectorStore(
        AsyncQdrantClient(location=":memory:"),
        collection_name="test_chunks",
        vector_size=EMBEDDING_DIM,
        timeout_seconds=10.0,
        create_payload_indexes=False,
    )
    await store.ensure_collection()
    yield store
    await store.close()


@pytest.fixture
def embeddings() -> BagOfWordsEmbeddings:
    """Provide deterministic embeddings model."""
    return BagOfWordsEmbeddings()


@pytest.fixture
def embedding_client(embeddings: BagOfWordsEmbeddings) -> EmbeddingClient:
    """Provide embedding client over the deterministic model."""
    return EmbeddingClient(embeddings, batch_size=8, timeout_seconds=5.0, dimension=EMBEDDING_DIM)


@pytest.fixture
async def redis_client() -> fakeredis.FakeAsyncRedis:
    """Provide in-process fake Redis."""
    client = fakeredis.FakeAsyncRedis()
    yield client
    await client.flushall()
    await client.aclose()


@pytest.fixture
def organization_id() -> str:
    """Provide sample organization id."""
    return "org-" + uuid.uuid4().hex[:8]


SeedDocument = Callable[..., Awaitable[DocumentModel]]


@pytest.fixture
def seed_document(session_factory: async_sessionmaker[AsyncSession]) -> SeedDocument:
    """
    Provide helper that stores a COMPLETED document with the given chunk texts.

    Returns:
        Callable: async (organization_id, chunks, title, content_hash) -> DocumentModel
    """

    async def _seed(
        organization_id: str,
        chunks: list[str],
        title: str = "Spec.pdf",
        content_hash: str | None = None,
    ) -> DocumentModel:
        async with session_factory() as session:
            document = await document_crud.create(
                session,
                organization_id=organization_id,
                title=title,
                content_type="application/pdf",
                content_hash=content_hash,
                status=DocumentStatus.COMPLETED,
                chunk_count=len(chunks),
            )
            await chunk_crud.create_many(
                session,
                document.id,
                [
                    TextChunk(
                        chunk_index=i,
                        content=text,
                        token_count=len(text.split()),
                        metadata=ChunkMetadata(page=1, source=title),
                    )
                    for i, text in enumerate(chunks)
                ],
            )
            await session.commit()
        return document

    return _seed
