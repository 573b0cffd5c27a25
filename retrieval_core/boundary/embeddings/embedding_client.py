"""
Embedding client.

Wraps any LangChain Embeddings implementation with batching, a per-request
timeout, and dimension checks, surfacing every failure as
EmbeddingServiceError.

Dependencies: langchain_core
System role: Text to vector conversion for indexing and querying
"""

import asyncio
import logging
from typing import Awaitable, Sequence, TypeVar

from langchain_core.embeddings import Embeddings

from retrieval_core.core.exceptions import EmbeddingServiceError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class EmbeddingClient:
    """Batched, time-bounded access to an embedding model."""

    def __init__(
        self,
        embeddings: Embeddings,
        batch_size: int = 32,
        timeout_seconds: float = 30.0,
        dimension: int | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            embeddings: LangChain embeddings model
            batch_size: Texts sent per request
            timeout_seconds: Upper bound for one request
            dimension: Expected vector length (unchecked if None)
        """
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self._embeddings = embeddings
        self._batch_size = batch_size
        self._timeout = timeout_seconds
        self.dimension = dimension

    async def _bounded(self, operation: str, awaitable: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(awaitable, timeout=self._timeout)
        except asyncio.TimeoutError as e:
            raise EmbeddingServiceError(
                f"Embedding {operation} timed out after {self._timeout}s",
                operation=operation,
            ) from e
        except EmbeddingServiceError:
            raise
        except Exception as e:
            raise EmbeddingServiceError(
                f"Embedding {operation} failed: {e}",
                operation=operation,
                details={"error_type": type(e).__name__},
            ) from e

    def _check_dimension(self, operation: str, vector: Sequence[float]) -> None:
        if self.dimension is not None and len(vector) != self.dimension:
            raise EmbeddingServiceError(
                f"Embedding dimension mismatch: expected {self.dimension}, got {len(vector)}",
                operation=operation,
            )

    async def embed_documents(self, texts: Sequence[str]) -> list[list[float]]:
        """
        Embed texts in batches, preserving input order.

        Args:
            texts: Texts to embed

        Returns:
            list[list[float]]: One vector per input text

        Raises:
            EmbeddingServiceError: On failure, timeout, or malformed response
        """
        vectors: list[list[float]] = []
        for start in range(0, len(texts), self._batch_size):
            batch = list(texts[start:start + self._batch_size])
            result = await self._bounded(
                "embed_documents", self._embeddings.aembed_documents(batch)
            )
            if len(result) != len(batch):
                raise EmbeddingServiceError(
                    f"Embedding service returned {len(result)} vectors for {len(batch)} texts",
                    operation="embed_documents",
                )
            for vector in result:
                self._check_dimension("embed_documents", vector)
            vectors.extend(list(v) for v in result)

        logger.debug(
            f"{__name__}:embed_documents - Embedded {len(texts)} texts "
            f"in {max(1, -(-len(texts) // self._batch_size))} batches"
        )
        return vectors

    async def embed_query(self, text: str) -> list[float]:
        """
        Embed a single query.

        Raises:
            EmbeddingServiceError: On failure, timeout, or malformed response
        """
        vector = await self._bounded("embed_query", self._embeddings.aembed_query(text))
        self._check_dimension("embed_query", vector)
        return list(vector)
