"""
Vector Store Capability

Defines the interface every vector store backend implements, and the explicit
degraded variant used when the configured backend is unreachable at startup.

Backends
--------
- PgVectorStore (db/vector_store.py): PostgreSQL + pgvector
- FaissVectorStore (embeddings/index.py): in-process FAISS with optional
  on-disk persistence
- UnavailableVectorStore (this module): every call raises DatabaseServiceError
"""

from __future__ import annotations

import logging
from typing import List, Optional, Protocol, Sequence, runtime_checkable

from ..core.errors import DatabaseServiceError, ServiceDegradedError
from ..core.models import Match, Segment

logger = logging.getLogger("knowhow.vector_store")


@runtime_checkable
class VectorStore(Protocol):
    async def add_all(
        self,
        embeddings: Sequence[Sequence[float]],
        segments: Sequence[Segment],
    ) -> None:
        """Store one record per (embedding, segment) pair."""

    async def find_relevant(
        self,
        embedding: Sequence[float],
        k: int,
        min_score: Optional[float] = None,
    ) -> List[Match]:
        """
        Return up to ``k`` matches, best first. With ``min_score`` set, only
        matches scoring at least that much are returned.
        """

    async def clear(self) -> None:
        """Remove every stored record."""


class VerifiableStore(VectorStore, Protocol):
    async def verify(self) -> None:
        """Raise ServiceDegradedError if the backend cannot be used."""


class UnavailableVectorStore:
    """
    Stand-in for a backend that failed its startup check.

    Keeps the process running in degraded mode; retrieval and ingestion fail on
    first use with a DatabaseServiceError chained to the startup failure.
    """

    def __init__(self, reason: BaseException) -> None:
        self.reason = reason

    def _fail(self) -> DatabaseServiceError:
        return DatabaseServiceError(
            "Vector database is not available. The embedding store was not initialized."
        )

    async def add_all(self, embeddings, segments) -> None:
        raise self._fail() from self.reason

    async def find_relevant(self, embedding, k, min_score=None) -> List[Match]:
        raise self._fail() from self.reason

    async def clear(self) -> None:
        raise self._fail() from self.reason


async def connect_vector_store(store: VerifiableStore) -> VectorStore:
    """
    Verify ``store`` and return it, or an UnavailableVectorStore if the check
    fails. Never raises.
    """
    try:
        await store.verify()
    except ServiceDegradedError as exc:
        logger.warning(
            "Vector store unavailable, starting in degraded mode: %s", exc
        )
        return UnavailableVectorStore(exc)

    logger.info("Vector store connection verified (%s)", type(store).__name__)
    return store
