"""
Vector Store

PostgreSQL + pgvector implementation of the VectorStore capability.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from sqlalchemy import func, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from ..core.errors import DatabaseServiceError, ServiceDegradedError
from ..core.models import Match, Segment, SegmentMetadata
from .models import EmbeddingRecord
from .session import init_schema


class PgVectorStore:
    """
    pgvector-backed store. Each call opens its own session, so one call is
    one transaction.
    """

    def __init__(
        self,
        engine: AsyncEngine,
        session_factory: async_sessionmaker[AsyncSession],
        dimension: int,
    ) -> None:
        """
        Parameters
        ----------
        engine : AsyncEngine
            Used for schema creation during ``verify()``.
        session_factory : async_sessionmaker
            Produces sessions for reads and writes.
        dimension : int
            Required embedding size; other sizes are rejected on write.
        """
        self._engine = engine
        self._session_factory = session_factory
        self.dimension = dimension

    async def verify(self) -> None:
        """
        Create the schema if needed and run a trivial query.
        """
        try:
            await init_schema(self._engine)
            await self.count()
        except (SQLAlchemyError, OSError, DatabaseServiceError) as exc:
            raise ServiceDegradedError(
                f"Failed to initialize vector store: {type(exc).__name__}"
            ) from exc

    async def count(self) -> int:
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(func.count()).select_from(EmbeddingRecord)
                )
                return result.scalar() or 0
        except SQLAlchemyError as exc:
            raise DatabaseServiceError(f"Count failed: {type(exc).__name__}") from exc

    async def add_all(
        self,
        embeddings: Sequence[Sequence[float]],
        segments: Sequence[Segment],
    ) -> None:
        if len(embeddings) != len(segments):
            raise DatabaseServiceError("Embedding count does not match segment count.")
        if not segments:
            return

        for i, emb in enumerate(embeddings):
            if len(emb) != self.dimension:
                raise DatabaseServiceError(
                    f"Embedding at index {i} has dimension {len(emb)}, "
                    f"index dimension is {self.dimension}."
                )

        records = [
            EmbeddingRecord(
                embedding=list(emb),
                text=segment.text,
                metadata_=segment.metadata.to_dict(),
            )
            for emb, segment in zip(embeddings, segments)
        ]

        try:
            async with self._session_factory() as session:
                session.add_all(records)
                await session.commit()
        except SQLAlchemyError as exc:
            raise DatabaseServiceError(f"Failed to store embeddings: {type(exc).__name__}") from exc

    async def find_relevant(
        self,
        embedding: Sequence[float],
        k: int,
        min_score: Optional[float] = None,
    ) -> List[Match]:
        """
        Nearest neighbours by cosine similarity (``1 - cosine distance``),
        optionally cut off below ``min_score``.
        """
        cosine_distance = EmbeddingRecord.embedding.cosine_distance(list(embedding))
        score = (1 - cosine_distance).label("score")

        stmt = (
            select(
                EmbeddingRecord.text.label("text"),
                EmbeddingRecord.metadata_.label("meta"),
                score,
            )
            .order_by(cosine_distance)
            .limit(k)
        )
        if min_score is not None:
            stmt = stmt.where(score >= min_score)

        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                rows = result.all()
        except SQLAlchemyError as exc:
            raise DatabaseServiceError(f"Vector search failed: {type(exc).__name__}") from exc

        return [
            Match(
                score=float(row.score),
                segment=Segment(
                    text=row.text or "",
                    metadata=SegmentMetadata.from_dict(row.meta),
                ),
            )
            for row in rows
        ]

    async def clear(self) -> None:
        try:
            async with self._session_factory() as session:
                await session.execute(text(f"TRUNCATE TABLE {EmbeddingRecord.__tablename__}"))
                await session.commit()
        except SQLAlchemyError as exc:
            raise DatabaseServiceError(f"Failed to clear vector store: {type(exc).__name__}") from exc
