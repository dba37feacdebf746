"""
Feedback Store

Persists user likes/dislikes of answers and finds past feedback whose
question mentions a keyword.
"""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..core.errors import DatabaseServiceError
from ..core.models import Feedback
from .models import FeedbackRecord


def _to_feedback(record: FeedbackRecord) -> Feedback:
    return Feedback(
        question=record.question,
        answer=record.answer,
        is_liked=record.is_liked,
        timestamp=record.timestamp,
    )


class FeedbackStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def save(self, question: str, answer: str, is_liked: bool) -> Feedback:
        record = FeedbackRecord(question=question, answer=answer, is_liked=is_liked)
        try:
            async with self._session_factory() as session:
                session.add(record)
                await session.commit()
                await session.refresh(record)
        except SQLAlchemyError as exc:
            raise DatabaseServiceError(f"Failed to save feedback: {type(exc).__name__}") from exc
        return _to_feedback(record)

    async def find_by_keyword(
        self,
        keyword: str,
        liked: bool,
        limit: Optional[int] = None,
    ) -> List[Feedback]:
        """
        Feedback with the given polarity whose question contains ``keyword``
        (case-insensitive), newest first.
        """
        stmt = (
            select(FeedbackRecord)
            .where(FeedbackRecord.question.icontains(keyword, autoescape=True))
            .where(FeedbackRecord.is_liked.is_(liked))
            .order_by(FeedbackRecord.timestamp.desc())
        )
        if limit is not None:
            stmt = stmt.limit(limit)

        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                records = result.scalars().all()
        except SQLAlchemyError as exc:
            raise DatabaseServiceError(f"Feedback query failed: {type(exc).__name__}") from exc

        return [_to_feedback(r) for r in records]
