"""
SQLAlchemy Models

Defines the database schema for:
- Segment embeddings (pgvector), one row per stored segment
- User feedback on generated answers
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Index,
    Integer,
    Text,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from pgvector.sqlalchemy import Vector


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


# ---------------------------------------------------------------------
# Embedding Model
# ---------------------------------------------------------------------

class EmbeddingRecord(Base):
    """
    One embedded segment.

    The vector column is declared without a fixed dimension; the store
    validates dimensionality before writing.
    """
    __tablename__ = "vector_store"

    embedding_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    embedding = Column(Vector(), nullable=False)
    text: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    metadata_: Mapped[Optional[dict]] = mapped_column(
        "metadata",
        JSONB,
        nullable=True,
    )


# ---------------------------------------------------------------------
# Feedback Model
# ---------------------------------------------------------------------

class FeedbackRecord(Base):
    """
    A user's like/dislike of one question/answer pair.
    """
    __tablename__ = "feedback"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    question: Mapped[str] = mapped_column(Text, nullable=False)
    answer: Mapped[str] = mapped_column(Text, nullable=False)
    is_liked: Mapped[bool] = mapped_column(Boolean, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        server_default=func.now(),
    )

    __table_args__ = (
        Index("idx_feedback_liked_ts", "is_liked", "timestamp"),
    )
