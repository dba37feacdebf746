"""
Database Package

Provides SQLAlchemy async session management, model definitions and the
pgvector / feedback stores for PostgreSQL.
"""

from .session import create_engine, create_session_factory, init_schema
from .models import Base, EmbeddingRecord, FeedbackRecord
from .vector_store import PgVectorStore
from .feedback_store import FeedbackStore

__all__ = [
    "create_engine",
    "create_session_factory",
    "init_schema",
    "Base",
    "EmbeddingRecord",
    "FeedbackRecord",
    "PgVectorStore",
    "FeedbackStore",
]
