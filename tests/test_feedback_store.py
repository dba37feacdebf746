"""
Feedback Store Tests

Sessions are mocked; these tests cover the mapping between records and the
Feedback model and the error wrapping, not SQL behaviour.
"""

from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from knowhow_rag.core.errors import DatabaseServiceError
from knowhow_rag.db.feedback_store import FeedbackStore
from knowhow_rag.db.models import FeedbackRecord


def session_factory_with(session):
    factory = MagicMock()
    factory.return_value.__aenter__.return_value = session
    return factory


@pytest.mark.asyncio
async def test_find_by_keyword_maps_records():
    record = FeedbackRecord(
        question="How is velocity measured?",
        answer="Story points per sprint.",
        is_liked=True,
        timestamp=datetime(2024, 5, 1, 12, 0),
    )
    result = MagicMock()
    result.scalars.return_value.all.return_value = [record]
    session = AsyncMock()
    session.execute.return_value = result

    found = await FeedbackStore(session_factory_with(session)).find_by_keyword("velocity", liked=True, limit=2)

    assert len(found) == 1
    assert found[0].question == "How is velocity measured?"
    assert found[0].is_liked is True
    assert found[0].timestamp == datetime(2024, 5, 1, 12, 0)
    session.execute.assert_awaited_once()


@pytest.mark.asyncio
async def test_query_failure_is_wrapped():
    session = AsyncMock()
    session.execute.side_effect = OperationalError("SELECT", {}, Exception("connection lost"))

    with pytest.raises(DatabaseServiceError):
        await FeedbackStore(session_factory_with(session)).find_by_keyword("velocity", liked=False)


@pytest.mark.asyncio
async def test_save_adds_and_commits():
    session = AsyncMock()
    session.add = MagicMock()

    saved = await FeedbackStore(session_factory_with(session)).save("q?", "a.", is_liked=False)

    added = session.add.call_args.args[0]
    assert isinstance(added, FeedbackRecord)
    assert added.question == "q?"
    session.commit.assert_awaited_once()
    assert saved.answer == "a."
    assert saved.is_liked is False
