"""
Retrieval Engine Tests
"""

from unittest.mock import AsyncMock

import pytest

from knowhow_rag.core.errors import DatabaseServiceError
from knowhow_rag.core.models import ConversationMessage
from knowhow_rag.embeddings.store import UnavailableVectorStore
from knowhow_rag.rag.retriever import RetrievalEngine, filter_by_tags, render_context

from conftest import make_match


@pytest.fixture
def embedder():
    mock = AsyncMock()
    mock.embed_query.return_value = [0.1, 0.2, 0.3]
    return mock


@pytest.fixture
def store():
    mock = AsyncMock()
    mock.find_relevant.return_value = []
    return mock


@pytest.fixture
def rewriter():
    mock = AsyncMock()
    mock.rewrite.return_value = "What is the DSI formula?"
    return mock


@pytest.fixture
def engine(embedder, store, rewriter):
    return RetrievalEngine(embedder, store, rewriter)


class TestTagFilter:

    def test_case_insensitive_substring_match(self):
        kept = filter_by_tags([make_match("x", tags="KPI, Quality")], ["kpi"])
        assert len(kept) == 1

    def test_missing_or_empty_tags_excluded(self):
        matches = [make_match("a", tags=None), make_match("b", tags="Quality")]
        assert filter_by_tags(matches, ["kpi"]) == []

    def test_any_requested_tag_is_enough(self):
        matches = [make_match("a", tags="process"), make_match("b", tags="kpi")]
        kept = filter_by_tags(matches, ["finance", "process"])
        assert [m.segment.text for m in kept] == ["a"]

    def test_no_filter_keeps_everything(self):
        matches = [make_match("a", tags=None), make_match("b", tags="kpi")]
        assert filter_by_tags(matches, None) == matches
        assert filter_by_tags(matches, []) == matches


class TestRenderContext:

    def test_blocks_with_and_without_tags(self):
        context = render_context([
            make_match("First body", tags="kpi", title="One"),
            make_match("Second body", title="Two"),
        ])

        assert context == (
            "Title: One\nSource: https://wiki.example.com/One\nTags: kpi\nContent: First body"
            "\n\n"
            "Title: Two\nSource: https://wiki.example.com/Two\nContent: Second body"
        )

    def test_no_matches_renders_empty(self):
        assert render_context([]) == ""


class TestRetrieve:

    @pytest.mark.asyncio
    async def test_oversamples_then_truncates_in_store_order(self, engine, store):
        matches = [make_match(f"seg {i}", score=1.0 - i / 100) for i in range(50)]
        store.find_relevant.return_value = matches

        result = await engine.retrieve("What is DSR?")

        store.find_relevant.assert_awaited_once_with([0.1, 0.2, 0.3], 50)
        assert result.matches == matches[:15]
        assert result.query == "What is DSR?"

    @pytest.mark.asyncio
    async def test_tag_filter_applied_before_truncation(self, engine, store):
        untagged = [make_match(f"u{i}") for i in range(20)]
        tagged = [make_match(f"t{i}", tags="KPI, Quality") for i in range(20)]
        store.find_relevant.return_value = untagged + tagged

        result = await engine.retrieve("velocity", tags=["kpi"])

        assert [m.segment.text for m in result.matches] == [f"t{i}" for i in range(15)]

    @pytest.mark.asyncio
    async def test_empty_store_gives_empty_context(self, engine):
        result = await engine.retrieve("anything")

        assert result.context == ""
        assert result.matches == []

    @pytest.mark.asyncio
    async def test_history_triggers_rewrite(self, engine, embedder, rewriter):
        history = [
            ConversationMessage(role="user", content="What is DSR?"),
            ConversationMessage(role="assistant", content="DSR is ..."),
        ]

        result = await engine.retrieve("what about DSI?", history=history)

        rewriter.rewrite.assert_awaited_once_with("what about DSI?", history)
        embedder.embed_query.assert_awaited_once_with("What is the DSI formula?")
        assert result.query == "What is the DSI formula?"

    @pytest.mark.asyncio
    async def test_no_history_skips_rewrite(self, engine, rewriter):
        await engine.retrieve("What is DSR?", history=[])
        rewriter.rewrite.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unavailable_store_raises(self, embedder, rewriter):
        engine = RetrievalEngine(embedder, UnavailableVectorStore(RuntimeError("down")), rewriter)

        with pytest.raises(DatabaseServiceError):
            await engine.retrieve("What is DSR?")

    @pytest.mark.asyncio
    async def test_debug_search_lines(self, engine, store):
        store.find_relevant.return_value = [make_match("hello", score=0.5)]

        lines = await engine.debug_search("hello")

        store.find_relevant.assert_awaited_once_with([0.1, 0.2, 0.3], 20, min_score=0.0)
        assert lines == ["Score: 0.5 | Content: hello"]
