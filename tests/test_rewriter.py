from unittest.mock import AsyncMock

import httpx
import pytest

from knowhow_rag.core.models import ConversationMessage
from knowhow_rag.rag.rewriter import QueryRewriter

HISTORY = [
    ConversationMessage(role="user", content="What is DSR?"),
    ConversationMessage(role="assistant", content="DSR is the defect seepage rate."),
]


@pytest.mark.asyncio
async def test_rewrite_uses_fast_model_and_full_history():
    llm = AsyncMock()
    llm.generate.return_value = "  What is the DSI formula?  "
    rewriter = QueryRewriter(llm, model="fast-model", timeout=30)

    result = await rewriter.rewrite("what about DSI?", HISTORY)

    assert result == "What is the DSI formula?"
    prompt = llm.generate.await_args.args[0]
    assert "User: What is DSR?\nAssistant: DSR is the defect seepage rate." in prompt
    assert "--- Follow-up Question ---\nwhat about DSI?" in prompt
    assert prompt.endswith("--- Rewritten Question ---")
    assert llm.generate.await_args.kwargs == {"model": "fast-model", "timeout": 30}


@pytest.mark.asyncio
async def test_llm_failure_falls_back_to_original():
    llm = AsyncMock()
    llm.generate.side_effect = httpx.ConnectError("refused")
    rewriter = QueryRewriter(llm, model="fast-model")

    assert await rewriter.rewrite("what about DSI?", HISTORY) == "what about DSI?"


@pytest.mark.asyncio
async def test_blank_reply_falls_back_to_original():
    llm = AsyncMock()
    llm.generate.return_value = "   "
    rewriter = QueryRewriter(llm, model="fast-model")

    assert await rewriter.rewrite("what about DSI?", HISTORY) == "what about DSI?"


@pytest.mark.asyncio
async def test_empty_history_returns_question_without_calling_llm():
    llm = AsyncMock()
    rewriter = QueryRewriter(llm, model="fast-model")

    assert await rewriter.rewrite("What is DSR?", []) == "What is DSR?"
    llm.generate.assert_not_awaited()
