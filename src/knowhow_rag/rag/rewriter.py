import logging
from typing import Optional, Sequence

from ..core.models import ConversationMessage
from ..llm.client import LLMClient
from .prompts import build_rewrite_prompt

logger = logging.getLogger("knowhow.rag.rewriter")


class QueryRewriter:
    """
    Folds conversation history into a standalone search query using the fast
    model tier. Never raises: on any failure the original question is used.
    """

    def __init__(self, llm: LLMClient, model: str, timeout: float = 30.0):
        self._llm = llm
        self._model = model
        self._timeout = timeout

    async def rewrite(
        self,
        question: str,
        history: Optional[Sequence[ConversationMessage]],
    ) -> str:
        if not history:
            return question

        prompt = build_rewrite_prompt(question, history)
        try:
            rewritten = await self._llm.generate(prompt, model=self._model, timeout=self._timeout)
        except Exception as exc:
            logger.warning("Error rewriting query, using original: %s", exc)
            return question

        rewritten = (rewritten or "").strip()
        if not rewritten:
            logger.debug("Rewriter returned blank output, using original question")
            return question
        return rewritten
