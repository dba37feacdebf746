"""
Question Pipeline

Wires the query flow:

    rewrite -> retrieve -> feedback -> prompt -> generate

The service owns no state beyond its collaborators and can be shared across
concurrent requests.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from ..core.errors import ErrorNotifier, LLMServiceError, log_error_notifier
from ..core.models import ChatAnswer, ConversationMessage
from ..llm.client import LLMClient
from .feedback import FeedbackAugmenter
from .generator import AnswerGenerator
from .prompts import assemble_prompt, build_suggestions_prompt, render_conversation
from .retriever import RetrievalEngine

logger = logging.getLogger("knowhow.rag.pipeline")

MAX_SUGGESTIONS = 3


class RAGService:
    def __init__(
        self,
        retriever: RetrievalEngine,
        augmenter: FeedbackAugmenter,
        generator: AnswerGenerator,
        notifier: ErrorNotifier = log_error_notifier,
        suggester: Optional[LLMClient] = None,
        suggestion_model: str = "",
        suggestion_timeout: float = 30.0,
    ):
        """
        Parameters
        ----------
        retriever : RetrievalEngine
            Produces the effective query and rendered context.
        augmenter : FeedbackAugmenter
            Produces the few-shot feedback block.
        generator : AnswerGenerator
            Calls the main model.
        notifier : ErrorNotifier
            Receives every classified LLM failure before it is raised.
        suggester : LLMClient, optional
            When set, questions with no retrieved context get up to three
            alternative questions from ``suggestion_model``.
        """
        self._retriever = retriever
        self._augmenter = augmenter
        self._generator = generator
        self._notifier = notifier
        self._suggester = suggester
        self._suggestion_model = suggestion_model
        self._suggestion_timeout = suggestion_timeout

    async def ask(
        self,
        question: str,
        include_web_content: bool = False,
        tags: Optional[Sequence[str]] = None,
        history: Optional[Sequence[ConversationMessage]] = None,
    ) -> ChatAnswer:
        """
        Answer ``question`` from the indexed documentation.

        Raises
        ------
        LLMServiceError
            If the main model call fails; the message is user-facing.
        DatabaseServiceError
            If the vector store is unavailable.
        """
        logger.info("New question received: %s", question)

        retrieval = await self._retriever.retrieve(question, tags=tags, history=history)
        feedback = await self._augmenter.augment(retrieval.query)
        prompt = assemble_prompt(
            include_web_content=include_web_content,
            conversation=render_conversation(history),
            context=retrieval.context,
            feedback=feedback,
            query=retrieval.query,
        )

        context_empty = not retrieval.context
        result = await self._generator.generate(prompt, context_empty=context_empty)
        if result.error is not None:
            self._report(result.error, question)
        answer = result.unwrap()

        suggestions = None
        if context_empty and self._suggester is not None:
            suggestions = await self.suggest_questions(question)

        return ChatAnswer(answer=answer, suggested_questions=suggestions)

    async def suggest_questions(self, question: str) -> List[str]:
        """
        Up to three alternative questions for a question that matched
        nothing. Failures yield an empty list.
        """
        if self._suggester is None:
            return []
        try:
            reply = await self._suggester.generate(
                build_suggestions_prompt(question),
                model=self._suggestion_model,
                timeout=self._suggestion_timeout,
            )
        except Exception as exc:
            logger.warning("Error generating suggestions: %s", exc)
            return []
        lines = [line.strip() for line in reply.splitlines()]
        return [line for line in lines if line][:MAX_SUGGESTIONS]

    def _report(self, error: LLMServiceError, question: str) -> None:
        cause = error.__cause__ or error
        self._notifier(
            "RAG Service - LLM Call",
            cause,
            f"Failed to generate answer for question: {question} ({error.kind.value})",
        )
