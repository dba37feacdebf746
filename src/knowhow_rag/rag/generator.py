"""
Answer Generation

Calls the main chat model with the assembled prompt and classifies failures
into the four user-facing LLM error kinds.
"""

from __future__ import annotations

import logging
import socket
from dataclasses import dataclass
from typing import Iterator, Optional

import httpx

from ..core.errors import LLMErrorKind, LLMServiceError
from ..llm.client import LLMClient

logger = logging.getLogger("knowhow.rag.generator")

DEMO_API_KEY = "demo"
DEMO_ANSWER_PREFIX = "Mock LLM Response: Based on Confluence, "

_AUTH_MARKERS = ("401", "403", "Unauthorized", "Forbidden")


def _cause_chain(exc: BaseException) -> Iterator[BaseException]:
    seen = set()
    current: Optional[BaseException] = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.__cause__ or current.__context__


def classify_llm_error(exc: BaseException) -> LLMErrorKind:
    """
    Map an LLM call failure to an error kind.

    Network causes anywhere in the chain win over the outer message; only
    then is the failure checked for an authentication problem.
    """
    for cause in _cause_chain(exc):
        if isinstance(cause, (httpx.ConnectError, ConnectionRefusedError, socket.gaierror)):
            return LLMErrorKind.UNREACHABLE
        if isinstance(cause, (httpx.TimeoutException, TimeoutError)):
            return LLMErrorKind.TIMEOUT

    if isinstance(exc, httpx.HTTPStatusError) and exc.response.status_code in (401, 403):
        return LLMErrorKind.UNAUTHORIZED
    message = str(exc)
    if any(marker in message for marker in _AUTH_MARKERS):
        return LLMErrorKind.UNAUTHORIZED

    return LLMErrorKind.GENERIC


@dataclass(frozen=True)
class GenerationResult:
    """Either an answer or a classified error, never both."""

    answer: Optional[str] = None
    error: Optional[LLMServiceError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> str:
        if self.error is not None:
            raise self.error
        return self.answer or ""


def demo_answer(context_empty: bool) -> str:
    return DEMO_ANSWER_PREFIX + ("no info found." if context_empty else "found relevant info.")


class AnswerGenerator:
    def __init__(self, llm: LLMClient, api_key: str, model: str, timeout: float = 60.0):
        self._llm = llm
        self._api_key = api_key
        self._model = model
        self._timeout = timeout

    async def generate(self, prompt: str, context_empty: bool) -> GenerationResult:
        if self._api_key == DEMO_API_KEY:
            return GenerationResult(answer=demo_answer(context_empty))

        logger.debug("Prompt sent to LLM:\n%s", prompt)
        try:
            answer = await self._llm.generate(prompt, model=self._model, timeout=self._timeout)
        except Exception as exc:
            kind = classify_llm_error(exc)
            logger.error("Error calling LLM (%s): %s", kind.value, exc)
            error = LLMServiceError(kind)
            error.__cause__ = exc
            return GenerationResult(error=error)

        logger.debug("LLM response received (%d chars)", len(answer))
        return GenerationResult(answer=answer)
