"""
Feedback Augmentation

Turns past user feedback on similar questions into few-shot examples for the
answer prompt. Similarity is a plain keyword match on the longest word of
the query.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Protocol

from ..core.models import Feedback

logger = logging.getLogger("knowhow.rag.feedback")

MIN_KEYWORD_LENGTH = 4
MAX_EXAMPLES = 2

FEEDBACK_HEADER = "\n\n--- Previous Feedback for Similar Questions ---\n"
GOOD_HEADER = "Examples of GOOD responses (liked by users):\n"
BAD_HEADER = "Examples of BAD responses (disliked by users - avoid similar approaches):\n"


class FeedbackSource(Protocol):
    async def find_by_keyword(
        self, keyword: str, liked: bool, limit: Optional[int] = None
    ) -> List[Feedback]: ...


def select_keyword(query: str) -> Optional[str]:
    """
    First strictly-longest lower-cased word of at least four characters.
    """
    keyword = ""
    for word in query.lower().split():
        if len(word) > len(keyword) and len(word) >= MIN_KEYWORD_LENGTH:
            keyword = word
    return keyword or None


def _render_examples(header: str, examples: List[Feedback]) -> str:
    if not examples:
        return ""
    body = "".join(f"Q: {fb.question}\nA: {fb.answer}\n\n" for fb in examples[:MAX_EXAMPLES])
    return header + body


def render_feedback(liked: List[Feedback], disliked: List[Feedback]) -> str:
    if not liked and not disliked:
        return ""
    return FEEDBACK_HEADER + _render_examples(GOOD_HEADER, liked) + _render_examples(BAD_HEADER, disliked)


class FeedbackAugmenter:
    def __init__(self, store: Optional[FeedbackSource]):
        self._store = store

    async def augment(self, query: str) -> str:
        """
        Few-shot block for ``query``, or an empty string when there is no
        keyword, no matching feedback, no store, or the store fails.
        """
        if self._store is None:
            return ""

        keyword = select_keyword(query)
        if keyword is None:
            return ""

        try:
            liked = await self._store.find_by_keyword(keyword, liked=True, limit=MAX_EXAMPLES)
            disliked = await self._store.find_by_keyword(keyword, liked=False, limit=MAX_EXAMPLES)
        except Exception as exc:
            logger.warning("Error querying feedback: %s", exc)
            return ""

        block = render_feedback(liked, disliked)
        if block:
            logger.debug(
                "Found %d liked / %d disliked feedback examples for '%s'",
                min(len(liked), MAX_EXAMPLES),
                min(len(disliked), MAX_EXAMPLES),
                keyword,
            )
        return block
