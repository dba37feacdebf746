"""
Retrieval Engine

Turns a user question into ranked, tag-filtered context for the answer
prompt.

Steps
-----
1. Rewrite the question against the conversation history, if any.
2. Embed the effective query and oversample candidates from the store.
3. Apply the tag filter, if any, then keep the first ``top_k`` in store order.
4. Render the kept matches as a context string.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from ..core.models import ConversationMessage, Match, RetrievalResult
from ..embeddings.embedder import Embedder
from ..embeddings.store import VectorStore
from .rewriter import QueryRewriter

logger = logging.getLogger("knowhow.rag.retriever")


def filter_by_tags(matches: Sequence[Match], tags: Optional[Sequence[str]]) -> List[Match]:
    """
    Keep matches whose stored tags contain any requested tag
    (case-insensitive substring).

    With no requested tags every match is kept. With requested tags, a match
    without stored tags is always excluded.
    """
    if not tags:
        return list(matches)

    wanted = [t.lower() for t in tags]
    kept: List[Match] = []
    for match in matches:
        stored = match.segment.metadata.tags
        if not stored:
            continue
        stored = stored.lower()
        if any(tag in stored for tag in wanted):
            kept.append(match)
    return kept


def render_match(match: Match) -> str:
    meta = match.segment.metadata
    entry = f"Title: {meta.title}\nSource: {meta.url}\n"
    if meta.tags:
        entry += f"Tags: {meta.tags}\n"
    return entry + f"Content: {match.segment.text}"


def render_context(matches: Sequence[Match]) -> str:
    return "\n\n".join(render_match(m) for m in matches)


class RetrievalEngine:
    def __init__(
        self,
        embedder: Embedder,
        store: VectorStore,
        rewriter: QueryRewriter,
        candidates: int = 50,
        top_k: int = 15,
    ):
        self._embedder = embedder
        self._store = store
        self._rewriter = rewriter
        self.candidates = candidates
        self.top_k = top_k

    async def retrieve(
        self,
        question: str,
        tags: Optional[Sequence[str]] = None,
        history: Optional[Sequence[ConversationMessage]] = None,
    ) -> RetrievalResult:
        """
        Retrieve context for ``question``.

        Raises
        ------
        DatabaseServiceError
            If the vector store is unavailable or the search fails.
        EmbeddingError
            If the query cannot be embedded.
        """
        query = question
        if history:
            logger.debug("Conversation history size: %d", len(history))
            query = await self._rewriter.rewrite(question, history)
            logger.debug("Rewritten query: %s", query)

        embedding = await self._embedder.embed_query(query)
        candidates = await self._store.find_relevant(embedding, self.candidates)

        if tags:
            logger.debug("Filtering by tags: %s", list(tags))
        matches = filter_by_tags(candidates, tags)[: self.top_k]

        if not matches:
            logger.info("No relevant segments found; proceeding with empty context")
        else:
            logger.debug("Found %d relevant segments", len(matches))
            for match in matches:
                logger.debug(
                    "Match score=%.4f preview=%r", match.score, match.segment.text[:100]
                )

        return RetrievalResult(query=query, context=render_context(matches), matches=matches)

    async def debug_search(self, query: str, k: int = 20) -> List[str]:
        """
        Raw nearest neighbours for ``query`` without rewriting or filtering.
        """
        embedding = await self._embedder.embed_query(query)
        matches = await self._store.find_relevant(embedding, k, min_score=0.0)
        return [f"Score: {m.score} | Content: {m.segment.text}" for m in matches]
