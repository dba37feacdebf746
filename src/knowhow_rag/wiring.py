"""
Service Wiring

The only place that reads ``Settings``. Builds every collaborator once and
hands them to the ingestion and question services by constructor.

Backends
--------
- ``vector_backend="pgvector"``: PgVectorStore plus the PostgreSQL feedback
  store, sharing one async engine.
- ``vector_backend="faiss"``: FaissVectorStore, no engine and no feedback
  store; the feedback block is then always empty.

Either backend goes through ``connect_vector_store``, so an unreachable store
yields a running but degraded service instead of a startup failure.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine

from .config import Settings
from .confluence.api_client import ConfluenceClient
from .core.errors import ErrorNotifier, log_error_notifier
from .db.feedback_store import FeedbackStore
from .db.session import create_engine, create_session_factory
from .db.vector_store import PgVectorStore
from .embeddings.embedder import Embedder
from .embeddings.index import FaissVectorStore
from .embeddings.store import VectorStore, VerifiableStore, connect_vector_store
from .extraction.extractor import TextExtractor
from .extraction.ocr import VisionOCR
from .extraction.parser import DocumentParser
from .ingestion.chunker import Chunker
from .ingestion.orchestrator import IngestionService
from .llm.client import LLMClient
from .rag.feedback import FeedbackAugmenter
from .rag.generator import AnswerGenerator
from .rag.pipeline import RAGService
from .rag.retriever import RetrievalEngine
from .rag.rewriter import QueryRewriter

logger = logging.getLogger("knowhow.wiring")


@dataclass
class Services:
    store: VectorStore
    retriever: RetrievalEngine
    ingestion: IngestionService
    rag: RAGService
    feedback_store: Optional[FeedbackStore] = None
    engine: Optional[AsyncEngine] = None

    async def close(self) -> None:
        if self.engine is not None:
            await self.engine.dispose()


async def build_services(
    settings: Settings,
    notifier: ErrorNotifier = log_error_notifier,
) -> Services:
    api_key = settings.openai_api_key.get_secret_value()
    llm = LLMClient(api_key=api_key, base_url=settings.openai_base_url)
    embedder = Embedder(
        api_key=api_key,
        model=settings.embedding_model,
        dimension=settings.embedding_dimension,
        base_url=settings.openai_base_url,
        batch_size=settings.embedding_batch_size,
    )

    engine: Optional[AsyncEngine] = None
    feedback_store: Optional[FeedbackStore] = None
    backend: VerifiableStore
    if settings.vector_backend == "pgvector":
        engine = create_engine(settings.database_url)
        session_factory = create_session_factory(engine)
        backend = PgVectorStore(engine, session_factory, settings.embedding_dimension)
        feedback_store = FeedbackStore(session_factory)
    else:
        backend = FaissVectorStore(settings.embedding_dimension, settings.faiss_index_path)

    logger.info("Connecting to %s vector store", settings.vector_backend)
    store = await connect_vector_store(backend)

    source = ConfluenceClient(
        base_url=str(settings.confluence_url),
        space_key=settings.confluence_space_key,
        username=settings.confluence_username,
        api_token=settings.confluence_api_token.get_secret_value(),
        timeout=settings.confluence_timeout,
    )
    extractor = TextExtractor(
        VisionOCR(llm, model=settings.ocr_model, timeout=settings.ocr_timeout),
        DocumentParser(),
    )
    ingestion = IngestionService(
        source=source,
        extractor=extractor,
        chunker=Chunker(settings.chunk_size, settings.chunk_overlap),
        embedder=embedder,
        store=store,
        batch_size=settings.ingest_batch_size,
        max_offset=settings.ingest_max_offset,
        content_types=settings.ingest_content_types,
        notifier=notifier,
    )

    retriever = RetrievalEngine(
        embedder=embedder,
        store=store,
        rewriter=QueryRewriter(llm, settings.fast_chat_model, settings.fast_chat_timeout),
        candidates=settings.retrieval_candidates,
        top_k=settings.retrieval_top_k,
    )
    rag = RAGService(
        retriever=retriever,
        augmenter=FeedbackAugmenter(feedback_store),
        generator=AnswerGenerator(llm, api_key, settings.chat_model, settings.chat_timeout),
        notifier=notifier,
        suggester=llm if settings.suggest_questions_on_empty else None,
        suggestion_model=settings.fast_chat_model,
        suggestion_timeout=settings.fast_chat_timeout,
    )

    return Services(
        store=store,
        retriever=retriever,
        ingestion=ingestion,
        rag=rag,
        feedback_store=feedback_store,
        engine=engine,
    )
