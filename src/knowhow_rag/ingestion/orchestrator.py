"""
Ingestion Orchestrator

Drives a full re-ingestion of the content source into the vector store:

    clear index -> paginate -> dedup -> extract -> chunk -> embed -> store

Pagination Safety
-----------------
A run stops paginating a content type when any of these holds:
- the batch is empty
- the batch contains no page id not already seen for this content type
- the cumulative offset passes ``max_offset``

Failure Semantics
-----------------
- Clearing the index is best effort; a failure is logged and the run goes on.
- Vector-store failures, content-source failures while paginating, and any
  error escaping the per-item boundaries abort the run as IngestionError.
- Any other failure on one attachment or one page body is logged and counts
  as zero segments.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Dict, List, Optional, Protocol, Sequence, Set

from ..core.errors import (
    ContentSourceError,
    DatabaseServiceError,
    ErrorNotifier,
    IngestionError,
    log_error_notifier,
)
from ..core.models import Page, Segment
from ..embeddings.embedder import Embedder
from ..embeddings.store import VectorStore
from ..extraction.extractor import AttachmentKind, TextExtractor, classify_media_type
from .chunker import Chunker, build_tagged_text, segment_metadata

logger = logging.getLogger("knowhow.ingestion")

PageFetcher = Callable[[int, int], Awaitable[List[Page]]]


class ContentSource(Protocol):
    async def fetch_pages(self, start: int, limit: int) -> List[Page]: ...

    async def fetch_blog_posts(self, start: int, limit: int) -> List[Page]: ...

    async def fetch_attachments(self, content_id: str) -> List[Page]: ...

    async def download_attachment(self, download_url: str) -> Optional[bytes]: ...


class IngestionService:
    def __init__(
        self,
        source: ContentSource,
        extractor: TextExtractor,
        chunker: Chunker,
        embedder: Embedder,
        store: VectorStore,
        batch_size: int = 200,
        max_offset: int = 10000,
        content_types: Sequence[str] = ("page",),
        notifier: ErrorNotifier = log_error_notifier,
    ) -> None:
        self._source = source
        self._extractor = extractor
        self._chunker = chunker
        self._embedder = embedder
        self._store = store
        self._batch_size = batch_size
        self._max_offset = max_offset
        self._content_types = tuple(content_types)
        self._notifier = notifier

        self._fetchers: Dict[str, PageFetcher] = {
            "page": source.fetch_pages,
            "blogpost": source.fetch_blog_posts,
        }
        unknown = [t for t in self._content_types if t not in self._fetchers]
        if unknown:
            raise ValueError(f"Unsupported content types: {unknown}")

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def ingest_all(self) -> int:
        """
        Clear the index and ingest every configured content type.

        Returns
        -------
        int
            Total number of segments stored.

        Raises
        ------
        IngestionError
            If the content source or the vector store fails, or any other
            error escapes the per-item boundaries.
        """
        await self._clear_index()

        total = 0
        try:
            for content_type in self._content_types:
                logger.info("Starting ingestion of %ss", content_type)
                total += await self._ingest_content(content_type)
        except Exception as exc:
            self._notifier(
                "Ingestion Process",
                exc,
                "Failed during full content ingestion. Process was interrupted.",
            )
            raise IngestionError(f"Ingestion failed: {exc}") from exc

        logger.info("Ingestion complete. Total segments stored: %d", total)
        return total

    # ------------------------------------------------------------------
    # Pagination
    # ------------------------------------------------------------------

    async def _clear_index(self) -> None:
        logger.info("Clearing existing data")
        try:
            await self._store.clear()
        except Exception:
            logger.exception("Error clearing data, continuing with ingestion")

    async def _ingest_content(self, content_type: str) -> int:
        fetch = self._fetchers[content_type]
        visited: Set[str] = set()
        total = 0
        start = 0

        while True:
            batch = await fetch(start, self._batch_size)
            if not batch:
                break

            new_pages: List[Page] = []
            for page in batch:
                if page.id in visited:
                    logger.debug("Skipping duplicate page id=%s title=%s", page.id, page.title)
                    continue
                visited.add(page.id)
                new_pages.append(page)

            logger.debug(
                "Batch had %d %ss, %d new, %d duplicates",
                len(batch),
                content_type,
                len(new_pages),
                len(batch) - len(new_pages),
            )

            if not new_pages:
                logger.warning(
                    "Every %s in batch at start=%d was already visited; stopping",
                    content_type,
                    start,
                )
                break

            logger.info("Ingesting batch of %d %ss (start=%d)", len(new_pages), content_type, start)
            for page in new_pages:
                total += await self._process_page(page)

            start += self._batch_size
            if start > self._max_offset:
                logger.warning("Reached safety limit of %d items; stopping", self._max_offset)
                break

        return total

    # ------------------------------------------------------------------
    # Per-page processing
    # ------------------------------------------------------------------

    async def _process_page(self, page: Page) -> int:
        count = 0

        if page.content:
            metadata = segment_metadata(page.title, page.url, "page", page.tags)
            segments = self._chunker.split(build_tagged_text(page), metadata)
            try:
                count += await self._embed_and_store(segments)
            except DatabaseServiceError:
                raise
            except Exception:
                logger.exception("Failed to embed page '%s'", page.title)
            else:
                logger.debug("Processed page '%s' with %d segments", page.title, count)

        try:
            attachments = await self._source.fetch_attachments(page.id)
        except ContentSourceError:
            logger.exception("Error fetching attachments for page '%s'", page.title)
            return count

        for attachment in attachments:
            count += await self._process_attachment(page, attachment)

        return count

    async def _process_attachment(self, page: Page, attachment: Page) -> int:
        kind = classify_media_type(attachment.media_type)
        if kind is AttachmentKind.SKIP:
            logger.info(
                "Skipping attachment: %s (Type: %s)", attachment.title, attachment.media_type
            )
            return 0

        try:
            data = await self._source.download_attachment(attachment.url)
            if data is None:
                return 0

            if kind is AttachmentKind.IMAGE:
                logger.info("Processing image with OCR: %s", attachment.title)
                text = await self._extractor.extract(data, attachment.media_type)
                if not text or not text.strip():
                    logger.debug("No text extracted from image: %s", attachment.title)
                    return 0
                metadata = segment_metadata(
                    f"{attachment.title} (Image)", page.url, "image", page.tags
                )
            else:
                text = await self._extractor.extract(data, attachment.media_type)
                metadata = segment_metadata(attachment.title, page.url, "attachment", page.tags)

            stored = await self._embed_and_store(self._chunker.split(text, metadata))
        except DatabaseServiceError:
            raise
        except Exception:
            logger.exception("Failed to process attachment: %s", attachment.title)
            return 0

        logger.debug("Indexed attachment '%s': %d segments", attachment.title, stored)
        return stored

    async def _embed_and_store(self, segments: List[Segment]) -> int:
        if not segments:
            return 0
        embeddings = await self._embedder.embed([s.text for s in segments])
        await self._store.add_all(embeddings, segments)
        return len(segments)
