"""
Text Chunking

Splits extracted text into bounded, overlapping segments and attaches the
segment metadata. Also builds the tag-weighted text used for page bodies.
"""

from __future__ import annotations

from typing import List, Sequence

from langchain_text_splitters import RecursiveCharacterTextSplitter

from ..core.models import Page, Segment, SegmentMetadata, SegmentType

TAG_REPEAT = 3


def join_tags(tags: Sequence[str]) -> str | None:
    return ", ".join(tags) if tags else None


def build_tagged_text(page: Page) -> str:
    """
    Prefix page content with its labels, repeated to weight them in the
    embedding.

    ``"Tags: a, b. "`` is written three times, followed by a blank line and
    the content. Pages without tags are returned unchanged.
    """
    if not page.tags:
        return page.content
    prefix = f"Tags: {', '.join(page.tags)}. " * TAG_REPEAT
    return f"{prefix}\n\n{page.content}"


def segment_metadata(
    title: str,
    url: str,
    segment_type: SegmentType,
    tags: Sequence[str],
) -> SegmentMetadata:
    return SegmentMetadata(title=title, url=url, type=segment_type, tags=join_tags(tags))


class Chunker:
    """
    Recursive character splitter with a fixed size and overlap.

    Usage:
        chunker = Chunker(chunk_size=1000, chunk_overlap=200)
        segments = chunker.split(text, metadata)
    """

    def __init__(self, chunk_size: int = 1000, chunk_overlap: int = 200):
        if chunk_overlap >= chunk_size:
            raise ValueError("chunk_overlap must be smaller than chunk_size")
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self._splitter = RecursiveCharacterTextSplitter(
            chunk_size=chunk_size,
            chunk_overlap=chunk_overlap,
            length_function=len,
            separators=["\n\n", "\n", ". ", " ", ""],
        )

    def split(self, text: str, metadata: SegmentMetadata) -> List[Segment]:
        if not text or not text.strip():
            return []
        return [
            Segment(text=chunk, metadata=metadata)
            for chunk in self._splitter.split_text(text)
            if chunk.strip()
        ]
