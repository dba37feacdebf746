"""
Core Data Models

This module defines the records that flow through ingestion and retrieval:

- Page: one fetched Confluence page or attachment descriptor
- Segment: one bounded chunk of text plus its metadata
- Match: one scored search result
- ConversationMessage / Feedback: query-time inputs

All models are immutable once built.
"""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


SegmentType = Literal["page", "image", "attachment"]


class Page(BaseModel):
    """
    A normalized page or attachment from the content source.

    ``media_type`` is only set for attachment descriptors, whose ``url`` is
    the download link rather than the web UI link.
    """

    id: str = Field(..., min_length=1)
    title: str = ""
    content: str = ""
    url: str = ""
    tags: List[str] = Field(default_factory=list)
    media_type: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class SegmentMetadata(BaseModel):
    """
    Metadata stored alongside every segment in the vector index.

    ``tags`` holds the page labels joined with ", ", or None when the page
    carries no labels.
    """

    title: str = ""
    url: str = ""
    type: SegmentType = "page"
    tags: Optional[str] = None

    model_config = ConfigDict(frozen=True, extra="forbid")

    def to_dict(self) -> Dict[str, str]:
        """Flat key/value form persisted in the metadata column."""
        return self.model_dump(exclude_none=True)

    @classmethod
    def from_dict(cls, raw: Optional[Dict[str, object]]) -> "SegmentMetadata":
        raw = raw or {}
        tags = raw.get("tags")
        return cls(
            title=str(raw.get("title") or ""),
            url=str(raw.get("url") or ""),
            type=raw.get("type") or "page",
            tags=str(tags) if tags else None,
        )


class Segment(BaseModel):
    text: str
    metadata: SegmentMetadata

    model_config = ConfigDict(frozen=True)


class Match(BaseModel):
    """A search hit. Higher ``score`` means more relevant."""

    score: float
    segment: Segment

    model_config = ConfigDict(frozen=True)


class ConversationMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str

    model_config = ConfigDict(frozen=True)


class Feedback(BaseModel):
    question: str
    answer: str
    is_liked: bool
    timestamp: Optional[datetime] = None

    model_config = ConfigDict(frozen=True)


class RetrievalResult(BaseModel):
    """
    Output of the retrieval engine.

    ``query`` is the effective (possibly rewritten) query and ``matches`` keeps
    the vector store's score ordering.
    """

    query: str
    context: str = ""
    matches: List[Match] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)


class ChatAnswer(BaseModel):
    answer: str
    suggested_questions: Optional[List[str]] = None

    model_config = ConfigDict(frozen=True)
