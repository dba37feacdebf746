from typing import List, Optional

import pytest

from knowhow_rag.core.models import Match, Page, Segment, SegmentMetadata


def make_page(page_id: str, content: str = "Some page content.", tags: Optional[List[str]] = None) -> Page:
    return Page(
        id=page_id,
        title=f"Page {page_id}",
        content=content,
        url=f"https://wiki.example.com/display/KH/{page_id}",
        tags=tags or [],
    )


def make_match(text: str, score: float = 0.9, tags: Optional[str] = None, title: str = "Doc") -> Match:
    return Match(
        score=score,
        segment=Segment(
            text=text,
            metadata=SegmentMetadata(title=title, url=f"https://wiki.example.com/{title}", tags=tags),
        ),
    )


@pytest.fixture
def fake_embeddings():
    def _embed(texts):
        return [[0.1, 0.2, 0.3] for _ in texts]
    return _embed
