"""
Chunker Tests

Covers tag-weighted page text, metadata construction and splitting bounds.
"""

from knowhow_rag.core.models import SegmentMetadata
from knowhow_rag.ingestion.chunker import (
    Chunker,
    build_tagged_text,
    join_tags,
    segment_metadata,
)

from conftest import make_page


class TestTaggedText:

    def test_tags_prefix_repeated_three_times(self):
        page = make_page("1", content="Body text", tags=["kpi", "quality"])
        text = build_tagged_text(page)

        prefix = "Tags: kpi, quality. "
        assert text == prefix * 3 + "\n\nBody text"

    def test_no_tags_returns_content_unchanged(self):
        page = make_page("1", content="Body text")
        assert build_tagged_text(page) == "Body text"

    def test_join_tags(self):
        assert join_tags(["a", "b"]) == "a, b"
        assert join_tags([]) is None


class TestSegmentMetadata:

    def test_metadata_omits_missing_tags(self):
        meta = segment_metadata("Title", "https://x", "page", [])
        assert meta.tags is None
        assert meta.to_dict() == {"title": "Title", "url": "https://x", "type": "page"}

    def test_metadata_round_trips_through_dict(self):
        meta = segment_metadata("Diagram (Image)", "https://x", "image", ["kpi"])
        restored = SegmentMetadata.from_dict(meta.to_dict())
        assert restored == meta


class TestChunker:

    def test_blank_text_yields_no_segments(self):
        chunker = Chunker()
        meta = segment_metadata("T", "u", "page", [])
        assert chunker.split("", meta) == []
        assert chunker.split("   \n ", meta) == []

    def test_short_text_is_one_segment(self):
        chunker = Chunker()
        meta = segment_metadata("T", "u", "page", ["kpi"])
        segments = chunker.split("A short paragraph.", meta)

        assert len(segments) == 1
        assert segments[0].text == "A short paragraph."
        assert segments[0].metadata == meta

    def test_long_text_respects_chunk_size(self):
        chunker = Chunker(chunk_size=100, chunk_overlap=20)
        meta = segment_metadata("T", "u", "page", [])
        text = " ".join(f"word{i}" for i in range(200))

        segments = chunker.split(text, meta)

        assert len(segments) > 1
        assert all(len(s.text) <= 100 for s in segments)
        assert all(s.metadata == meta for s in segments)

    def test_overlap_must_be_smaller_than_size(self):
        try:
            Chunker(chunk_size=100, chunk_overlap=100)
            assert False, "Should have raised ValueError"
        except ValueError:
            pass
