"""
Attachment Text Extraction

Decides how an attachment is turned into text from its declared media type:

- ``video/*`` and ``audio/*`` are skipped
- ``image/*`` goes through vision OCR
- everything else goes through generic document parsing
"""

from __future__ import annotations

import enum
import logging
from typing import Optional

from .ocr import VisionOCR
from .parser import DocumentParser

logger = logging.getLogger("knowhow.extraction")

_SKIPPED_PREFIXES = ("video/", "audio/")


class AttachmentKind(str, enum.Enum):
    SKIP = "skip"
    IMAGE = "image"
    DOCUMENT = "document"


def classify_media_type(media_type: Optional[str]) -> AttachmentKind:
    if media_type and media_type.startswith(_SKIPPED_PREFIXES):
        return AttachmentKind.SKIP
    if media_type and media_type.startswith("image/"):
        return AttachmentKind.IMAGE
    return AttachmentKind.DOCUMENT


class TextExtractor:
    def __init__(self, ocr: VisionOCR, parser: DocumentParser) -> None:
        self._ocr = ocr
        self._parser = parser

    async def extract(self, data: bytes, media_type: Optional[str]) -> str:
        """
        Extract plain text from attachment bytes.

        Returns an empty string for skipped media types. Errors from OCR or
        parsing propagate as ``TextExtractionError``.
        """
        kind = classify_media_type(media_type)

        if kind is AttachmentKind.SKIP:
            return ""

        if kind is AttachmentKind.IMAGE:
            return await self._ocr.ocr(data, media_type)

        text, meta = self._parser.parse(data)
        logger.debug("Parsed attachment as %s (%d chars)", meta.get("format"), len(text))
        return text
