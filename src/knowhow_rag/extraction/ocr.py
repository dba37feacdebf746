"""
Vision OCR

Extracts visible text from image attachments by sending the image to a
vision-capable chat model as a base64 data URL.
"""

from __future__ import annotations

import base64
import logging
from typing import Optional

import httpx

from ..core.errors import TextExtractionError
from ..llm.client import LLMClient

logger = logging.getLogger("knowhow.ocr")

OCR_INSTRUCTION = (
    "Extract all text visible in this image. Include labels, titles, captions, "
    "annotations, and any embedded text. Return only the extracted text without "
    "any additional commentary."
)


def normalize_image_mime(media_type: Optional[str]) -> str:
    """
    Map a declared attachment media type onto one the vision API accepts.

    Unknown or missing types fall back to ``image/png``.
    """
    if not media_type:
        return "image/png"
    if "jpeg" in media_type or "jpg" in media_type:
        return "image/jpeg"
    if "png" in media_type:
        return "image/png"
    if "gif" in media_type:
        return "image/gif"
    if "webp" in media_type:
        return "image/webp"
    return "image/png"


class VisionOCR:
    def __init__(
        self,
        llm: LLMClient,
        model: str,
        timeout: float = 60.0,
        max_tokens: int = 1000,
    ) -> None:
        self._llm = llm
        self._model = model
        self._timeout = timeout
        self._max_tokens = max_tokens

    async def ocr(self, data: bytes, media_type: Optional[str]) -> str:
        """
        Return the text found in ``data``; empty when the image has none.

        Raises
        ------
        TextExtractionError
            If the vision call fails.
        """
        mime = normalize_image_mime(media_type)
        encoded = base64.b64encode(data).decode("ascii")
        message = {
            "role": "user",
            "content": [
                {"type": "text", "text": OCR_INSTRUCTION},
                {
                    "type": "image_url",
                    "image_url": {"url": f"data:{mime};base64,{encoded}"},
                },
            ],
        }

        try:
            text = await self._llm.chat(
                [message],
                model=self._model,
                timeout=self._timeout,
                max_tokens=self._max_tokens,
            )
        except (
            httpx.HTTPError,
            KeyError,
            IndexError,
            TypeError,
            AttributeError,
            ValueError,
        ) as exc:
            raise TextExtractionError(f"OCR failed: {type(exc).__name__}") from exc

        logger.debug("Extracted text from image: %.100s", text)
        return text
