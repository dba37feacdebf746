"""
Error Taxonomy

This module defines the exception types shared across the ingestion and
question-answering pipelines.

Design Goals
------------
- Pipeline-level failures surface as a small set of typed errors
- The original exception is always kept on ``__cause__`` for diagnostics
- User-facing LLM failures carry a fixed, human-readable message
- Per-item failures use component errors that the orchestrator can absorb
"""

from __future__ import annotations

import enum
import logging
from typing import Callable, Optional

logger = logging.getLogger("knowhow.errors")


# ---------------------------------------------------------------------
# Pipeline-level Errors
# ---------------------------------------------------------------------

class ServiceDegradedError(RuntimeError):
    """Raised when the vector store cannot be reached at startup."""


class IngestionError(RuntimeError):
    """Raised when a full ingestion run cannot proceed."""


class DatabaseServiceError(RuntimeError):
    """Raised when a vector store operation fails outside ingestion."""


class LLMErrorKind(str, enum.Enum):
    UNREACHABLE = "unreachable"
    TIMEOUT = "timeout"
    UNAUTHORIZED = "unauthorized"
    GENERIC = "generic"


LLM_ERROR_MESSAGES = {
    LLMErrorKind.UNREACHABLE: (
        "Unable to connect to the AI service. The service may be down or unreachable."
    ),
    LLMErrorKind.TIMEOUT: (
        "The AI service is taking too long to respond. Please try again later."
    ),
    LLMErrorKind.UNAUTHORIZED: (
        "Authentication failed with the AI service. Please check API credentials."
    ),
    LLMErrorKind.GENERIC: (
        "The AI service encountered an error while processing your request."
    ),
}


class LLMServiceError(RuntimeError):
    """
    Classified failure of the answer-generating LLM call.

    The message is the fixed text for ``kind``; the underlying transport or
    HTTP error is attached as ``__cause__`` by the raiser.
    """

    def __init__(self, kind: LLMErrorKind) -> None:
        super().__init__(LLM_ERROR_MESSAGES[kind])
        self.kind = kind

    @property
    def message(self) -> str:
        return LLM_ERROR_MESSAGES[self.kind]


# ---------------------------------------------------------------------
# Component Errors (absorbable per item during ingestion)
# ---------------------------------------------------------------------

class ContentSourceError(RuntimeError):
    """Raised when the content repository request fails."""


class TextExtractionError(RuntimeError):
    """Raised when OCR or document parsing fails."""


class UnsupportedDocumentError(TextExtractionError):
    """Raised when an attachment format cannot be parsed into text."""


# ---------------------------------------------------------------------
# Out-of-band Error Reporting
# ---------------------------------------------------------------------

ErrorNotifier = Callable[[str, BaseException, Optional[str]], None]


def log_error_notifier(
    component: str,
    exc: BaseException,
    context: Optional[str] = None,
) -> None:
    """
    Default error notifier.

    Operators usually plug in an email or chat notifier with the same
    signature; this one only writes the failure to the log.
    """
    logger.error(
        "Error in %s: %s (%s)",
        component,
        exc,
        context or "no context",
        exc_info=exc,
    )
