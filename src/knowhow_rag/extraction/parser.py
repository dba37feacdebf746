"""
Generic Document Parser

Turns attachment bytes of an unknown binary format into plain text. The
format is sniffed from the content itself, since Confluence media types are
frequently generic (``application/octet-stream``) or wrong.

Supported
---------
- PDF (PyMuPDF)
- DOCX (python-docx)
- HTML / XML (BeautifulSoup)
- Any UTF-8 / Latin-1 decodable text
"""

from __future__ import annotations

import io
import zipfile
from typing import Dict, Tuple

import docx
import fitz
from bs4 import BeautifulSoup

from ..core.errors import TextExtractionError, UnsupportedDocumentError

_PDF_MAGIC = b"%PDF"
_ZIP_MAGIC = b"PK\x03\x04"
_DOCX_MARKER = "word/document.xml"


def detect_format(data: bytes) -> str:
    """
    Return one of ``pdf``, ``docx``, ``html``, ``text`` or ``binary``.
    """
    if data.startswith(_PDF_MAGIC):
        return "pdf"

    if data.startswith(_ZIP_MAGIC):
        try:
            with zipfile.ZipFile(io.BytesIO(data)) as archive:
                if _DOCX_MARKER in archive.namelist():
                    return "docx"
        except zipfile.BadZipFile:
            pass
        return "binary"

    head = data[:1024].lstrip().lower()
    if head.startswith((b"<!doctype html", b"<html", b"<?xml")):
        return "html"

    if b"\x00" in data[:4096]:
        return "binary"
    return "text"


class DocumentParser:
    """Stateless parser; safe to share."""

    def parse(self, data: bytes) -> Tuple[str, Dict[str, str]]:
        """
        Parse ``data`` into ``(text, metadata)``.

        Raises
        ------
        UnsupportedDocumentError
            If the format is not one of the supported ones.
        TextExtractionError
            If a supported format fails to parse.
        """
        fmt = detect_format(data)

        try:
            if fmt == "pdf":
                text = self._parse_pdf(data)
            elif fmt == "docx":
                text = self._parse_docx(data)
            elif fmt == "html":
                text = BeautifulSoup(data, "html.parser").get_text("\n", strip=True)
            elif fmt == "text":
                text = self._decode_text(data)
            else:
                raise UnsupportedDocumentError("Unsupported attachment format")
        except TextExtractionError:
            raise
        except Exception as exc:
            raise TextExtractionError(
                f"Failed to parse {fmt} document: {type(exc).__name__}"
            ) from exc

        return text, {"format": fmt}

    @staticmethod
    def _parse_pdf(data: bytes) -> str:
        with fitz.open(stream=data, filetype="pdf") as pdf:
            return "\n".join(page.get_text() for page in pdf).strip()

    @staticmethod
    def _parse_docx(data: bytes) -> str:
        document = docx.Document(io.BytesIO(data))
        paragraphs = [p.text for p in document.paragraphs if p.text.strip()]
        for table in document.tables:
            for row in table.rows:
                cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
                if cells:
                    paragraphs.append(" | ".join(cells))
        return "\n".join(paragraphs)

    @staticmethod
    def _decode_text(data: bytes) -> str:
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError:
            return data.decode("latin-1")
