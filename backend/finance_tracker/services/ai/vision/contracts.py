"""Vision scope contracts: OCR text detection capability."""

from __future__ import annotations

import abc
from dataclasses import dataclass

PDF_MEDIA_TYPE = "application/pdf"


@dataclass(frozen=True)
class RawDocument:
    """Uploaded file bytes plus declared media type. Never mutated."""

    content: bytes
    media_type: str
    filename: str | None = None

    @property
    def is_pdf(self) -> bool:
        return (self.media_type or "").split(";", 1)[0].strip().lower() == PDF_MEDIA_TYPE


class TextDetector(abc.ABC):
    """OCR capability used by receipt text extraction.

    Implementations may raise; callers treat any exception as "no text".
    """

    name: str = "base"

    @abc.abstractmethod
    async def detect_document_text(self, content: bytes, *, media_type: str = PDF_MEDIA_TYPE) -> str:
        """Full-document text detection (scanned or digitally authored PDFs)."""

    @abc.abstractmethod
    async def detect_image_text(self, content: bytes) -> str:
        """Single-image text detection; the top annotation's description."""
