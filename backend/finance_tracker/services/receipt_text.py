"""Receipt text extraction: OCR first, manual PDF heuristic second.

``extract_text`` never raises and returns ``""`` when nothing could be read.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Awaitable, Callable
from typing import Optional

from finance_tracker.services.ai.vision import RawDocument, TextDetector, get_text_detector

logger = logging.getLogger(__name__)

# Stream bodies hold compressed/binary data that decodes to noise.
_STREAM_BLOCK_RE = re.compile(r"stream[\s\S]*?endstream")
_READABLE_RUN_RE = re.compile(r"[^\x00-\x1F\x7F-\x9F]{5,}")
_WHITESPACE_RE = re.compile(r"\s+")

Attempt = Callable[[], Awaitable[Optional[str]]]


def extract_readable_pdf_text(content: bytes) -> str:
    """Best-effort text from raw PDF bytes outside ``stream ... endstream`` blocks."""
    pdf_string = content.decode("latin-1")
    outside_streams = " ".join(_STREAM_BLOCK_RE.split(pdf_string))
    runs = _READABLE_RUN_RE.findall(outside_streams)
    return _WHITESPACE_RE.sub(" ", " ".join(runs)).strip()


async def first_text(attempts: list[tuple[str, Attempt]]) -> str:
    """Run *attempts* in order and return the first non-blank result.

    A failing attempt is logged and skipped.
    """
    for label, attempt in attempts:
        try:
            text = await attempt()
        except Exception:
            logger.exception("%s text extraction failed", label)
            continue
        if text and text.strip():
            return text.strip()
    return ""


async def extract_text(document: RawDocument, *, detector: TextDetector | None = None) -> str:
    """Return a plain-text transcription of *document*.

    PDFs try the detector's document OCR and then the raw-bytes heuristic;
    anything else is treated as an image.
    """

    def ocr() -> TextDetector:
        # Looked up per attempt; a broken OCR configuration is a failed tier.
        return detector or get_text_detector()

    if document.is_pdf:

        async def _ocr_pdf() -> Optional[str]:
            return await ocr().detect_document_text(document.content, media_type="application/pdf")

        async def _raw_pdf() -> Optional[str]:
            return extract_readable_pdf_text(document.content)

        return await first_text([("Vision PDF", _ocr_pdf), ("Raw PDF", _raw_pdf)])

    async def _ocr_image() -> Optional[str]:
        return await ocr().detect_image_text(document.content)

    return await first_text([("Image OCR", _ocr_image)])
