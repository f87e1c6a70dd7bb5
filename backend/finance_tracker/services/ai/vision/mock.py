"""Mock detector: canned OCR output for tests and unconfigured installs."""

from __future__ import annotations

from .contracts import PDF_MEDIA_TYPE, TextDetector


class MockTextDetector(TextDetector):
    name = "mock"

    def __init__(self, document_text: str = "", image_text: str = "") -> None:
        self.document_text = document_text
        self.image_text = image_text
        self.calls: list[str] = []

    async def detect_document_text(self, content: bytes, *, media_type: str = PDF_MEDIA_TYPE) -> str:
        self.calls.append("document")
        return self.document_text

    async def detect_image_text(self, content: bytes) -> str:
        self.calls.append("image")
        return self.image_text
