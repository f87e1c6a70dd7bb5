"""Text detector factory: Google Vision when configured, otherwise mock."""

from __future__ import annotations

import logging

from finance_tracker.core.config import get_settings

from .contracts import RawDocument, TextDetector
from .mock import MockTextDetector

logger = logging.getLogger(__name__)

__all__ = ["get_text_detector", "RawDocument", "TextDetector", "MockTextDetector"]


def get_text_detector() -> TextDetector:
    settings = get_settings()
    name = (settings.vision_provider or "").lower().strip()

    if name == "google":
        if not settings.google_vision_api_key:
            logger.warning("GOOGLE_VISION_API_KEY not set - OCR falls back to mock")
            return MockTextDetector()
        from .google import GoogleVisionDetector

        return GoogleVisionDetector(
            api_key=settings.google_vision_api_key,
            timeout_seconds=settings.vision_timeout_seconds,
        )

    if name != "mock":
        logger.warning("Unknown vision provider %r - falling back to mock", name)
    return MockTextDetector()
