"""Google Cloud Vision detector (REST ``images:annotate`` / ``files:annotate``)."""

from __future__ import annotations

import base64
import logging

from .contracts import PDF_MEDIA_TYPE, TextDetector

logger = logging.getLogger(__name__)

VISION_API_BASE = "https://vision.googleapis.com/v1"

# files:annotate accepts at most five pages per synchronous request.
MAX_SYNC_PDF_PAGES = 5


class VisionAPIError(RuntimeError):
    """The Vision API answered with an error payload."""


def _raise_for_error(response: dict) -> None:
    error = response.get("error")
    if error:
        raise VisionAPIError(f"{error.get('code', '')} {error.get('message', 'unknown error')}".strip())


class GoogleVisionDetector(TextDetector):
    name = "google"

    def __init__(self, api_key: str, *, timeout_seconds: float = 15.0, transport=None) -> None:
        self._api_key = api_key
        self._timeout_seconds = timeout_seconds
        self._transport = transport

    async def _annotate(self, endpoint: str, request: dict) -> dict:
        import httpx

        async with httpx.AsyncClient(timeout=self._timeout_seconds, transport=self._transport) as client:
            resp = await client.post(
                f"{VISION_API_BASE}/{endpoint}",
                headers={
                    "x-goog-api-key": self._api_key,
                    "Content-Type": "application/json",
                },
                json={"requests": [request]},
            )
            resp.raise_for_status()
            data = resp.json()

        responses = data.get("responses") or [{}]
        first = responses[0]
        _raise_for_error(first)
        return first

    async def detect_document_text(self, content: bytes, *, media_type: str = PDF_MEDIA_TYPE) -> str:
        first = await self._annotate(
            "files:annotate",
            {
                "inputConfig": {
                    "content": base64.b64encode(content).decode("ascii"),
                    "mimeType": media_type,
                },
                "features": [{"type": "DOCUMENT_TEXT_DETECTION"}],
                "pages": list(range(1, MAX_SYNC_PDF_PAGES + 1)),
            },
        )
        texts = []
        for page in first.get("responses") or []:
            _raise_for_error(page)
            text = (page.get("fullTextAnnotation") or {}).get("text", "")
            if text:
                texts.append(text)
        return "\n".join(texts).strip()

    async def detect_image_text(self, content: bytes) -> str:
        first = await self._annotate(
            "images:annotate",
            {
                "image": {"content": base64.b64encode(content).decode("ascii")},
                "features": [{"type": "TEXT_DETECTION"}],
            },
        )
        annotations = first.get("textAnnotations") or []
        if not annotations:
            return ""
        return (annotations[0].get("description") or "").strip()
