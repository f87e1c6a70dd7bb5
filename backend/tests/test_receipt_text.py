"""Receipt text extraction: Vision OCR tiers and the raw PDF heuristic."""

import logging

import pytest

from finance_tracker.services.ai.vision import MockTextDetector, RawDocument, TextDetector
from finance_tracker.services.receipt_text import extract_readable_pdf_text, extract_text, first_text

PDF_WITH_STREAM = (
    b"%PDF-1.4\n"
    b"1 0 obj\n<< /Length 44 >>\n"
    b"stream\nBT /F1 12 Tf (Hidden Secret Words) Tj ET\nendstream\n"
    b"endobj\n"
    b"2 0 obj\n(Amount Payable: Rs. 1200.00)\nendobj\n"
    b"%%EOF"
)

LOGGER = "finance_tracker.services.receipt_text"


class FailingDetector(TextDetector):
    name = "failing"

    def __init__(self):
        self.calls = []

    async def detect_document_text(self, content, *, media_type="application/pdf"):
        self.calls.append("document")
        raise RuntimeError("vision unavailable")

    async def detect_image_text(self, content):
        self.calls.append("image")
        raise RuntimeError("vision unavailable")


# --- Raw PDF heuristic ---


def test_stream_contents_are_excluded():
    text = extract_readable_pdf_text(PDF_WITH_STREAM)
    assert "Amount Payable: Rs. 1200.00" in text
    assert "Hidden Secret Words" not in text
    assert "BT /F1" not in text


def test_short_runs_are_dropped():
    assert extract_readable_pdf_text(b"ab\x00cd\x01Total 99.00\x02xy") == "Total 99.00"


def test_high_control_range_breaks_runs():
    assert extract_readable_pdf_text(b"Merchant\x85Name\x9fGrocery Store") == "Merchant Grocery Store"


def test_whitespace_is_collapsed_and_trimmed():
    assert extract_readable_pdf_text(b"   Hello      world   \n  second   line  ") == "Hello world second line"


def test_binary_only_returns_empty():
    assert extract_readable_pdf_text(bytes(range(0, 32)) * 4) == ""


def test_multiple_streams_removed():
    data = b"Header text\nstream\nsecret one\nendstream\nMiddle text\nstream\nsecret two\nendstream\nFooter text"
    assert extract_readable_pdf_text(data) == "Header text Middle text Footer text"


# --- PDFs ---


@pytest.mark.asyncio
async def test_vision_text_short_circuits():
    detector = MockTextDetector(document_text="  Invoice TOTAL 55.00  ")
    doc = RawDocument(content=PDF_WITH_STREAM, media_type="application/pdf")
    assert await extract_text(doc, detector=detector) == "Invoice TOTAL 55.00"
    assert detector.calls == ["document"]


@pytest.mark.asyncio
async def test_empty_vision_result_falls_back_to_heuristic():
    doc = RawDocument(content=PDF_WITH_STREAM, media_type="application/pdf")
    text = await extract_text(doc, detector=MockTextDetector(document_text="   "))
    assert "Amount Payable: Rs. 1200.00" in text


@pytest.mark.asyncio
async def test_vision_exception_falls_back_to_heuristic(caplog):
    detector = FailingDetector()
    doc = RawDocument(content=PDF_WITH_STREAM, media_type="application/pdf")
    with caplog.at_level(logging.ERROR, logger=LOGGER):
        text = await extract_text(doc, detector=detector)
    assert "Amount Payable" in text
    assert detector.calls == ["document"]
    assert "Vision PDF text extraction failed" in caplog.text


@pytest.mark.asyncio
async def test_broken_detector_configuration_falls_back_to_heuristic(monkeypatch):
    def _misconfigured():
        raise ValueError("invalid VISION_PROVIDER settings")

    monkeypatch.setattr("finance_tracker.services.receipt_text.get_text_detector", _misconfigured)
    doc = RawDocument(content=PDF_WITH_STREAM, media_type="application/pdf")
    assert "Amount Payable: Rs. 1200.00" in await extract_text(doc)

    image = RawDocument(content=b"\x89PNG", media_type="image/png")
    assert await extract_text(image) == ""


@pytest.mark.asyncio
async def test_unreadable_pdf_returns_empty():
    doc = RawDocument(content=b"\x00\x01\x02stream\nabcdefgh\nendstream\x03", media_type="application/pdf")
    assert await extract_text(doc, detector=MockTextDetector()) == ""


@pytest.mark.asyncio
async def test_media_type_parameters_are_ignored():
    detector = MockTextDetector(document_text="Total 10.00")
    doc = RawDocument(content=b"%PDF", media_type="Application/PDF; charset=binary")
    assert await extract_text(doc, detector=detector) == "Total 10.00"
    assert detector.calls == ["document"]


@pytest.mark.asyncio
async def test_same_document_yields_same_text():
    doc = RawDocument(content=PDF_WITH_STREAM, media_type="application/pdf")
    detector = MockTextDetector()
    first = await extract_text(doc, detector=detector)
    second = await extract_text(doc, detector=detector)
    assert first == second
    assert first


# --- Images ---


@pytest.mark.asyncio
async def test_image_uses_single_image_detection():
    detector = MockTextDetector(document_text="wrong", image_text="\nCAFE\nTotal 8.50\n")
    doc = RawDocument(content=b"\x89PNG...", media_type="image/png")
    assert await extract_text(doc, detector=detector) == "CAFE\nTotal 8.50"
    assert detector.calls == ["image"]


@pytest.mark.asyncio
async def test_image_failure_returns_empty(caplog):
    doc = RawDocument(content=b"\xff\xd8\xff", media_type="image/jpeg")
    with caplog.at_level(logging.ERROR, logger=LOGGER):
        assert await extract_text(doc, detector=FailingDetector()) == ""
    assert "Image OCR text extraction failed" in caplog.text


@pytest.mark.asyncio
async def test_image_without_annotations_returns_empty():
    doc = RawDocument(content=b"\xff\xd8\xff", media_type="image/jpeg")
    assert await extract_text(doc, detector=MockTextDetector()) == ""


# --- Attempt chain ---


@pytest.mark.asyncio
async def test_first_non_blank_wins():
    calls = []

    def attempt(label, value):
        async def _inner():
            calls.append(label)
            return value

        return (label, _inner)

    result = await first_text([attempt("a", None), attempt("b", "  "), attempt("c", "hit"), attempt("d", "late")])
    assert result == "hit"
    assert calls == ["a", "b", "c"]


@pytest.mark.asyncio
async def test_all_empty_returns_empty_string():
    async def _nothing():
        return ""

    assert await first_text([("x", _nothing)]) == ""
