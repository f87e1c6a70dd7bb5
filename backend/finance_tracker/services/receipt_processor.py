import logging

from finance_tracker.services.ai.receipt_extract.contracts import ExtractedTransaction
from finance_tracker.services.ai.receipt_extract.service import extract_transactions
from finance_tracker.services.ai.common.providers.base import BaseProvider
from finance_tracker.services.ai.vision import RawDocument, TextDetector
from finance_tracker.services.receipt_text import extract_text

logger = logging.getLogger(__name__)


async def process_receipt(
    document: RawDocument,
    *,
    detector: TextDetector | None = None,
    provider: BaseProvider | None = None,
) -> list[ExtractedTransaction]:
    """OCR *document*, then pull transaction candidates out of the text.

    Returns ``[]`` without calling the language model when no text was found.
    """
    text = await extract_text(document, detector=detector)
    if not text or not text.strip():
        logger.info("No text extracted from %s (%s)", document.filename or "receipt", document.media_type)
        return []

    transactions = await extract_transactions(text, provider=provider)

    for i, txn in enumerate(transactions, start=1):
        logger.info("%d. %s: %.2f - %s (%s)", i, txn.merchant, txn.amount, txn.description, txn.date)

    return transactions
