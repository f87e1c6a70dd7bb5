"""Receipt text -> transaction candidates, via the language model with a regex fallback.

``extract_transactions`` never raises. A provider failure, an unparseable
response, or a response with no valid entries all fall through to
amount-pattern matching on the original text, which may itself find nothing.
"""

from __future__ import annotations

import logging
import re

from ..common import router as ai_router
from ..common.json_tools import extract_json_array
from ..common.providers.base import BaseProvider
from .contracts import (
    FALLBACK_DESCRIPTION,
    FALLBACK_MERCHANT,
    ExtractedTransaction,
    filter_valid_transactions,
    today_iso,
)

logger = logging.getLogger(__name__)

RECEIPT_EXTRACT_PROMPT = """
Extract transaction information from this invoice/receipt text.

Text: "{text}"

Find the main transaction details:
- Total payable amount (look for "Amount Payable", "Total", final amount)
- Transaction/invoice date
- Company/merchant name
- Service description

Return ONLY a JSON array:
[{{"amount": <number>, "description": "<service>", "date": "YYYY-MM-DD", "merchant": "<company>"}}]
"""

# Tried in order; the first match with a positive value wins.
AMOUNT_PATTERNS = (
    re.compile(r"amount payable[\s:]*(?:rs\.?)?[\s]*(\d+(?:\.\d{2})?)", re.IGNORECASE),
    re.compile(r"total[\s:]*(?:rs\.?)?[\s]*(\d+(?:\.\d{2})?)", re.IGNORECASE),
    re.compile(r"(?:rs\.?|₹)[\s]*(\d+(?:\.\d{2})?)", re.IGNORECASE),
)


def build_prompt(text: str) -> str:
    return RECEIPT_EXTRACT_PROMPT.format(text=text)


def parse_model_response(raw_text: str) -> list[ExtractedTransaction]:
    """Return the valid transactions in a model response, or ``[]``."""
    parsed = extract_json_array(raw_text)
    if parsed is None:
        return []
    return filter_valid_transactions(parsed)


def find_amount(text: str) -> float | None:
    for pattern in AMOUNT_PATTERNS:
        match = pattern.search(text)
        if not match or not match.group(1):
            continue
        amount = float(match.group(1))
        if amount > 0:
            return amount
    return None


def fallback_transactions(text: str) -> list[ExtractedTransaction]:
    """Synthesize a single placeholder transaction from the first amount found."""
    amount = find_amount(text)
    if amount is None:
        logger.info("Fallback could not find an amount in receipt text")
        return []

    logger.info("Fallback found amount: %s", amount)
    return [
        ExtractedTransaction(
            amount=amount,
            description=FALLBACK_DESCRIPTION,
            date=today_iso(),
            merchant=FALLBACK_MERCHANT,
        )
    ]


async def _from_model(text: str, provider: BaseProvider | None) -> list[ExtractedTransaction]:
    config = ai_router.resolve("receipt_extract")
    active = provider or config.provider
    result = await active.generate(
        build_prompt(text),
        model=config.model,
        temperature=config.temperature,
        max_tokens=config.max_tokens,
        timeout_seconds=config.timeout_seconds,
    )
    transactions = parse_model_response(result.raw_text)
    if not transactions:
        logger.warning(
            "No valid transactions in %s response: %s",
            result.provider,
            result.raw_text[:200],
        )
    return transactions


async def extract_transactions(
    text: str,
    *,
    provider: BaseProvider | None = None,
) -> list[ExtractedTransaction]:
    """Extract transaction candidates from receipt *text*.

    *provider* overrides the configured ``receipt_extract`` provider.
    """
    if not text or not text.strip():
        return []

    try:
        transactions = await _from_model(text, provider)
    except Exception:
        logger.exception("Language model receipt extraction failed")
        transactions = []

    if transactions:
        return transactions

    logger.info("Using regex fallback for receipt extraction")
    return fallback_transactions(text)
