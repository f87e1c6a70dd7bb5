"""Receipt extract scope contracts: transaction candidates pending user review."""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field, field_validator

FALLBACK_DESCRIPTION = "Transaction"
FALLBACK_MERCHANT = "Unknown Merchant"


def today_iso() -> str:
    return datetime.now(timezone.utc).date().isoformat()


class ExtractedTransaction(BaseModel):
    """A transaction candidate read off a receipt.

    Never persisted by the extraction pipeline; the user confirms it first.
    """

    amount: float = Field(..., gt=0)
    description: str = Field(..., min_length=1)
    date: str = Field(default_factory=today_iso)
    merchant: str = Field(..., min_length=1)

    @field_validator("amount")
    @classmethod
    def amount_finite(cls, v: float) -> float:
        if not math.isfinite(v):
            msg = f"Amount must be finite, got {v}"
            raise ValueError(msg)
        return v


def coerce_amount(value: Any) -> float | None:
    """Return *value* as a positive float, or ``None`` when it is not one."""
    if value is None or isinstance(value, bool):
        return None
    if not isinstance(value, (int, float, str)):
        return None
    try:
        amount = float(value.strip() if isinstance(value, str) else value)
    except (ValueError, OverflowError):
        # Integers beyond float range are as unusable as non-numbers.
        return None
    if not math.isfinite(amount) or amount <= 0:
        return None
    return amount


def to_valid_transaction(entry: Any) -> ExtractedTransaction | None:
    """Convert a raw model entry, dropping it unless amount > 0 and
    description and merchant are both present."""
    if not isinstance(entry, dict):
        return None
    amount = coerce_amount(entry.get("amount"))
    description = entry.get("description")
    merchant = entry.get("merchant")
    if amount is None or not description or not merchant:
        return None

    raw_date = entry.get("date")
    return ExtractedTransaction(
        amount=amount,
        description=str(description),
        date=str(raw_date) if raw_date else today_iso(),
        merchant=str(merchant),
    )


def filter_valid_transactions(entries: list[Any]) -> list[ExtractedTransaction]:
    valid: list[ExtractedTransaction] = []
    for entry in entries:
        txn = to_valid_transaction(entry)
        if txn is not None:
            valid.append(txn)
    return valid
