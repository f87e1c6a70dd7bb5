import logging
import uuid
from collections import defaultdict
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import false, func
from sqlalchemy.orm import Session, joinedload

from finance_tracker.core.config import get_settings
from finance_tracker.models.finance import Category, Receipt, Transaction
from finance_tracker.schemas.finance import TransactionType
from finance_tracker.services.ai.receipt_extract.contracts import ExtractedTransaction

logger = logging.getLogger(__name__)

MONTHLY_TREND_DEFAULT_MONTHS = 12


def parse_uuid(value: Any) -> Optional[uuid.UUID]:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        return None


def parse_iso_date(value: Any) -> Optional[date]:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except (TypeError, ValueError):
        return None


def _months_before(day: date, months: int) -> date:
    index = day.year * 12 + (day.month - 1) - months
    year, month = divmod(index, 12)
    month += 1
    # Clamp to the last day of the target month (e.g. Mar 31 -> Feb 28).
    next_month = date(year + (month == 12), month % 12 + 1, 1)
    last_day = (next_month - timedelta(days=1)).day
    return date(year, month, min(day.day, last_day))


def _to_money(value: Any) -> float:
    if value is None:
        return 0.0
    return float(Decimal(str(value)).quantize(Decimal("0.01")))


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------


def _filtered_query(
    db: Session,
    user_id: str,
    *,
    txn_type: Optional[str] = None,
    category_id: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
):
    q = db.query(Transaction).filter(Transaction.user_id == user_id)
    if txn_type:
        q = q.filter(Transaction.type == txn_type)
    if category_id:
        parsed = parse_uuid(category_id)
        # Malformed ids match nothing.
        q = q.filter(Transaction.category_id == parsed) if parsed else q.filter(false())
    if start_date:
        q = q.filter(Transaction.date >= start_date)
    if end_date:
        q = q.filter(Transaction.date <= end_date)
    return q


def list_transactions(
    db: Session,
    user_id: str,
    *,
    page: int = 1,
    limit: int = 10,
    txn_type: Optional[str] = None,
    category_id: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> tuple[list[Transaction], int]:
    """Return one page of the user's transactions (newest first) and the total count."""
    q = _filtered_query(
        db,
        user_id,
        txn_type=txn_type,
        category_id=category_id,
        start_date=start_date,
        end_date=end_date,
    )
    total = q.count()
    rows = (
        q.options(joinedload(Transaction.category))
        .order_by(Transaction.date.desc(), Transaction.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return rows, total


def get_transaction(db: Session, user_id: str, transaction_id: str) -> Optional[Transaction]:
    parsed = parse_uuid(transaction_id)
    if parsed is None:
        return None
    return (
        db.query(Transaction)
        .filter(Transaction.id == parsed, Transaction.user_id == user_id)
        .first()
    )


def get_category(db: Session, user_id: str, category_id: Optional[str]) -> Optional[Category]:
    parsed = parse_uuid(category_id) if category_id else None
    if parsed is None:
        return None
    return db.query(Category).filter(Category.id == parsed, Category.user_id == user_id).first()


def get_receipt(db: Session, user_id: str, receipt_id: Optional[str]) -> Optional[Receipt]:
    parsed = parse_uuid(receipt_id) if receipt_id else None
    if parsed is None:
        return None
    return db.query(Receipt).filter(Receipt.id == parsed, Receipt.user_id == user_id).first()


def create_transaction(
    db: Session,
    user_id: str,
    *,
    amount: float,
    description: str,
    txn_date: date,
    txn_type: str = TransactionType.EXPENSE,
    merchant: Optional[str] = None,
    category: Optional[Category] = None,
    receipt: Optional[Receipt] = None,
) -> Transaction:
    txn = Transaction(
        user_id=user_id,
        amount=Decimal(str(amount)),
        description=description,
        merchant=merchant,
        type=str(txn_type),
        date=txn_date,
        category_id=category.id if category else None,
        receipt_id=receipt.id if receipt else None,
    )
    db.add(txn)
    db.flush()
    return txn


def create_from_extracted(
    db: Session,
    user_id: str,
    extracted: list[ExtractedTransaction],
    *,
    category: Optional[Category] = None,
    receipt: Optional[Receipt] = None,
) -> list[Transaction]:
    """Persist reviewed receipt candidates as expenses."""
    created = []
    for item in extracted:
        created.append(
            create_transaction(
                db,
                user_id,
                amount=item.amount,
                description=item.description,
                merchant=item.merchant,
                txn_date=parse_iso_date(item.date) or date.today(),
                txn_type=TransactionType.EXPENSE,
                category=category,
                receipt=receipt,
            )
        )
    logger.info("Saved %d receipt transactions for user %s", len(created), user_id)
    return created


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------


def list_categories(db: Session, user_id: str) -> list[Category]:
    return db.query(Category).filter(Category.user_id == user_id).order_by(Category.name.asc()).all()


def create_category(
    db: Session,
    user_id: str,
    *,
    name: str,
    color: Optional[str] = None,
    icon: Optional[str] = None,
) -> Category:
    settings = get_settings()
    category = Category(
        user_id=user_id,
        name=name.strip(),
        color=color or settings.default_category_color,
        icon=icon or settings.default_category_icon,
    )
    db.add(category)
    db.flush()
    return category


def delete_category(db: Session, category: Category) -> int:
    """Delete *category* and every transaction filed under it; return how many."""
    removed = (
        db.query(Transaction)
        .filter(Transaction.category_id == category.id)
        .delete(synchronize_session=False)
    )
    db.delete(category)
    db.flush()
    return removed


# ---------------------------------------------------------------------------
# Analytics
# ---------------------------------------------------------------------------


def expenses_by_category(
    db: Session,
    user_id: str,
    *,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> list[dict[str, Any]]:
    settings = get_settings()
    rows = (
        _filtered_query(
            db,
            user_id,
            txn_type=TransactionType.EXPENSE,
            start_date=start_date,
            end_date=end_date,
        )
        .with_entities(
            Transaction.category_id,
            func.sum(Transaction.amount),
            func.count(Transaction.id),
        )
        .group_by(Transaction.category_id)
        .all()
    )

    ids = [category_id for category_id, _, _ in rows if category_id is not None]
    categories = {}
    if ids:
        categories = {c.id: c for c in db.query(Category).filter(Category.id.in_(ids)).all()}

    result = []
    for category_id, total, count in rows:
        category = categories.get(category_id)
        result.append(
            {
                "category_id": str(category_id) if category_id else None,
                "category_name": category.name if category else "Unknown",
                "color": category.color if category else settings.default_category_color,
                "amount": _to_money(total),
                "count": int(count or 0),
            }
        )
    result.sort(key=lambda item: item["amount"], reverse=True)
    return result


def monthly_trends(
    db: Session,
    user_id: str,
    *,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    today: Optional[date] = None,
) -> list[dict[str, Any]]:
    """Totals per ``(YYYY-MM, type)``, newest month first.

    Without an explicit range, covers the last twelve months up to today.
    """
    today = today or date.today()
    start = start_date or (_months_before(today, MONTHLY_TREND_DEFAULT_MONTHS))
    end = end_date or today

    rows = (
        _filtered_query(db, user_id, start_date=start, end_date=end)
        .with_entities(Transaction.date, Transaction.type, Transaction.amount)
        .all()
    )

    totals: dict[tuple[str, str], Decimal] = defaultdict(Decimal)
    for txn_date, txn_type, amount in rows:
        if isinstance(txn_date, datetime):
            txn_date = txn_date.date()
        totals[(txn_date.strftime("%Y-%m"), txn_type)] += Decimal(str(amount))

    trends = [
        {"month": month, "type": txn_type, "total": _to_money(total)}
        for (month, txn_type), total in totals.items()
    ]
    trends.sort(key=lambda item: (item["month"], item["type"]))
    trends.sort(key=lambda item: item["month"], reverse=True)
    return trends


def summary(
    db: Session,
    user_id: str,
    *,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> dict[str, Any]:
    rows = (
        _filtered_query(db, user_id, start_date=start_date, end_date=end_date)
        .with_entities(Transaction.type, func.sum(Transaction.amount), func.count(Transaction.id))
        .group_by(Transaction.type)
        .all()
    )
    by_type = {txn_type: (total, count) for txn_type, total, count in rows}
    total_income = _to_money(by_type.get(TransactionType.INCOME.value, (0, 0))[0])
    total_expenses = _to_money(by_type.get(TransactionType.EXPENSE.value, (0, 0))[0])
    return {
        "total_income": total_income,
        "total_expenses": total_expenses,
        "net_income": round(total_income - total_expenses, 2),
        "transaction_count": sum(int(count or 0) for _, count in by_type.values()),
    }


def build_analytics(
    db: Session,
    user_id: str,
    *,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> dict[str, Any]:
    return {
        "expenses_by_category": expenses_by_category(db, user_id, start_date=start_date, end_date=end_date),
        "monthly_trends": monthly_trends(db, user_id, start_date=start_date, end_date=end_date),
        "summary": summary(db, user_id, start_date=start_date, end_date=end_date),
    }
