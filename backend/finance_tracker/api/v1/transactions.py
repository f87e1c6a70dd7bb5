import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from finance_tracker.api.v1.categories import category_to_out
from finance_tracker.core.auth import CurrentUser, get_current_user
from finance_tracker.core.dependencies import get_db
from finance_tracker.models.finance import Transaction
from finance_tracker.schemas.finance import (
    ConfirmReceiptTransactions,
    PaginationOut,
    TransactionCreate,
    TransactionListResponse,
    TransactionOut,
    TransactionType,
    TransactionUpdate,
)
from finance_tracker.services import transaction_service
from finance_tracker.utils.pagination import (
    calculate_total_pages,
    get_pagination_info,
    get_visible_pages,
)

router = APIRouter()
logger = logging.getLogger(__name__)


def transaction_to_out(t: Transaction) -> TransactionOut:
    return TransactionOut(
        id=str(t.id),
        amount=float(t.amount),
        description=t.description,
        merchant=t.merchant,
        type=t.type,
        date=t.date,
        category=category_to_out(t.category) if t.category else None,
        receipt_id=str(t.receipt_id) if t.receipt_id else None,
        created_at=t.created_at,
        updated_at=t.updated_at,
    )


def _resolve_category(db: Session, user_id: str, category_id: Optional[str]):
    if not category_id:
        return None
    category = transaction_service.get_category(db, user_id, category_id)
    if not category:
        raise HTTPException(404, "Category not found")
    return category


def _resolve_receipt(db: Session, user_id: str, receipt_id: Optional[str]):
    if not receipt_id:
        return None
    receipt = transaction_service.get_receipt(db, user_id, receipt_id)
    if not receipt:
        raise HTTPException(404, "Receipt not found")
    return receipt


@router.get("/transactions", response_model=TransactionListResponse)
def list_transactions(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    type: Optional[TransactionType] = Query(None),
    category_id: Optional[str] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    rows, total = transaction_service.list_transactions(
        db,
        current_user.id,
        page=page,
        limit=limit,
        txn_type=type,
        category_id=category_id,
        start_date=start_date,
        end_date=end_date,
    )
    pages = calculate_total_pages(total, limit)
    return TransactionListResponse(
        transactions=[transaction_to_out(t) for t in rows],
        pagination=PaginationOut(
            page=page,
            limit=limit,
            total=total,
            pages=pages,
            visible_pages=get_visible_pages(page, pages),
            info=get_pagination_info(page, limit, total),
        ),
    )


@router.post("/transactions", response_model=TransactionOut, status_code=201)
def create_transaction(
    payload: TransactionCreate,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    category = _resolve_category(db, current_user.id, payload.category_id)
    receipt = _resolve_receipt(db, current_user.id, payload.receipt_id)

    txn = transaction_service.create_transaction(
        db,
        current_user.id,
        amount=payload.amount,
        description=payload.description,
        merchant=payload.merchant,
        txn_type=payload.type,
        txn_date=payload.date,
        category=category,
        receipt=receipt,
    )
    db.commit()
    db.refresh(txn)
    return transaction_to_out(txn)


@router.post("/transactions/bulk", response_model=list[TransactionOut], status_code=201)
def confirm_receipt_transactions(
    payload: ConfirmReceiptTransactions,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Save receipt candidates the user confirmed."""
    category = _resolve_category(db, current_user.id, payload.category_id)
    receipt = _resolve_receipt(db, current_user.id, payload.receipt_id)

    created = transaction_service.create_from_extracted(
        db,
        current_user.id,
        payload.transactions,
        category=category,
        receipt=receipt,
    )
    db.commit()
    for txn in created:
        db.refresh(txn)
    return [transaction_to_out(t) for t in created]


@router.get("/transactions/{transaction_id}", response_model=TransactionOut)
def get_transaction(
    transaction_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    txn = transaction_service.get_transaction(db, current_user.id, transaction_id)
    if not txn:
        raise HTTPException(404, "Transaction not found")
    return transaction_to_out(txn)


@router.put("/transactions/{transaction_id}", response_model=TransactionOut)
def update_transaction(
    transaction_id: str,
    payload: TransactionUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    txn = transaction_service.get_transaction(db, current_user.id, transaction_id)
    if not txn:
        raise HTTPException(404, "Transaction not found")

    changes = payload.model_dump(exclude_unset=True)
    if "category_id" in changes:
        category = _resolve_category(db, current_user.id, changes.pop("category_id"))
        txn.category_id = category.id if category else None
    if changes.get("amount") is not None:
        txn.amount = Decimal(str(changes.pop("amount")))
    for field in ("description", "merchant", "type", "date"):
        if field in changes and (changes[field] is not None or field == "merchant"):
            setattr(txn, field, changes[field])

    db.commit()
    db.refresh(txn)
    return transaction_to_out(txn)


@router.delete("/transactions/{transaction_id}")
def delete_transaction(
    transaction_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    txn = transaction_service.get_transaction(db, current_user.id, transaction_id)
    if not txn:
        raise HTTPException(404, "Transaction not found")
    db.delete(txn)
    db.commit()
    return {"success": True}
