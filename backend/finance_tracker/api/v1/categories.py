import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from finance_tracker.core.auth import CurrentUser, get_current_user
from finance_tracker.core.dependencies import get_db
from finance_tracker.models.finance import Category
from finance_tracker.schemas.finance import CategoryCreate, CategoryOut
from finance_tracker.services import transaction_service

router = APIRouter()
logger = logging.getLogger(__name__)


def category_to_out(c: Category) -> CategoryOut:
    return CategoryOut(
        id=str(c.id),
        name=c.name,
        color=c.color,
        icon=c.icon,
        created_at=c.created_at,
    )


@router.get("/categories", response_model=list[CategoryOut])
def list_categories(
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return [category_to_out(c) for c in transaction_service.list_categories(db, current_user.id)]


@router.post("/categories", response_model=CategoryOut, status_code=201)
def create_category(
    payload: CategoryCreate,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        category = transaction_service.create_category(
            db,
            current_user.id,
            name=payload.name,
            color=payload.color,
            icon=payload.icon,
        )
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(409, f"Category {payload.name!r} already exists")
    db.refresh(category)
    return category_to_out(category)


@router.delete("/categories/{category_id}")
def delete_category(
    category_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    category = transaction_service.get_category(db, current_user.id, category_id)
    if not category:
        raise HTTPException(404, "Category not found")

    removed = transaction_service.delete_category(db, category)
    db.commit()
    logger.info("Deleted category %s and %d transactions", category_id, removed)
    return {"success": True, "deleted_transactions": removed}
