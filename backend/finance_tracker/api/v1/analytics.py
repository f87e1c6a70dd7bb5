from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from finance_tracker.core.auth import CurrentUser, get_current_user
from finance_tracker.core.dependencies import get_db
from finance_tracker.schemas.finance import AnalyticsOut
from finance_tracker.services.transaction_service import build_analytics

router = APIRouter()


@router.get("/analytics", response_model=AnalyticsOut)
def analytics(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Expense breakdown by category, monthly income/expense trends and totals."""
    if start_date and end_date and start_date > end_date:
        raise HTTPException(400, "start_date must not be after end_date")
    return AnalyticsOut(**build_analytics(db, current_user.id, start_date=start_date, end_date=end_date))
