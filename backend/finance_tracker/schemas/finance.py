from datetime import date as Date, datetime
from enum import StrEnum
from typing import Optional

from pydantic import BaseModel, Field

from finance_tracker.services.ai.receipt_extract.contracts import ExtractedTransaction


class TransactionType(StrEnum):
    INCOME = "income"
    EXPENSE = "expense"


class ReceiptStatus(StrEnum):
    PENDING = "pending"
    PROCESSED = "processed"
    FAILED = "failed"


# --- Categories ---


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    color: Optional[str] = Field(default=None, max_length=16)
    icon: Optional[str] = Field(default=None, max_length=16)


class CategoryOut(BaseModel):
    id: str
    name: str
    color: str
    icon: str
    created_at: Optional[datetime] = None


# --- Transactions ---


class TransactionCreate(BaseModel):
    amount: float = Field(..., gt=0)
    description: str = Field(..., min_length=1)
    merchant: Optional[str] = None
    type: TransactionType = TransactionType.EXPENSE
    date: Date
    category_id: Optional[str] = None
    receipt_id: Optional[str] = None


class TransactionUpdate(BaseModel):
    amount: Optional[float] = Field(default=None, gt=0)
    description: Optional[str] = Field(default=None, min_length=1)
    merchant: Optional[str] = None
    type: Optional[TransactionType] = None
    date: Optional[Date] = None
    category_id: Optional[str] = None


class TransactionOut(BaseModel):
    id: str
    amount: float
    description: str
    merchant: Optional[str] = None
    type: TransactionType
    date: Date
    category: Optional[CategoryOut] = None
    receipt_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PaginationOut(BaseModel):
    page: int
    limit: int
    total: int
    pages: int
    visible_pages: list[int | str] = []
    info: str = ""


class TransactionListResponse(BaseModel):
    transactions: list[TransactionOut]
    pagination: PaginationOut


class ConfirmReceiptTransactions(BaseModel):
    """Extracted candidates the user reviewed and chose to keep."""

    receipt_id: Optional[str] = None
    category_id: Optional[str] = None
    transactions: list[ExtractedTransaction] = Field(..., min_length=1)


# --- Analytics ---


class CategoryExpense(BaseModel):
    category_id: Optional[str] = None
    category_name: str
    color: str
    amount: float
    count: int


class MonthlyTrend(BaseModel):
    month: str
    type: TransactionType
    total: float


class AnalyticsSummary(BaseModel):
    total_income: float
    total_expenses: float
    net_income: float
    transaction_count: int


class AnalyticsOut(BaseModel):
    expenses_by_category: list[CategoryExpense]
    monthly_trends: list[MonthlyTrend]
    summary: AnalyticsSummary


# --- Receipts ---


class ReceiptOut(BaseModel):
    id: str
    file_name: str
    original_name: Optional[str] = None
    mime_type: str
    size: int
    storage_url: str
    status: ReceiptStatus
    created_at: Optional[datetime] = None


class ReceiptUploadResponse(BaseModel):
    receipt: ReceiptOut
    extracted_transactions: list[ExtractedTransaction]
