"""
Financial overview API endpoints (income / expense entries)
"""
from datetime import date
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_store
from app.api.responses import notice_response
from app.application.financial import (
    CreateFinancialTransactionUseCase, DeleteFinancialTransactionUseCase,
    FinancialReadService, FinancialValidationError, decoded_view,
)
from app.application.notifications import NotificationService
from app.domain.transaction_log import TransactionKind
from app.infrastructure.store.client import StoreClient
from app.utils.validation import validate_and_normalize_amount


router = APIRouter(prefix="/api/v1/financial", tags=["financial"])


# === Request models ===

class CreateEntryRequest(BaseModel):
    description: str
    amount: str  # Decimal as string
    payment_method: str = ""
    counterparty: str = ""
    entry_date: date | None = None
    paid: bool = False
    category: str = ""
    month: str | None = None
    due_date: date | None = None
    notification_enabled: bool = False

    @field_validator("amount")
    @classmethod
    def validate_amount(cls, v: str) -> str:
        """Dot or comma separator, at most 2 decimal places"""
        return validate_and_normalize_amount(v, max_decimal_places=2)


# === Helpers ===

def _create(kind: TransactionKind, req: CreateEntryRequest, store: StoreClient, db: Session):
    use_case = CreateFinancialTransactionUseCase(store, notifications=NotificationService(db))
    try:
        row, notice = use_case.execute(
            kind=kind,
            description=req.description,
            amount=Decimal(req.amount),
            payment_method=req.payment_method,
            counterparty=req.counterparty,
            entry_date=req.entry_date,
            paid=req.paid,
            category=req.category,
            month=req.month,
            due_date=req.due_date,
            notification_enabled=req.notification_enabled,
        )
    except FinancialValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return notice_response(notice, transaction=decoded_view(row) if row else None)


# === Endpoints ===

@router.get("")
def financial_overview(store: StoreClient = Depends(get_store)):
    """Latest entries (decoded) and the income / expense summary."""
    feed = FinancialReadService(store).load_transactions()
    s = feed.summary
    return notice_response(
        feed.notice,
        transactions=[decoded_view(t) for t in feed.transactions],
        summary={
            "total_income": str(s.total_income),
            "total_expenses": str(s.total_expenses),
            "balance": str(s.balance),
            "pending_income": str(s.pending_income),
            "pending_expenses": str(s.pending_expenses),
        },
    )


@router.post("/income")
def create_income(req: CreateEntryRequest, store: StoreClient = Depends(get_store), db: Session = Depends(get_db)):
    return _create(TransactionKind.INCOME, req, store, db)


@router.post("/expense")
def create_expense(req: CreateEntryRequest, store: StoreClient = Depends(get_store), db: Session = Depends(get_db)):
    return _create(TransactionKind.EXPENSE, req, store, db)


@router.delete("/{transaction_id}")
def delete_entry(transaction_id: str, store: StoreClient = Depends(get_store), db: Session = Depends(get_db)):
    notice = DeleteFinancialTransactionUseCase(store, notifications=NotificationService(db)).execute(transaction_id)
    return notice_response(notice)
