"""
Financial tracking use-cases (income / expense entries).

Entries live in the generic "expenses" collection; the transaction log
codec carries the structured fields inside description, and the sign of
value carries the kind (income < 0, expense > 0).
"""
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal

from app.application.notices import Notice, success, failure
from app.config import get_settings
from app.domain.transaction_log import (
    INCOME_TAG, EXPENSE_TAG, TransactionEntry, TransactionKind,
    classify, decode, encode, signed_value,
)
from app.infrastructure.store.client import StoreClient

logger = logging.getLogger(__name__)


class FinancialValidationError(ValueError):
    pass


@dataclass
class FinancialSummary:
    total_income: Decimal = Decimal("0")
    total_expenses: Decimal = Decimal("0")
    balance: Decimal = Decimal("0")
    pending_income: Decimal = Decimal("0")
    pending_expenses: Decimal = Decimal("0")


@dataclass
class FinancialFeed:
    transactions: list[dict] = field(default_factory=list)
    summary: FinancialSummary = field(default_factory=FinancialSummary)
    notice: Notice | None = None


def summarize(transactions: list[dict]) -> FinancialSummary:
    """
    Totals over classified rows only. A row whose tag and sign disagree
    is left out of both totals.
    """
    income = Decimal("0")
    expenses = Decimal("0")
    pending_income = Decimal("0")
    pending_expenses = Decimal("0")

    for t in transactions:
        value = Decimal(str(t["value"]))
        kind = classify(t["description"], value)
        if kind is None:
            continue
        paid = decode(t["description"]).is_paid
        if kind is TransactionKind.INCOME:
            income += value
            if not paid:
                pending_income += abs(value)
        else:
            expenses += value
            if not paid:
                pending_expenses += value

    total_income = abs(income)
    return FinancialSummary(
        total_income=total_income,
        total_expenses=expenses,
        balance=total_income - expenses,
        pending_income=pending_income,
        pending_expenses=pending_expenses,
    )


def decoded_view(row: dict) -> dict:
    entry: TransactionEntry = decode(row["description"])
    return {
        "id": row["id"],
        "value": row["value"],
        "amount": abs(Decimal(str(row["value"]))),
        "category": row["category"],
        "month": row["month"],
        "created_at": row["created_at"],
        "due_date": row.get("due_date"),
        "is_income": entry.is_income,
        "description": entry.description,
        "payment_method": entry.payment_method,
        "client_or_supplier": entry.client_or_supplier,
        "date": entry.date,
        "is_paid": entry.is_paid,
    }


class CreateFinancialTransactionUseCase:
    def __init__(self, store: StoreClient, notifications=None):
        self.store = store
        self.notifications = notifications

    def execute(
        self,
        kind: TransactionKind,
        description: str,
        amount: Decimal,
        payment_method: str = "",
        counterparty: str = "",
        entry_date: date | None = None,
        paid: bool = False,
        category: str = "",
        month: str | None = None,
        due_date: date | None = None,
        notification_enabled: bool = False,
    ) -> tuple[dict | None, Notice]:
        """Raises FinancialValidationError before any write on invalid input."""
        caller = self.store.caller
        if caller is None:
            raise FinancialValidationError("Not authenticated")

        kind = TransactionKind(kind)
        description = (description or "").strip()
        if not description:
            raise FinancialValidationError("Description is required")
        amount = Decimal(str(amount))
        if amount <= 0:
            raise FinancialValidationError("Amount must be greater than zero")

        entry_date = entry_date or datetime.now(timezone.utc).date()
        record = {
            "user_id": caller.id,
            "description": encode(
                kind, description, payment_method.strip(), counterparty.strip(),
                entry_date.isoformat(), paid,
            ),
            "value": signed_value(kind, amount),
            "category": category.strip(),
            "month": month or entry_date.strftime("%Y-%m"),
            "created_at": datetime.now(timezone.utc),
            "due_date": due_date,
            "notification_enabled": notification_enabled,
        }
        res = self.store.table("expenses").insert(record).execute()
        if res.error:
            logger.error("Failed to save %s entry: %s", kind.value, res.error.message)
            return None, failure(f"Failed to save {kind.value}")

        row = res.data[0]
        if self.notifications is not None:
            self.notifications.schedule_expense_reminder(row)
        label = "Income" if kind is TransactionKind.INCOME else "Expense"
        return row, success(f"{label} Added", f'"{description}" was recorded')


class DeleteFinancialTransactionUseCase:
    def __init__(self, store: StoreClient, notifications=None):
        self.store = store
        self.notifications = notifications

    def execute(self, transaction_id: str) -> Notice:
        res = self.store.table("expenses").delete().eq("id", transaction_id).execute()
        if res.error or not res.data:
            logger.error("Failed to delete entry %s: %s", transaction_id,
                         res.error.message if res.error else "no matching row")
            return failure("Failed to delete transaction")
        if self.notifications is not None:
            self.notifications.cancel_for_cost(transaction_id)
        return success("Transaction Deleted", "Transaction deleted successfully")


class FinancialReadService:
    def __init__(self, store: StoreClient):
        self.store = store

    def load_transactions(self) -> FinancialFeed:
        caller = self.store.caller
        if caller is None:
            return FinancialFeed()

        res = (
            self.store.table("expenses")
            .select("*")
            .eq("user_id", caller.id)
            .or_(
                ("description", "ilike", f"{INCOME_TAG}:%"),
                ("description", "ilike", f"{EXPENSE_TAG}:%"),
            )
            .order("created_at", desc=True)
            .limit(get_settings().FINANCIAL_FEED_LIMIT)
            .execute()
        )
        if res.error:
            logger.error("Failed to load transactions: %s", res.error.message)
            return FinancialFeed(notice=failure("Failed to load transactions"))

        rows = res.data
        return FinancialFeed(transactions=rows, summary=summarize(rows))
