"""
Tests for financial entries: create, list, totals, delete.
"""
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from app.application.financial import (
    CreateFinancialTransactionUseCase, DeleteFinancialTransactionUseCase,
    FinancialReadService, FinancialValidationError, summarize, decoded_view,
)
from app.application.notifications import NotificationService
from app.domain.transaction_log import TransactionKind
from app.infrastructure.db.models import Expense, ScheduledNotification


def _row(description, value):
    return {"description": description, "value": Decimal(value)}


class TestSummarize:
    def test_totals_and_balance(self):
        summary = summarize([
            _row("FINANCIAL_INCOME: Job | Paid: true", "-1000.00"),
            _row("FINANCIAL_INCOME: Ad | Paid: false", "-200.00"),
            _row("FINANCIAL_EXPENSE: Lens | Paid: true", "300.00"),
            _row("FINANCIAL_EXPENSE: Fuel | Paid: false", "50.00"),
        ])
        assert summary.total_income == Decimal("1200.00")
        assert summary.total_expenses == Decimal("350.00")
        assert summary.balance == Decimal("850.00")
        assert summary.pending_income == Decimal("200.00")
        assert summary.pending_expenses == Decimal("50.00")

    def test_sign_mismatch_excluded(self):
        summary = summarize([
            _row("FINANCIAL_INCOME: Refund", "100.00"),
            _row("FINANCIAL_EXPENSE: Chargeback", "-40.00"),
            _row("FINANCIAL_EXPENSE: Tape", "10.00"),
        ])
        assert summary.total_income == Decimal("0")
        assert summary.total_expenses == Decimal("10.00")
        assert summary.balance == Decimal("-10.00")

    def test_empty(self):
        summary = summarize([])
        assert summary.balance == Decimal("0")


class TestCreate:
    def test_income_stored_negative(self, db_session, alice, store_for):
        row, notice = CreateFinancialTransactionUseCase(store_for(alice)).execute(
            TransactionKind.INCOME, " Wedding video ", Decimal("1500.00"),
            payment_method="pix", counterparty="Ana", entry_date=date(2024, 5, 1), paid=True,
        )
        assert notice.title == "Income Added"
        assert row["value"] == Decimal("-1500.00")
        assert row["month"] == "2024-05"
        assert row["description"] == (
            "FINANCIAL_INCOME: Wedding video | Payment: pix | Client: Ana"
            " | Date: 2024-05-01 | Paid: true"
        )
        assert db_session.query(Expense).count() == 1

    def test_expense_stored_positive(self, alice, store_for):
        row, notice = CreateFinancialTransactionUseCase(store_for(alice)).execute(
            "expense", "Lens rental", Decimal("80"), counterparty="CamShop",
            entry_date=date(2024, 6, 2),
        )
        assert notice.title == "Expense Added"
        assert row["value"] == Decimal("80")
        assert "Supplier: CamShop" in row["description"]
        assert row["description"].endswith("Paid: false")

    @pytest.mark.parametrize("description,amount,message", [
        ("", Decimal("10"), "Description is required"),
        ("x", Decimal("0"), "Amount must be greater than zero"),
        ("x", Decimal("-5"), "Amount must be greater than zero"),
    ])
    def test_validation_before_write(self, db_session, alice, store_for, description, amount, message):
        with pytest.raises(FinancialValidationError, match=message):
            CreateFinancialTransactionUseCase(store_for(alice)).execute(
                TransactionKind.EXPENSE, description, amount,
            )
        assert db_session.query(Expense).count() == 0

    def test_requires_caller(self, store_for):
        with pytest.raises(FinancialValidationError, match="Not authenticated"):
            CreateFinancialTransactionUseCase(store_for(None)).execute(
                TransactionKind.EXPENSE, "x", Decimal("1"),
            )

    def test_schedules_reminders(self, db_session, alice, store_for):
        now = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        notifications = NotificationService(db_session, now=lambda: now)
        CreateFinancialTransactionUseCase(store_for(alice), notifications).execute(
            TransactionKind.EXPENSE, "Studio rent", Decimal("900"),
            due_date=date(2024, 5, 10), notification_enabled=True,
        )
        assert db_session.query(ScheduledNotification).count() == 2


class TestReadService:
    def test_lists_only_tagged_entries_newest_first(self, alice, bob, store_for):
        create = CreateFinancialTransactionUseCase(store_for(alice))
        create.execute(TransactionKind.INCOME, "First", Decimal("10"))
        create.execute(TransactionKind.EXPENSE, "Second", Decimal("3"))
        store_for(alice).table("expenses").insert({
            "user_id": alice.id, "description": "Groceries", "value": Decimal("5"),
            "category": "", "month": "2024-05",
        }).execute()
        CreateFinancialTransactionUseCase(store_for(bob)).execute(
            TransactionKind.INCOME, "Bob's", Decimal("99"),
        )

        feed = FinancialReadService(store_for(alice)).load_transactions()
        assert feed.notice is None
        views = [decoded_view(r) for r in feed.transactions]
        assert [v["description"] for v in views] == ["Second", "First"]
        assert views[1]["is_income"] is True
        assert views[1]["amount"] == Decimal("10")
        assert feed.summary.total_income == Decimal("10")
        assert feed.summary.balance == Decimal("7")

    def test_feed_limit(self, alice, store_for, monkeypatch):
        from app.config import Settings
        settings = Settings(FINANCIAL_FEED_LIMIT=2, _env_file=None)
        monkeypatch.setattr("app.application.financial.get_settings", lambda: settings)

        create = CreateFinancialTransactionUseCase(store_for(alice))
        for i in range(3):
            create.execute(TransactionKind.EXPENSE, f"e{i}", Decimal("1"))
        feed = FinancialReadService(store_for(alice)).load_transactions()
        assert len(feed.transactions) == 2


class TestDelete:
    def test_delete_cancels_reminders(self, db_session, alice, store_for):
        now = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        notifications = NotificationService(db_session, now=lambda: now)
        row, _ = CreateFinancialTransactionUseCase(store_for(alice), notifications).execute(
            TransactionKind.INCOME, "Client invoice", Decimal("400"),
            due_date=date(2024, 5, 10), notification_enabled=True,
        )

        notice = DeleteFinancialTransactionUseCase(store_for(alice), notifications).execute(row["id"])
        assert notice.title == "Transaction Deleted"
        assert db_session.query(Expense).count() == 0
        pending = db_session.query(ScheduledNotification).filter(
            ScheduledNotification.cancelled_at.is_(None)
        ).count()
        assert pending == 0

    def test_delete_other_users_entry_fails(self, alice, bob, store_for):
        row, _ = CreateFinancialTransactionUseCase(store_for(alice)).execute(
            TransactionKind.EXPENSE, "Mine", Decimal("1"),
        )
        notice = DeleteFinancialTransactionUseCase(store_for(bob)).execute(row["id"])
        assert notice.variant == "destructive"
