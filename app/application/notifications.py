"""
Local notification scheduling for financial due dates.

schedule() queues a ScheduledNotification; dispatch_due_notifications()
(run by the background scheduler) delivers whatever is due via Web Push.

Reminder rules for an entry with due_date and notification_enabled:
  - 1 day before the due date, if that moment is still ahead
  - on the due date, if it is still ahead
"""
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal

from sqlalchemy.orm import Session

from app.application.push_service import send_push_to_user
from app.domain.transaction_log import INCOME_TAG, SEPARATOR
from app.infrastructure.db.models import ScheduledNotification

logger = logging.getLogger(__name__)

TITLE_PREFIX = "💰 "
GROUP = "finance-flow"


@dataclass
class NotificationPayload:
    title: str
    body: str
    data: dict = field(default_factory=dict)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def _due_instant(value) -> datetime:
    if isinstance(value, datetime):
        return _aware(value)
    if isinstance(value, str):
        value = date.fromisoformat(value[:10])
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


def _short_description(description: str) -> str:
    return description.replace(f"{INCOME_TAG}: ", "", 1).split(SEPARATOR)[0]


class NotificationService:
    def __init__(self, db: Session, now=_utcnow):
        self.db = db
        self._now = now

    def schedule(self, user_id: str, payload: NotificationPayload, at: datetime | None = None) -> int:
        notif = ScheduledNotification(
            user_id=user_id,
            title=f"{TITLE_PREFIX}{payload.title}",
            body=payload.body,
            extra=payload.data or {},
            group_name=GROUP,
            scheduled_at=at,
        )
        self.db.add(notif)
        self.db.commit()
        logger.info("Notification %s scheduled for %s", notif.id, at or "now")
        return notif.id

    def cancel(self, notification_id: int, user_id: str | None = None) -> None:
        q = self.db.query(ScheduledNotification).filter(
            ScheduledNotification.id == notification_id,
            ScheduledNotification.sent_at.is_(None),
        )
        if user_id is not None:
            q = q.filter(ScheduledNotification.user_id == user_id)
        n = q.update({"cancelled_at": self._now()}, synchronize_session="fetch")
        self.db.commit()
        logger.info("Notification %s cancelled (%d rows)", notification_id, n)

    def cancel_all(self, user_id: str) -> int:
        n = self.db.query(ScheduledNotification).filter(
            ScheduledNotification.user_id == user_id,
            ScheduledNotification.sent_at.is_(None),
            ScheduledNotification.cancelled_at.is_(None),
        ).update({"cancelled_at": self._now()}, synchronize_session="fetch")
        self.db.commit()
        return n

    def cancel_for_cost(self, cost_id: str) -> int:
        pending = self.db.query(ScheduledNotification).filter(
            ScheduledNotification.sent_at.is_(None),
            ScheduledNotification.cancelled_at.is_(None),
        ).all()
        count = 0
        for notif in pending:
            if (notif.extra or {}).get("cost_id") == cost_id:
                notif.cancelled_at = self._now()
                count += 1
        self.db.commit()
        return count

    def schedule_expense_reminder(self, expense: dict) -> list[int]:
        if not expense.get("due_date") or not expense.get("notification_enabled"):
            return []

        now = _aware(self._now())
        due = _due_instant(expense["due_date"])
        value = Decimal(str(expense["value"]))
        description = expense.get("description") or ""
        is_income = f"{INCOME_TAG}:" in description or value < 0
        amount = abs(value)
        money = f"R$ {amount:.2f}"

        data = {
            "cost_id": expense.get("id"),
            "amount": str(amount),
            "due_date": due.date().isoformat(),
            "category": expense.get("category"),
            "type": "income" if is_income else "expense",
        }

        if is_income:
            name = _short_description(description)
            day_before = NotificationPayload(
                "Finance Flow - Collection in 1 day",
                f"Remember to collect: {name} - {money}", data,
            )
            due_day = NotificationPayload(
                "Finance Flow - Time to collect!",
                f"Due today: {name} - {money}", data,
            )
        else:
            day_before = NotificationPayload(
                "Finance Flow - Due in 1 day",
                f"{description} is due tomorrow - {money}", data,
            )
            due_day = NotificationPayload(
                "Finance Flow - Due today!",
                f"{description} is due today - {money}", data,
            )

        ids = []
        one_day_before = due - timedelta(days=1)
        if one_day_before > now:
            ids.append(self.schedule(expense["user_id"], day_before, one_day_before))
        if due > now:
            ids.append(self.schedule(expense["user_id"], due_day, due))
        return ids


def dispatch_due_notifications(db: Session, now: datetime | None = None) -> int:
    """Deliver due notifications; each one is marked sent exactly once."""
    now = now or _utcnow()
    pending = (
        db.query(ScheduledNotification)
        .filter(
            ScheduledNotification.sent_at.is_(None),
            ScheduledNotification.cancelled_at.is_(None),
        )
        .order_by(ScheduledNotification.id)
        .all()
    )

    sent = 0
    for notif in pending:
        if notif.scheduled_at is not None and _aware(notif.scheduled_at) > _aware(now):
            continue
        send_push_to_user(db, notif.user_id, {
            "title": notif.title,
            "body": notif.body,
            "data": notif.extra or {},
            "tag": notif.group_name,
        })
        notif.sent_at = now
        sent += 1
    db.commit()
    if sent:
        logger.info("Dispatched %d notifications", sent)
    return sent
