"""
SQLAlchemy ORM models.

Collections exposed through the store gateway (kanban_boards, expenses,
profiles, agencies, agency_members) plus auth and notification tables.
"""
import uuid
from decimal import Decimal
from datetime import date as date_type
from sqlalchemy import String, Text, TIMESTAMP, Date, Boolean, Numeric, Integer, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import JSONB

from app.infrastructure.db.session import Base


def new_id() -> str:
    return str(uuid.uuid4())


class User(Base):
    """
    Authenticated account. Identity source for AuthUser.
    """
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Role claim for privileged procedures
    is_admin: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")

    created_at: Mapped[TIMESTAMP] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )


class Profile(Base):
    """
    Per-user profile carrying the subscription plan.

    subscription_data is an opaque JSON blob, mapped to Subscription
    in app.application.subscription.
    """
    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)  # == users.id
    subscription: Mapped[str | None] = mapped_column(String(32), nullable=True)
    subscription_data: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
    updated_at: Mapped[TIMESTAMP | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)


class Agency(Base):
    """Company / team that can own kanban boards."""
    __tablename__ = "agencies"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    owner_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    cnpj: Mapped[str | None] = mapped_column(String(18), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[TIMESTAMP] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )


class AgencyMember(Base):
    __tablename__ = "agency_members"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    agency_id: Mapped[str] = mapped_column(String(36), ForeignKey("agencies.id"), nullable=False, index=True)
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    role: Mapped[str] = mapped_column(String(32), nullable=False, server_default="member")  # owner/member

    __table_args__ = (
        UniqueConstraint("agency_id", "user_id", name="uq_agency_member"),
    )


class KanbanBoard(Base):
    """
    Board record: persistence envelope for one kanban project.

    Exactly one of user_id / agency_id is set. Project fields live in
    board_data and are rebuilt by app.domain.project on every read.
    """
    __tablename__ = "kanban_boards"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    agency_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)
    user_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)
    board_data: Mapped[dict] = mapped_column(JSONB, nullable=False)
    created_at: Mapped[TIMESTAMP] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[TIMESTAMP] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )


class Expense(Base):
    """
    Generic expense row. Financial income/expense entries are stored here
    with the transaction log encoded in description.

    value sign: income < 0, expense > 0.
    """
    __tablename__ = "expenses"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    value: Mapped[Decimal] = mapped_column(Numeric(precision=20, scale=2), nullable=False)
    category: Mapped[str] = mapped_column(String(128), nullable=False, server_default="")
    month: Mapped[str] = mapped_column(String(7), nullable=False)  # YYYY-MM
    created_at: Mapped[TIMESTAMP] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )
    due_date: Mapped[date_type | None] = mapped_column(Date, nullable=True)
    notification_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")


class PushSubscription(Base):
    """Web Push subscription for a user device."""
    __tablename__ = "push_subscriptions"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    endpoint: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    p256dh: Mapped[str] = mapped_column(Text, nullable=False)
    auth: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[TIMESTAMP] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )


class ScheduledNotification(Base):
    """Local notification queued for delivery (scheduled_at NULL = immediately)."""
    __tablename__ = "scheduled_notifications"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    extra: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
    group_name: Mapped[str] = mapped_column(String(64), nullable=False, server_default="finance-flow")
    scheduled_at: Mapped[TIMESTAMP | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True, index=True)
    sent_at: Mapped[TIMESTAMP | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    cancelled_at: Mapped[TIMESTAMP | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    created_at: Mapped[TIMESTAMP] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )
