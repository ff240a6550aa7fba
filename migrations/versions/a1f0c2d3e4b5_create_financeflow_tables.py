"""create financeflow tables

Revision ID: a1f0c2d3e4b5
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB


# revision identifiers, used by Alembic.
revision: str = 'a1f0c2d3e4b5'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('name', sa.String(255), nullable=True),
        sa.Column('is_admin', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        'profiles',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('subscription', sa.String(32), nullable=True),
        sa.Column('subscription_data', JSONB(), nullable=True),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), nullable=True),
    )

    op.create_table(
        'agencies',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('owner_id', sa.String(36), sa.ForeignKey('users.id'), nullable=False, index=True),
        sa.Column('cnpj', sa.String(18), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        'agency_members',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('agency_id', sa.String(36), sa.ForeignKey('agencies.id'), nullable=False, index=True),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('users.id'), nullable=False, index=True),
        sa.Column('role', sa.String(32), nullable=False, server_default='member'),
        sa.UniqueConstraint('agency_id', 'user_id', name='uq_agency_member'),
    )

    op.create_table(
        'kanban_boards',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('agency_id', sa.String(36), nullable=True, index=True),
        sa.Column('user_id', sa.String(36), nullable=True, index=True),
        sa.Column('board_data', JSONB(), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        'expenses',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(36), nullable=False, index=True),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('value', sa.Numeric(precision=20, scale=2), nullable=False),
        sa.Column('category', sa.String(128), nullable=False, server_default=''),
        sa.Column('month', sa.String(7), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('due_date', sa.Date(), nullable=True),
        sa.Column('notification_enabled', sa.Boolean(), nullable=False, server_default='false'),
    )

    op.create_table(
        'push_subscriptions',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.String(36), nullable=False, index=True),
        sa.Column('endpoint', sa.Text(), nullable=False, unique=True),
        sa.Column('p256dh', sa.Text(), nullable=False),
        sa.Column('auth', sa.Text(), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        'scheduled_notifications',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.String(36), nullable=False, index=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('body', sa.Text(), nullable=False),
        sa.Column('extra', JSONB(), nullable=True),
        sa.Column('group_name', sa.String(64), nullable=False, server_default='finance-flow'),
        sa.Column('scheduled_at', sa.TIMESTAMP(timezone=True), nullable=True, index=True),
        sa.Column('sent_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('cancelled_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table('scheduled_notifications')
    op.drop_table('push_subscriptions')
    op.drop_table('expenses')
    op.drop_table('kanban_boards')
    op.drop_table('agency_members')
    op.drop_table('agencies')
    op.drop_table('profiles')
    op.drop_table('users')
