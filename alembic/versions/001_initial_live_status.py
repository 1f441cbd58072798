"""Initial live status tables: platform_accounts, live_sessions, status_events

Revision ID: 001
Revises:
Create Date: (run alembic upgrade head)

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "platform_accounts",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("platform", sa.String(16), nullable=False),
        sa.Column("platform_user_id", sa.String(128), nullable=False),
        sa.Column("platform_username", sa.String(128), nullable=True),
        sa.Column("channel_url", sa.String(512), nullable=True),
        sa.Column("is_enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("last_checked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("next_check_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("platform", "platform_user_id", name="uq_platform_accounts_platform_user"),
    )
    op.create_index("ix_platform_accounts_platform", "platform_accounts", ["platform"])
    op.create_index("ix_platform_accounts_due", "platform_accounts", ["is_enabled", "next_check_at"])

    op.create_table(
        "live_sessions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("platform_account_id", sa.Integer(), sa.ForeignKey("platform_accounts.id"), nullable=False),
        sa.Column("is_live", sa.Boolean(), nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("ended_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("title", sa.String(512), nullable=True),
        sa.Column("category", sa.String(256), nullable=True),
        sa.Column("viewer_count", sa.Integer(), nullable=True),
        sa.Column("stream_url", sa.String(512), nullable=True),
        sa.Column("thumbnail_url", sa.String(1024), nullable=True),
        sa.Column("raw_json", sa.Text(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_live_sessions_platform_account_id", "live_sessions", ["platform_account_id"])
    # At most one open session per account
    op.create_index(
        "uq_live_sessions_open_per_account",
        "live_sessions",
        ["platform_account_id"],
        unique=True,
        postgresql_where=sa.text("ended_at IS NULL"),
        sqlite_where=sa.text("ended_at IS NULL"),
    )

    op.create_table(
        "status_events",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("platform_account_id", sa.Integer(), sa.ForeignKey("platform_accounts.id"), nullable=False),
        sa.Column("event_type", sa.String(32), nullable=False),
        sa.Column("payload_json", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_status_events_platform_account_id", "status_events", ["platform_account_id"])


def downgrade() -> None:
    op.drop_index("ix_status_events_platform_account_id", table_name="status_events")
    op.drop_table("status_events")
    op.drop_index("uq_live_sessions_open_per_account", table_name="live_sessions")
    op.drop_index("ix_live_sessions_platform_account_id", table_name="live_sessions")
    op.drop_table("live_sessions")
    op.drop_index("ix_platform_accounts_due", table_name="platform_accounts")
    op.drop_index("ix_platform_accounts_platform", table_name="platform_accounts")
    op.drop_table("platform_accounts")
