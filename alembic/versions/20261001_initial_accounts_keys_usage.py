"""Create users, api_keys and usage_logs tables.

Revision ID: 001_initial
Revises:
Create Date: 2026-10-01

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create accounts, keys and the daily usage ledger."""
    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column("plan", sa.String(20), nullable=False, server_default="FREE"),
        sa.Column("role", sa.String(20), nullable=False, server_default="USER"),
        sa.Column("is_blocked", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("blocked_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("ban_until", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("ban_reason", sa.String(191), nullable=True),
        sa.Column("referral_bonus_daily", sa.Integer, nullable=False, server_default="0"),
        sa.Column("referral_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("referral_bonus_daily >= 0", name="ck_users_referral_bonus"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "api_keys",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "user_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("key", sa.String(191), nullable=False),
        sa.Column("label", sa.String(191), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="ACTIVE"),
        sa.Column("daily_limit", sa.Integer, nullable=False, server_default="100"),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("daily_limit > 0", name="ck_api_keys_daily_limit"),
    )
    op.create_index("ix_api_keys_key", "api_keys", ["key"], unique=True)
    op.create_index("ix_api_keys_user_id", "api_keys", ["user_id"])

    op.create_table(
        "usage_logs",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "api_key_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("api_keys.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("usage_date", sa.Date, nullable=False),
        sa.Column("requests_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("api_key_id", "usage_date", name="uq_usage_logs_key_date"),
        sa.CheckConstraint("requests_count >= 0", name="ck_usage_logs_requests_count"),
    )
    op.create_index("ix_usage_logs_api_key_id", "usage_logs", ["api_key_id"])


def downgrade() -> None:
    """Drop accounts, keys and the usage ledger."""
    op.drop_index("ix_usage_logs_api_key_id", table_name="usage_logs")
    op.drop_table("usage_logs")
    op.drop_index("ix_api_keys_user_id", table_name="api_keys")
    op.drop_index("ix_api_keys_key", table_name="api_keys")
    op.drop_table("api_keys")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
