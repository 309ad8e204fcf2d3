"""Initial schema: subscriptions, subscription_tokens, users, web_sessions.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-18

- subscriptions: one row per subscriber, unique email, status check
- subscription_tokens: confirmation tokens (FK subscriptions)
- users: publisher credentials (Argon2id PHC hashes), unique username
- web_sessions: server-side sessions and flash messages (FK users)
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "001_initial_schema"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # =========================================================================
    # Subscriber lifecycle
    # =========================================================================
    op.create_table(
        "subscriptions",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("subscribed_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "status",
            sa.String(32),
            nullable=False,
            server_default="pending_confirmation",
        ),
        sa.CheckConstraint(
            "status IN ('pending_confirmation', 'confirmed')",
            name="ck_subscriptions_status",
        ),
        sa.UniqueConstraint("email", name="uq_subscriptions_email"),
    )

    op.create_table(
        "subscription_tokens",
        sa.Column("subscription_token", sa.String(64), primary_key=True),
        sa.Column(
            "subscription_id",
            sa.Uuid(),
            sa.ForeignKey("subscriptions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    )
    op.create_index(
        "ix_subscription_tokens_subscription_id",
        "subscription_tokens",
        ["subscription_id"],
    )

    # =========================================================================
    # Publishers
    # =========================================================================
    op.create_table(
        "users",
        sa.Column("user_id", sa.Uuid(), primary_key=True),
        sa.Column("username", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.UniqueConstraint("username", name="uq_users_username"),
    )

    op.create_table(
        "web_sessions",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column(
            "user_id",
            sa.Uuid(),
            sa.ForeignKey("users.user_id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column("flash", sa.Text(), nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    )
    op.create_index("ix_web_sessions_expires_at", "web_sessions", ["expires_at"])


def downgrade() -> None:
    op.drop_index("ix_web_sessions_expires_at", table_name="web_sessions")
    op.drop_table("web_sessions")
    op.drop_table("users")
    op.drop_index(
        "ix_subscription_tokens_subscription_id", table_name="subscription_tokens"
    )
    op.drop_table("subscription_tokens")
    op.drop_table("subscriptions")
