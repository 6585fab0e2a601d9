"""Create accounts and posts tables

Revision ID: 001
Revises: None
Create Date: 2026-10-19 00:00:00.000000+00:00

What:  Creates `accounts` (identity store) and `posts` (feed aggregate with
       embedded likes and comments).
How:   UUID primary keys, TIMESTAMP WITH TIME ZONE, JSONB for the embedded
       collections, and an integer `version` column for optimistic locking.

Accounts are never deleted, so posts.user_id has no ON DELETE cascade.
Rollback: downgrade() drops both tables (destructive).
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "accounts",
        sa.Column(
            "id",
            sa.Uuid(),
            nullable=False,
            comment="Unique account identifier",
        ),
        sa.Column(
            "name",
            sa.String(255),
            nullable=False,
            comment="Display name shown next to posts, likes and comments",
        ),
        sa.Column(
            "email",
            sa.String(320),
            nullable=False,
            comment="Login identifier, unique, case-sensitive",
        ),
        sa.Column(
            "password",
            sa.String(255),
            nullable=False,
            comment="bcrypt hash of the account password",
        ),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
            comment="When the account was created (UTC)",
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    # Exact-match uniqueness; no lower() so "Ann@x" and "ann@x" are distinct.
    op.create_index("uq_accounts_email", "accounts", ["email"], unique=True)

    op.create_table(
        "posts",
        sa.Column("id", sa.Uuid(), nullable=False, comment="Unique post identifier"),
        sa.Column(
            "user_id",
            sa.Uuid(),
            sa.ForeignKey("accounts.id"),
            nullable=False,
            comment="Owning account; the only account allowed to edit or delete",
        ),
        sa.Column("text", sa.Text(), nullable=True, comment="Post body"),
        sa.Column("image", sa.Text(), nullable=True, comment="Opaque image URL"),
        sa.Column(
            "likes",
            sa.JSON().with_variant(postgresql.JSONB(), "postgresql"),
            nullable=False,
            server_default=sa.text("'[]'"),
            comment="Embedded like set, keyed by account id",
        ),
        sa.Column(
            "comments",
            sa.JSON().with_variant(postgresql.JSONB(), "postgresql"),
            nullable=False,
            server_default=sa.text("'[]'"),
            comment="Embedded append-only comment sequence",
        ),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
            comment="When the post was created (UTC)",
        ),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
            comment="When the post aggregate last changed (UTC)",
        ),
        sa.Column(
            "version",
            sa.Integer(),
            nullable=False,
            server_default=sa.text("1"),
            comment="Optimistic concurrency counter for the aggregate",
        ),
        sa.PrimaryKeyConstraint("id"),
    )

    # The feed is always read newest first
    op.create_index("idx_posts_created_at", "posts", [sa.text("created_at DESC")])
    op.create_index("idx_posts_user_id", "posts", ["user_id"])


def downgrade() -> None:
    op.drop_index("idx_posts_user_id", table_name="posts")
    op.drop_index("idx_posts_created_at", table_name="posts")
    op.drop_table("posts")
    op.drop_index("uq_accounts_email", table_name="accounts")
    op.drop_table("accounts")
