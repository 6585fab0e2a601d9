"""
SocialFeed Backend - Account SQLAlchemy Model
===============================================

What:  ORM model representing the `accounts` table.
How:   Inherits from SQLAlchemy's DeclarativeBase; Alembic reads this for migrations.
Who:   Used by AccountService for signup/login and by the authentication gate.
When:  Created on signup; read on login and on every authenticated request.

Table Design:
    - UUID primary key, generated in Python so every backend gets the same ids
    - email: UNIQUE index, compared byte-for-byte (no case folding)
    - password: bcrypt hash only; the raw password is never stored
    - No update or delete path exists; rows are immutable after signup
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, Index, String, Uuid
from sqlalchemy import text as sa_text
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base

NAME_MAX_LENGTH = 255
EMAIL_MAX_LENGTH = 320


class Account(Base):
    """
    A registered user of the feed.

    The `password` attribute holds the bcrypt hash. Response schemas never
    declare it, so it cannot leak through serialization.
    """

    __tablename__ = "accounts"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
        comment="Unique account identifier",
    )

    name: Mapped[str] = mapped_column(
        String(NAME_MAX_LENGTH),
        nullable=False,
        comment="Display name shown next to posts, likes and comments",
    )

    email: Mapped[str] = mapped_column(
        String(EMAIL_MAX_LENGTH),
        nullable=False,
        comment="Login identifier, unique, case-sensitive",
    )

    password: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="bcrypt hash of the account password",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=sa_text("CURRENT_TIMESTAMP"),
        comment="When the account was created (UTC)",
    )

    __table_args__ = (
        Index("uq_accounts_email", "email", unique=True),
    )

    def __repr__(self) -> str:
        return f"<Account(id={self.id}, email='{self.email}')>"
