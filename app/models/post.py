"""
SocialFeed Backend - Post SQLAlchemy Model
============================================

What:  ORM model for the `posts` table, the feed's aggregate root.
How:   Likes and comments are embedded JSON arrays on the post row, so the
       whole aggregate is read and written as one unit.
Who:   Used by PostService for every feed operation.

Embedded collections:
    likes:     [{"user": "<account uuid>"}, ...]
               Set semantics keyed by "user"; at most one entry per account.
    comments:  [{"id": "<uuid>", "user": "<account uuid>", "text": "...",
                 "created_at": "<iso8601>"}, ...]
               Append-only, in insertion order.

Concurrency:
    `version` is mapped as SQLAlchemy's version_id_col. Every UPDATE and DELETE
    is emitted as `... WHERE id = :id AND version = :seen_version` and bumps the
    counter; a writer holding a stale copy gets StaleDataError instead of
    overwriting a concurrent like or comment. The JSON columns must be
    reassigned (never mutated in place) so the ORM sees the change.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, DateTime, ForeignKey, Index, Integer, Text, Uuid
from sqlalchemy import text as sa_text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base

# JSONB on PostgreSQL, plain JSON elsewhere
EmbeddedList = JSON().with_variant(JSONB(), "postgresql")


class Post(Base):
    """
    A feed entry owned by one account.

    Lifecycle:
        1. Created by its owner (text and/or image required)
        2. Mutated in place by owner edits, anyone's like toggles and comments
        3. Deleted by its owner; there is no soft-delete or draft state
    """

    __tablename__ = "posts"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
        comment="Unique post identifier",
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("accounts.id"),
        nullable=False,
        comment="Owning account; the only account allowed to edit or delete",
    )

    text: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        comment="Post body; optional when an image is attached",
    )

    image: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        comment="Opaque image URL returned by the asset store",
    )

    likes: Mapped[List[Dict[str, Any]]] = mapped_column(
        EmbeddedList,
        nullable=False,
        default=list,
        comment="Embedded like set, keyed by account id",
    )

    comments: Mapped[List[Dict[str, Any]]] = mapped_column(
        EmbeddedList,
        nullable=False,
        default=list,
        comment="Embedded append-only comment sequence",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=sa_text("CURRENT_TIMESTAMP"),
        comment="When the post was created (UTC)",
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        server_default=sa_text("CURRENT_TIMESTAMP"),
        comment="When the post aggregate last changed (UTC)",
    )

    version: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="Optimistic concurrency counter for the aggregate",
    )

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        Index("idx_posts_created_at", created_at.desc()),
        Index("idx_posts_user_id", "user_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<Post(id={self.id}, user_id={self.user_id}, "
            f"likes={len(self.likes or [])}, comments={len(self.comments or [])})>"
        )
