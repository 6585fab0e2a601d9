"""
SocialFeed Backend - Model Mapping Tests
==========================================

What:  The ORM tables carry the columns, defaults and indexes the migration creates.

What we test:
    ✅ posts: a `text` column coexists with SQL-expression server defaults
    ✅ accounts: unique email index and column lengths
    ✅ created_at is filled in when an insert leaves it out
"""

import uuid

import pytest
from sqlalchemy import insert, select

from app.models.account import EMAIL_MAX_LENGTH, NAME_MAX_LENGTH, Account
from app.models.post import Post


class TestPostTable:

    def test_columns(self):
        columns = Post.__table__.c
        assert set(columns.keys()) == {
            "id", "user_id", "text", "image", "likes", "comments",
            "created_at", "updated_at", "version",
        }
        assert columns["text"].nullable

    def test_timestamp_server_defaults(self):
        for name in ("created_at", "updated_at"):
            default = Post.__table__.c[name].server_default
            assert default is not None
            assert str(default.arg) == "CURRENT_TIMESTAMP"

    def test_version_column_drives_concurrency(self):
        assert Post.__mapper__.version_id_col is Post.__table__.c.version


class TestAccountTable:

    def test_email_index_is_unique(self):
        indexes = {index.name: index for index in Account.__table__.indexes}
        assert indexes["uq_accounts_email"].unique

    def test_column_lengths(self):
        assert Account.__table__.c["name"].type.length == NAME_MAX_LENGTH
        assert Account.__table__.c["email"].type.length == EMAIL_MAX_LENGTH

    @pytest.mark.asyncio
    async def test_created_at_filled_when_omitted(self, db_session):
        account_id = uuid.uuid4()
        await db_session.execute(
            insert(Account.__table__).values(
                id=account_id, name="Ann", email="ann@x.com", password="x"
            )
        )
        created_at = (
            await db_session.execute(
                select(Account.__table__.c.created_at).where(Account.__table__.c.id == account_id)
            )
        ).scalar_one()
        assert created_at is not None
