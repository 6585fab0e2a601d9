"""
SocialFeed Backend - Post Service (Feed Aggregate Store)
==========================================================

What:  Every feed operation: list, create, owner-only update/delete, like
       toggle and comment append.
How:   A post row is the aggregate root; likes and comments live inside it.
       Each mutation is one read-modify-write of that row, committed as a
       compare-and-swap on `posts.version`.
Who:   Called by the posts route handlers with a verified caller id.

Mutation Protocol:
    ┌────────────┐    ┌──────────────┐    ┌──────────────────────────────┐
    │ SELECT row │───▶│ apply change │───▶│ UPDATE ... WHERE version = v │
    │ (fresh)    │    │ in memory    │    │ (or DELETE ... version = v)  │
    └────────────┘    └──────────────┘    └──────────────────────────────┘
          ▲                                        │ 0 rows → StaleDataError
          └──────── rollback + tenacity retry ─────┘

    - Owner-only operations filter the SELECT by id AND owner, so "no such
      post" and "not your post" are the same NotFoundError.
    - A like toggle decides add/remove from the freshly read likes. Two
      concurrent toggles by one account cannot both insert: the second
      writer's version check fails and it re-decides from the winner's state.
    - A comment append re-reads on conflict, so no concurrent comment is lost
      and the order matches commit order.
    - Retries exhausted → DatabaseError (500).

Callers pass ids, never ORM Account instances: the retry path rolls the
session back, which expires every object loaded in it.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Mapping, Optional

from sqlalchemy import desc, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from app.config import settings
from app.exceptions import DatabaseError, NotFoundError, SocialFeedError, ValidationError
from app.models.account import Account
from app.models.post import Post
from app.schemas.post import CommentResponse, LikeResponse, PostResponse, UserRef

logger = logging.getLogger(__name__)

# Fields a PATCH may change. Everything else in the body is ignored.
MUTABLE_FIELDS = ("text", "image")

Mutation = Callable[[Post], Awaitable[None]]


def _parse_post_id(post_id: Any) -> uuid.UUID:
    """Malformed ids are reported exactly like unknown ones."""
    if isinstance(post_id, uuid.UUID):
        return post_id
    try:
        return uuid.UUID(str(post_id))
    except ValueError:
        raise NotFoundError(resource="Post", resource_id=str(post_id))


def _as_uuid(value: Any) -> uuid.UUID:
    return value if isinstance(value, uuid.UUID) else uuid.UUID(str(value))


class PostService:
    """
    Business logic layer for the feed.

    Responsibilities:
        - list_feed(): public feed, newest first, names attached
        - create_post(): owner set from the verified caller
        - update_post() / delete_post(): owner-scoped lookups
        - toggle_like() / add_comment(): any caller, embedded collections

    Error Handling Strategy:
        NotFoundError and ValidationError propagate unchanged. SQLAlchemy
        failures (including an exhausted optimistic retry) are wrapped in
        DatabaseError so no driver detail reaches the client.
    """

    # ── Reads ─────────────────────────────────────────────────────────────

    async def list_feed(self, db: AsyncSession) -> List[PostResponse]:
        """
        Return every post, most recent first.

        One query for the posts and one batched query for all account names
        referenced by owners, likes and comments.
        """
        try:
            result = await db.execute(
                select(Post).order_by(desc(Post.created_at), desc(Post.id))
            )
            posts = list(result.scalars().all())
            names = await self._resolve_names(db, posts)
        except SQLAlchemyError as e:
            logger.error("Database error listing feed: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve the feed. Please try again.",
                context={"error_type": type(e).__name__},
            )

        return [self._to_response(post, names) for post in posts]

    # ── Create ────────────────────────────────────────────────────────────

    async def create_post(
        self,
        db: AsyncSession,
        caller_id: uuid.UUID,
        text: Optional[str] = None,
        image: Optional[str] = None,
    ) -> PostResponse:
        """
        Create a post owned by the caller.

        Args:
            caller_id: Verified account id from the authentication gate.
            text: Optional body.
            image: Optional image URL from the asset store.

        Raises:
            ValidationError: neither text nor image was supplied.
        """
        if not text and not image:
            raise ValidationError(message="A post needs text or an image", field="text")

        post = Post(
            user_id=caller_id,
            text=text,
            image=image,
            likes=[],
            comments=[],
        )
        db.add(post)
        try:
            await db.flush()
            names = await self._resolve_names(db, [post])
        except SQLAlchemyError as e:
            logger.error("Database error creating post: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not create the post. Please try again.",
                context={"error_type": type(e).__name__},
            )

        logger.info("Post %s created by %s", post.id, caller_id)
        return self._to_response(post, names)

    # ── Owner-only mutations ──────────────────────────────────────────────

    async def update_post(
        self,
        db: AsyncSession,
        caller_id: uuid.UUID,
        post_id: Any,
        patch: Mapping[str, Any],
    ) -> PostResponse:
        """
        Apply a whitelisted patch to one of the caller's posts.

        Only `text` and `image` keys are applied; a key present with value
        None clears that field. The post must still have text or an image
        afterwards.

        Raises:
            NotFoundError:   no post with this id owned by the caller.
            ValidationError: the patch would leave the post empty.
        """
        changes = {key: patch[key] for key in MUTABLE_FIELDS if key in patch}

        async def apply(post: Post) -> None:
            new_text = changes.get("text", post.text)
            new_image = changes.get("image", post.image)
            if not new_text and not new_image:
                raise ValidationError(message="A post needs text or an image", field="text")
            for key, value in changes.items():
                setattr(post, key, value)

        post = await self._mutate(db, post_id, apply, owner_id=caller_id)
        logger.info("Post %s updated by owner (%s)", post.id, ", ".join(changes) or "no fields")
        return await self._respond(db, post)

    async def delete_post(
        self,
        db: AsyncSession,
        caller_id: uuid.UUID,
        post_id: Any,
    ) -> PostResponse:
        """
        Delete one of the caller's posts and return its final state.

        Raises:
            NotFoundError: no post with this id owned by the caller.
        """

        async def apply(post: Post) -> None:
            await db.delete(post)

        post = await self._mutate(db, post_id, apply, owner_id=caller_id)
        logger.info("Post %s deleted by owner", post.id)
        return await self._respond(db, post)

    # ── Interactions (any caller) ─────────────────────────────────────────

    async def toggle_like(
        self,
        db: AsyncSession,
        caller_id: uuid.UUID,
        post_id: Any,
    ) -> PostResponse:
        """
        Like the post if the caller has not liked it, otherwise un-like it.

        Two sequential calls restore the previous membership. Any legacy
        duplicate entries for the caller are removed together on un-like.

        Raises:
            NotFoundError: the post does not exist.
        """
        caller_key = str(caller_id)

        async def apply(post: Post) -> None:
            likes = list(post.likes or [])
            remaining = [like for like in likes if str(like.get("user")) != caller_key]
            if len(remaining) == len(likes):
                remaining.append({"user": caller_key})
            post.likes = remaining

        post = await self._mutate(db, post_id, apply)
        logger.debug("Like toggled on post %s by %s", post.id, caller_id)
        return await self._respond(db, post)

    async def add_comment(
        self,
        db: AsyncSession,
        caller_id: uuid.UUID,
        post_id: Any,
        text: Optional[str],
    ) -> PostResponse:
        """
        Append a comment to the end of the post's comment sequence.

        The text is stored exactly as given. Comments cannot be edited or
        removed.

        Raises:
            NotFoundError: the post does not exist.
        """
        comment_id = str(uuid.uuid4())

        async def apply(post: Post) -> None:
            post.comments = [
                *(post.comments or []),
                {
                    "id": comment_id,
                    "user": str(caller_id),
                    "text": text,
                    "created_at": datetime.now(timezone.utc).isoformat(),
                },
            ]

        post = await self._mutate(db, post_id, apply)
        logger.debug("Comment %s added to post %s by %s", comment_id, post.id, caller_id)
        return await self._respond(db, post)

    # ── Read-modify-write machinery ───────────────────────────────────────

    async def _mutate(
        self,
        db: AsyncSession,
        post_id: Any,
        mutation: Mutation,
        owner_id: Optional[uuid.UUID] = None,
    ) -> Post:
        """
        Run `mutation` against a fresh copy of the post until its write wins.

        Raises:
            NotFoundError / ValidationError from the lookup or the mutation.
            DatabaseError when the retry budget runs out or the store fails.
        """
        pid = _parse_post_id(post_id)
        try:
            return await self._read_modify_write(db, pid, mutation, owner_id)
        except SocialFeedError:
            raise
        except StaleDataError:
            logger.error(
                "Post %s kept changing; gave up after %d attempts",
                pid,
                settings.mutation_max_attempts,
            )
            raise DatabaseError(
                message="The post is being modified by others. Please try again.",
                context={"post_id": str(pid), "attempts": settings.mutation_max_attempts},
            )
        except SQLAlchemyError as e:
            logger.error("Database error mutating post %s: %s", pid, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not update the post. Please try again.",
                context={"post_id": str(pid), "error_type": type(e).__name__},
            )

    @retry(
        retry=retry_if_exception_type(StaleDataError),
        stop=stop_after_attempt(settings.mutation_max_attempts),
        wait=wait_exponential_jitter(
            initial=settings.mutation_retry_min_wait,
            max=settings.mutation_retry_max_wait,
            jitter=settings.mutation_retry_min_wait,
        ),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _read_modify_write(
        self,
        db: AsyncSession,
        post_id: uuid.UUID,
        mutation: Mutation,
        owner_id: Optional[uuid.UUID],
    ) -> Post:
        """
        One attempt: load, mutate, flush with the version check.

        On a lost race the session is rolled back before re-raising so the
        next attempt starts a new transaction and re-reads the row.
        """
        post = await self._load(db, post_id, owner_id)
        try:
            await mutation(post)
            await db.flush()
        except StaleDataError:
            logger.info("Concurrent write on post %s; retrying from a fresh read", post_id)
            await db.rollback()
            raise
        return post

    async def _load(
        self,
        db: AsyncSession,
        post_id: uuid.UUID,
        owner_id: Optional[uuid.UUID] = None,
    ) -> Post:
        query = (
            select(Post)
            .where(Post.id == post_id)
            .execution_options(populate_existing=True)
        )
        if owner_id is not None:
            query = query.where(Post.user_id == owner_id)

        result = await db.execute(query)
        post = result.scalar_one_or_none()
        if post is None:
            raise NotFoundError(resource="Post", resource_id=str(post_id))
        return post

    # ── Response building ─────────────────────────────────────────────────

    async def _respond(self, db: AsyncSession, post: Post) -> PostResponse:
        try:
            names = await self._resolve_names(db, [post])
        except SQLAlchemyError as e:
            logger.error("Database error resolving names: %s", str(e), exc_info=True)
            raise DatabaseError(context={"error_type": type(e).__name__})
        return self._to_response(post, names)

    @staticmethod
    def _referenced_ids(posts: Iterable[Post]) -> set:
        ids = set()
        for post in posts:
            ids.add(_as_uuid(post.user_id))
            for like in post.likes or []:
                ids.add(_as_uuid(like["user"]))
            for comment in post.comments or []:
                ids.add(_as_uuid(comment["user"]))
        return ids

    async def _resolve_names(
        self, db: AsyncSession, posts: Iterable[Post]
    ) -> Dict[uuid.UUID, str]:
        """Batch-load display names for every account a set of posts references."""
        ids = self._referenced_ids(posts)
        if not ids:
            return {}
        result = await db.execute(
            select(Account.id, Account.name).where(Account.id.in_(ids))
        )
        return {row.id: row.name for row in result}

    @staticmethod
    def _user_ref(raw_id: Any, names: Mapping[uuid.UUID, str]) -> UserRef:
        account_id = _as_uuid(raw_id)
        return UserRef(id=account_id, name=names.get(account_id))

    def _to_response(self, post: Post, names: Mapping[uuid.UUID, str]) -> PostResponse:
        return PostResponse(
            id=post.id,
            user=self._user_ref(post.user_id, names),
            text=post.text,
            image=post.image,
            likes=[
                LikeResponse(user=self._user_ref(like["user"], names))
                for like in post.likes or []
            ],
            comments=[
                CommentResponse(
                    id=comment["id"],
                    user=self._user_ref(comment["user"], names),
                    text=comment.get("text"),
                    created_at=comment["created_at"],
                )
                for comment in post.comments or []
            ],
            created_at=post.created_at,
            updated_at=post.updated_at,
        )


# ── Singleton Instance ────────────────────────────────────────────────────
post_service = PostService()
