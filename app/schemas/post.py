"""
SocialFeed Backend - Post Schemas
===================================

What:  API contract for the feed: the enriched post representation and the
       request bodies for edits and comments.

Wire shape (field names are relied on by existing clients):
    {
        "id": "...",
        "user": {"id": "...", "name": "Ann"},
        "text": "hi",
        "image": "/api/files/2024/01/15/abc.jpg",
        "likes": [{"user": {"id": "...", "name": "Bob"}}],
        "comments": [{"id": "...", "user": {...}, "text": "nice", "created_at": "..."}],
        "created_at": "...",
        "updated_at": "..."
    }
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class UserRef(BaseModel):
    """An account id with its display name attached."""
    id: uuid.UUID
    # None when the referenced account no longer resolves.
    name: Optional[str] = None


class LikeResponse(BaseModel):
    user: UserRef


class CommentResponse(BaseModel):
    id: uuid.UUID
    user: UserRef
    text: Optional[str] = None
    created_at: datetime


class PostResponse(BaseModel):
    """Full representation of a post with every account reference enriched."""
    id: uuid.UUID = Field(description="Post identifier")
    user: UserRef = Field(description="Owning account")
    text: Optional[str] = Field(default=None, description="Post body")
    image: Optional[str] = Field(default=None, description="Image URL, if any")
    likes: List[LikeResponse] = Field(default_factory=list)
    comments: List[CommentResponse] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class PostUpdateRequest(BaseModel):
    """
    Body of PATCH /api/posts/{id}.

    Only `text` and `image` are editable. Any other key in the body is
    ignored; ownership, likes and comments can never be overwritten this way.
    Keys omitted from the body are left unchanged (see `model_fields_set`).
    """
    text: Optional[str] = None
    image: Optional[str] = None


class CommentRequest(BaseModel):
    """Body of POST /api/posts/{id}/comment. Text is stored as-is."""
    text: Optional[str] = None
