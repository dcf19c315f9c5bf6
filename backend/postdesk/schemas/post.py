"""
PostDesk Backend — Post Request/Response Schemas
==================================================

What:  Request bodies, response shape and validation rule tables for posts.
"""

import uuid
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import Field

from postdesk.schemas.common import CamelModel
from postdesk.services.validation import Rule, matches, max_length, min_length, required

TITLE_PATTERN = r"[a-zA-Z0-9\s\-_.]+"


class PostCreate(CamelModel):
    """Body of POST /posts. The owner is the calling principal, never the body."""

    title: Optional[str] = Field(default=None, examples=["My First Post"])
    content: Optional[str] = Field(
        default=None, examples=["This is the content of my first post..."]
    )


class PostUpdate(PostCreate):
    """Body of PATCH /posts/{id}. Values are trimmed before validation."""


class PostResponse(CamelModel):
    id: uuid.UUID
    title: str
    content: str
    owner_id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


POST_CREATE_RULES: Dict[str, List[Rule]] = {
    "title": [required(), min_length(3), max_length(100)],
    "content": [required(), min_length(10)],
}

POST_UPDATE_RULES: Dict[str, List[Rule]] = {
    "title": [
        required(),
        min_length(3),
        max_length(100),
        matches(
            TITLE_PATTERN,
            "Title can only contain letters, numbers, spaces, and basic punctuation",
        ),
    ],
    "content": [required(), min_length(10)],
}
