"""
PostDesk Backend — Post SQLAlchemy Model
==========================================

What:  ORM model representing the `posts` table.
Who:   Used by PostService (through Repository[Post]) and SqlRepository.

Ownership:
    owner_id stores the Principal.id of the caller that created the post.
    Identities come from the upstream gateway, so there is no foreign key to
    `users`; ownership is an identity comparison, not a relational join.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from postdesk.database import Base
from postdesk.schemas.auth import PRINCIPAL_ID_MAX_LENGTH


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Post(Base):
    """A post written by an authenticated caller."""

    __tablename__ = "posts"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)

    owner_id: Mapped[str] = mapped_column(String(PRINCIPAL_ID_MAX_LENGTH), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        default=_utcnow,
        onupdate=_utcnow,
    )

    __table_args__ = (
        Index("idx_posts_title", "title"),
        Index("idx_posts_owner_id", "owner_id"),
        Index("idx_posts_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Post(id={self.id}, owner_id='{self.owner_id}', title='{self.title}')>"
