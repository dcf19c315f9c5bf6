"""
PostDesk Backend — User SQLAlchemy Model
==========================================

What:  ORM model representing the `users` table.
Why:   The SQL repository reads and writes these objects; services convert them
       to UserResponse schemas before they reach the wire.
Who:   Used by UserService (through Repository[User]) and SqlRepository.

Table Design Rationale:
    - UUID primary key generated in Python: portable across PostgreSQL and SQLite
    - email / phone_number UNIQUE: the store is the final arbiter of duplicates;
      the repository translates violations into ConflictError
    - password holds an Argon2 digest, never the plaintext, and is never
      serialized (UserResponse has no password field)
    - role stored as a short string (non-native enum) for portability
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, DateTime, Enum, Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from postdesk.database import Base
from postdesk.schemas.auth import Role


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """
    A registered user.

    Query Patterns:
        - List/search: ILIKE on first_name, last_name, email; ORDER BY created_at
        - Lookup by phone: WHERE phone_number = :phone (unique index)
        - Duplicate pre-check: WHERE email = :email LIMIT 1 (unique index)
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)

    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    phone_number: Mapped[str] = mapped_column(String(20), nullable=False, unique=True)

    role: Mapped[Role] = mapped_column(
        Enum(Role, native_enum=False, length=20),
        nullable=False,
        default=Role.USER,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # Argon2 digest (see services/hashing.py)
    password: Mapped[str] = mapped_column(String(255), nullable=False)

    # ── Timestamps ────────────────────────────────────────────────────────
    # Python-side defaults so repositories get values back without a refresh
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
        Index("idx_users_first_name", "first_name"),
        Index("idx_users_last_name", "last_name"),
        Index("idx_users_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"
