"""
SwapCycle Backend — User SQLAlchemy Model
===========================================

What:  ORM model for the `users` table.
Who:   Written by IdentityService at signup; read by login and by the listing
       queries that embed the redacted owner projection.

Table Design Rationale:
    - UUID primary key: non-sequential, so user ids cannot be enumerated
    - email UNIQUE: the store enforces one account per email; the resulting
      IntegrityError is what IdentityService maps to ConflictError
    - password_hash: bcrypt output only, never the plaintext; no schema ever
      serializes this column
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, String, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from swapcycle.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """A registered account. Identity fields are immutable after signup."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    email: Mapped[str] = mapped_column(
        String(320),
        nullable=False,
        unique=True,
        comment="Login identifier; unique across all accounts",
    )

    password_hash: Mapped[str] = mapped_column(
        String(128),
        nullable=False,
        comment="bcrypt hash of the password",
    )

    # ── Profile (mutable, optional) ───────────────────────────────────────
    name: Mapped[str | None] = mapped_column(String(120), nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}')>"
