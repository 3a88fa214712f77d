"""
SwapCycle Backend — SwapOffer SQLAlchemy Model & Status Machine
=================================================================

What:  ORM model for `swap_offers` plus the enums that define the offer
       lifecycle.
Who:   Written by OfferService (propose, act); read by listing detail and the
       caller's offer inbox.

Lifecycle:
        ┌─────────┐  accept   ┌──────────┐  complete  ┌───────────┐
        │ pending │──────────▶│ accepted │───────────▶│ completed │
        └─────────┘           └──────────┘            └───────────┘
             │ reject
             ▼
        ┌──────────┐
        │ rejected │   (rejected and completed are terminal)
        └──────────┘

    Only the owner of the offer's listing may drive a transition.

Why status is a VARCHAR and not a native ENUM:
    Adding a state later is a code change plus a CHECK constraint swap instead
    of an ALTER TYPE migration. The CHECK keeps the column closed.
"""

import enum
import uuid
from datetime import datetime
from typing import Dict, FrozenSet, TYPE_CHECKING

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    String,
    Text,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from swapcycle.database import Base
from swapcycle.models.user import User, utcnow

if TYPE_CHECKING:
    from swapcycle.models.listing import Listing


class OfferStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    COMPLETED = "completed"


class OfferAction(str, enum.Enum):
    ACCEPT = "accept"
    REJECT = "reject"
    COMPLETE = "complete"

    @property
    def target_status(self) -> OfferStatus:
        return ACTION_TARGETS[self]


ACTION_TARGETS: Dict[OfferAction, OfferStatus] = {
    OfferAction.ACCEPT: OfferStatus.ACCEPTED,
    OfferAction.REJECT: OfferStatus.REJECTED,
    OfferAction.COMPLETE: OfferStatus.COMPLETED,
}

# Forward-only: nothing returns to pending, nothing leaves a terminal state
ALLOWED_TRANSITIONS: Dict[OfferStatus, FrozenSet[OfferStatus]] = {
    OfferStatus.PENDING: frozenset({OfferStatus.ACCEPTED, OfferStatus.REJECTED}),
    OfferStatus.ACCEPTED: frozenset({OfferStatus.COMPLETED}),
    OfferStatus.REJECTED: frozenset(),
    OfferStatus.COMPLETED: frozenset(),
}


def can_transition(current: OfferStatus, target: OfferStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


class SwapOffer(Base):
    """A proposal by one user to swap for another user's listing."""

    __tablename__ = "swap_offers"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    listing_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("listings.id"),
        nullable=False,
        index=True,
    )

    proposer_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )

    offered_text: Mapped[str | None] = mapped_column(Text, nullable=True)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=OfferStatus.PENDING.value,
        server_default=text("'pending'"),
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    # Refreshed explicitly by OfferService.act as well as on any ORM update
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    listing: Mapped["Listing"] = relationship(back_populates="offers")
    proposer: Mapped[User] = relationship(User)

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'accepted', 'rejected', 'completed')",
            name="ck_swap_offers_status",
        ),
    )

    def __repr__(self) -> str:
        return f"<SwapOffer(id={self.id}, listing_id={self.listing_id}, status='{self.status}')>"
