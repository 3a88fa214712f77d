"""
SwapCycle Backend — Rating SQLAlchemy Model
=============================================

What:  ORM model for the `ratings` table: a 1..5 score plus optional comment
       from one user about another, optionally tied to a listing.
Note:  Ratings are recorded but never read back into any computation. The only
       code that touches this table besides migrations is
       ListingService.delete_listing, which detaches ratings from a listing
       before the listing row is removed.
"""

import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from swapcycle.database import Base
from swapcycle.models.user import utcnow

MIN_SCORE = 1
MAX_SCORE = 5


class Rating(Base):
    __tablename__ = "ratings"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    rater_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id"), nullable=False)
    ratee_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=False, index=True
    )
    listing_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("listings.id"), nullable=True, index=True
    )

    score: Mapped[int] = mapped_column(Integer, nullable=False)
    comment: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        CheckConstraint(
            f"score BETWEEN {MIN_SCORE} AND {MAX_SCORE}",
            name="ck_ratings_score_range",
        ),
    )
