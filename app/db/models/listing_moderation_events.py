from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import CheckConstraint, ForeignKey, Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base, UTCDateTime


class ListingModerationEvent(Base):
    __tablename__ = "listing_moderation_events"
    __table_args__ = (
        CheckConstraint(
            "decision IN ('approve','reject')",
            name="ck_listing_moderation_events_decision",
        ),
        Index("idx_listing_moderation_events_listing_created", "listing_id", "created_at"),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    listing_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("listings.id"), nullable=False)
    decision: Mapped[str] = mapped_column(String(8), nullable=False)
    actor_id: Mapped[str] = mapped_column(String(64), nullable=False)
    previous_state: Mapped[str] = mapped_column(String(24), nullable=False)
    next_state: Mapped[str] = mapped_column(String(24), nullable=False)
    comment: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(String(512), nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
