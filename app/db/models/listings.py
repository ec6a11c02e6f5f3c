from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, CheckConstraint, Index, Numeric, String, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base, JSONType, UTCDateTime

LISTING_STATES = ("AWAITING_PAYMENT", "PENDING_REVIEW", "APPROVED", "REJECTED")
LISTING_PENDING_STATES = ("AWAITING_PAYMENT", "PENDING_REVIEW")
LISTING_TERMINAL_STATES = ("APPROVED", "REJECTED")


class Listing(Base):
    __tablename__ = "listings"
    __table_args__ = (
        CheckConstraint(
            "state IN ('AWAITING_PAYMENT','PENDING_REVIEW','APPROVED','REJECTED')",
            name="ck_listings_state",
        ),
        CheckConstraint(
            "payment_status IN ('unpaid','paid','failed')",
            name="ck_listings_payment_status",
        ),
        CheckConstraint("price_type IN ('sale','rent')", name="ck_listings_price_type"),
        CheckConstraint("price >= 0", name="ck_listings_price_non_negative"),
        CheckConstraint(
            "state <> 'APPROVED' OR package_id IS NULL OR payment_status = 'paid'",
            name="ck_listings_paid_package_before_approval",
        ),
        Index("idx_listings_owner_created", "owner_id", "created_at"),
        Index("idx_listings_state_created", "state", "created_at"),
        Index("idx_listings_gateway_order", "gateway_order_id"),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    owner_id: Mapped[str] = mapped_column(String(64), nullable=False)
    owner_type: Mapped[str] = mapped_column(String(16), nullable=False, server_default=text("'seller'"))

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    price_type: Mapped[str] = mapped_column(String(8), nullable=False)
    property_type: Mapped[str] = mapped_column(String(32), nullable=False)
    sub_category: Mapped[str | None] = mapped_column(String(32), nullable=True)
    location: Mapped[dict[str, object]] = mapped_column(JSONType, nullable=False)
    specifications: Mapped[dict[str, object]] = mapped_column(JSONType, nullable=False)
    amenities: Mapped[list[str]] = mapped_column(JSONType, nullable=False)
    contact_info: Mapped[dict[str, object]] = mapped_column(JSONType, nullable=False)

    state: Mapped[str] = mapped_column(String(24), nullable=False)
    payment_status: Mapped[str] = mapped_column(String(8), nullable=False, server_default=text("'unpaid'"))

    package_id: Mapped[UUID | None] = mapped_column(Uuid, nullable=True)
    package_snapshot: Mapped[dict[str, object] | None] = mapped_column(JSONType, nullable=True)
    package_expiry: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    featured: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("false"))
    paid_amount: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    paid_currency: Mapped[str | None] = mapped_column(String(3), nullable=True)
    gateway_order_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    gateway_payment_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    last_payment_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)

    approved_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    approved_by: Mapped[str | None] = mapped_column(String(64), nullable=True)
    rejected_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    rejected_by: Mapped[str | None] = mapped_column(String(64), nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(String(512), nullable=True)
    admin_comments: Mapped[str | None] = mapped_column(String(1024), nullable=True)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)

    @property
    def lifecycle_status(self) -> str:
        return "active" if self.state == "APPROVED" else "inactive"

    @property
    def approval_status(self) -> str:
        if self.state == "APPROVED":
            return "approved"
        if self.state == "REJECTED":
            return "rejected"
        if self.package_id is not None:
            return "pending_payment_approval"
        return "pending"

    @property
    def is_approved(self) -> bool:
        return self.approval_status == "approved"

    def has_active_package(self, now_utc: datetime) -> bool:
        if self.payment_status != "paid" or self.package_expiry is None:
            return False
        return now_utc < self.package_expiry
