from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, Numeric, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base, UTCDateTime

TRANSACTION_STATUSES = ("pending", "paid", "failed")
FULFILLMENT_STATUSES = ("NOT_REQUIRED", "PENDING", "APPLIED", "REVIEW")


class Transaction(Base):
    __tablename__ = "transactions"
    __table_args__ = (
        CheckConstraint(
            "status IN ('pending','paid','failed')",
            name="ck_transactions_status",
        ),
        CheckConstraint(
            "fulfillment_status IN ('NOT_REQUIRED','PENDING','APPLIED','REVIEW')",
            name="ck_transactions_fulfillment_status",
        ),
        CheckConstraint("amount > 0", name="ck_transactions_amount_positive"),
        CheckConstraint(
            "status <> 'paid' OR gateway_payment_id IS NOT NULL",
            name="ck_transactions_paid_has_payment_id",
        ),
        Index("idx_transactions_user_status", "user_id", "status"),
        Index("idx_transactions_listing", "listing_id"),
        Index("idx_transactions_fulfillment_paid_at", "fulfillment_status", "paid_at"),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    package_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("ad_packages.id"), nullable=False)
    listing_id: Mapped[UUID | None] = mapped_column(Uuid, ForeignKey("listings.id"), nullable=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    gateway: Mapped[str] = mapped_column(String(16), nullable=False, server_default=text("'razorpay'"))
    gateway_order_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    gateway_payment_id: Mapped[str | None] = mapped_column(String(64), unique=True, nullable=True)
    gateway_signature: Mapped[str | None] = mapped_column(String(128), nullable=True)
    status: Mapped[str] = mapped_column(String(8), nullable=False)
    package_name: Mapped[str] = mapped_column(String(128), nullable=False)
    package_duration_days: Mapped[int] = mapped_column(Integer, nullable=False)
    failure_reason: Mapped[str | None] = mapped_column(String(256), nullable=True)
    fulfillment_status: Mapped[str] = mapped_column(String(16), nullable=False)
    fulfillment_attempts: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    paid_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
