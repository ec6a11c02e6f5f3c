from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import CheckConstraint, ForeignKey, Index, Numeric, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base, UTCDateTime


class CouponUsage(Base):
    __tablename__ = "coupon_usages"
    __table_args__ = (
        UniqueConstraint("coupon_id", "user_id", name="uq_coupon_usages_coupon_user"),
        CheckConstraint("discount_amount >= 0", name="ck_coupon_usages_discount_non_negative"),
        Index("idx_coupon_usages_user", "user_id"),
        Index("idx_coupon_usages_transaction", "transaction_id"),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    coupon_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("coupons.id"), nullable=False)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    transaction_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("transactions.id"), nullable=False)
    discount_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    used_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
