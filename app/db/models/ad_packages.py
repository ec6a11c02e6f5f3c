from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, CheckConstraint, Index, Integer, Numeric, String, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base, JSONType, UTCDateTime


class AdPackage(Base):
    __tablename__ = "ad_packages"
    __table_args__ = (
        CheckConstraint(
            "package_type IN ('basic','featured','premium')",
            name="ck_ad_packages_type",
        ),
        CheckConstraint("category IN ('property','general')", name="ck_ad_packages_category"),
        CheckConstraint("location IN ('rohtak','all')", name="ck_ad_packages_location"),
        CheckConstraint("price >= 0", name="ck_ad_packages_price_non_negative"),
        CheckConstraint("duration_days > 0", name="ck_ad_packages_duration_positive"),
        Index("idx_ad_packages_active_type_price", "is_active", "package_type", "price"),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    code: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    package_type: Mapped[str] = mapped_column(String(16), nullable=False)
    category: Mapped[str] = mapped_column(String(16), nullable=False)
    location: Mapped[str] = mapped_column(String(16), nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    duration_days: Mapped[int] = mapped_column(Integer, nullable=False)
    features: Mapped[list[str]] = mapped_column(JSONType, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("true"))
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
