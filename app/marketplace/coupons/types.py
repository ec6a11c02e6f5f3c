from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID


@dataclass(slots=True)
class CouponPreviewResult:
    coupon_id: UUID
    code: str
    discount_amount: Decimal
    final_amount: Decimal


@dataclass(slots=True)
class CouponCommitResult:
    coupon_id: UUID
    usage_id: UUID
    transaction_id: UUID
    discount_amount: Decimal
    final_amount: Decimal
