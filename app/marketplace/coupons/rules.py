from __future__ import annotations

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from uuid import UUID

from app.db.models.coupons import Coupon

COUPON_DISCOUNT_TYPES = ("percentage", "fixed")
COUPON_APPLICABILITY = ("all", "specific_packages", "first_time_users")
MONEY_QUANT = Decimal("0.01")

REASON_NOT_IN_VALIDITY_WINDOW = "NOT_IN_VALIDITY_WINDOW"
REASON_FIRST_TIME_USERS_ONLY = "FIRST_TIME_USERS_ONLY"
REASON_MIN_PURCHASE_NOT_MET = "MIN_PURCHASE_NOT_MET"
REASON_PACKAGE_NOT_ELIGIBLE = "PACKAGE_NOT_ELIGIBLE"


def quantize_money(amount: Decimal) -> Decimal:
    return amount.quantize(MONEY_QUANT, rounding=ROUND_HALF_UP)


def compute_discount(
    *,
    discount_type: str,
    discount_value: Decimal,
    max_discount_amount: Decimal | None,
    purchase_amount: Decimal,
) -> Decimal:
    if discount_type == "percentage":
        discount = purchase_amount * discount_value / Decimal("100")
        if max_discount_amount is not None:
            discount = min(discount, max_discount_amount)
    else:
        discount = discount_value
    discount = min(discount, purchase_amount)
    return quantize_money(max(discount, Decimal("0")))


def is_within_validity_window(coupon: Coupon, *, now_utc: datetime) -> bool:
    return coupon.valid_from <= now_utc < coupon.valid_until


def has_usage_capacity(coupon: Coupon) -> bool:
    return coupon.usage_limit is None or coupon.used_count < coupon.usage_limit


def meets_min_purchase(coupon: Coupon, *, purchase_amount: Decimal) -> bool:
    return coupon.min_purchase_amount is None or purchase_amount >= coupon.min_purchase_amount


def is_package_eligible(coupon: Coupon, *, package_id: UUID | None) -> bool:
    if coupon.applicable_for != "specific_packages":
        return True
    if package_id is None:
        return False
    return str(package_id) in {str(item) for item in (coupon.package_ids or [])}
