from app.marketplace.coupons.service import CouponService

__all__ = ["CouponService"]
