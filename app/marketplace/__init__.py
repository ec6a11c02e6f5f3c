from app.marketplace.coupons import CouponService
from app.marketplace.listings import ListingService
from app.marketplace.moderation import ModerationService
from app.marketplace.packages import PackageCatalog
from app.marketplace.payments import PaymentService

__all__ = [
    "CouponService",
    "ListingService",
    "ModerationService",
    "PackageCatalog",
    "PaymentService",
]
