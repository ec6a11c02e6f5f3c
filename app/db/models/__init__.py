from app.db.models.ad_packages import AdPackage
from app.db.models.coupon_usages import CouponUsage
from app.db.models.coupons import Coupon
from app.db.models.listing_moderation_events import ListingModerationEvent
from app.db.models.listings import Listing
from app.db.models.transactions import Transaction

__all__ = [
    "AdPackage",
    "Coupon",
    "CouponUsage",
    "Listing",
    "ListingModerationEvent",
    "Transaction",
]
