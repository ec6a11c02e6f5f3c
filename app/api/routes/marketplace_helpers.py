from __future__ import annotations

from datetime import datetime

from app.db.models.ad_packages import AdPackage
from app.db.models.coupons import Coupon
from app.db.models.listing_moderation_events import ListingModerationEvent
from app.db.models.listings import Listing

from .marketplace_models import (
    CouponResponse,
    ListingResponse,
    ModerationEventResponse,
    PackageResponse,
)


def _listing_as_response(listing: Listing, *, now_utc: datetime) -> ListingResponse:
    return ListingResponse(
        id=listing.id,
        owner_id=listing.owner_id,
        title=listing.title,
        description=listing.description,
        price=listing.price,
        price_type=listing.price_type,
        property_type=listing.property_type,
        sub_category=listing.sub_category,
        location=listing.location,
        specifications=listing.specifications,
        amenities=listing.amenities,
        contact_info=listing.contact_info,
        state=listing.state,
        lifecycle_status=listing.lifecycle_status,
        approval_status=listing.approval_status,
        is_approved=listing.is_approved,
        payment_status=listing.payment_status,
        package_id=listing.package_id,
        package_snapshot=listing.package_snapshot,
        package_expiry=listing.package_expiry,
        has_active_package=listing.has_active_package(now_utc),
        featured=listing.featured,
        rejection_reason=listing.rejection_reason,
        admin_comments=listing.admin_comments,
        approved_at=listing.approved_at,
        rejected_at=listing.rejected_at,
        created_at=listing.created_at,
        updated_at=listing.updated_at,
    )


def _package_as_response(package: AdPackage) -> PackageResponse:
    return PackageResponse(
        id=package.id,
        code=package.code,
        name=package.name,
        description=package.description,
        package_type=package.package_type,
        category=package.category,
        location=package.location,
        price=package.price,
        duration_days=package.duration_days,
        features=list(package.features or []),
    )


def _coupon_as_response(coupon: Coupon) -> CouponResponse:
    return CouponResponse(
        id=coupon.id,
        code=coupon.code,
        description=coupon.description,
        discount_type=coupon.discount_type,
        discount_value=coupon.discount_value,
        min_purchase_amount=coupon.min_purchase_amount,
        max_discount_amount=coupon.max_discount_amount,
        valid_from=coupon.valid_from,
        valid_until=coupon.valid_until,
        usage_limit=coupon.usage_limit,
        used_count=coupon.used_count,
        applicable_for=coupon.applicable_for,
        package_ids=list(coupon.package_ids or []),
        is_active=coupon.is_active,
        created_by=coupon.created_by,
        created_at=coupon.created_at,
    )


def _event_as_response(event: ListingModerationEvent) -> ModerationEventResponse:
    return ModerationEventResponse(
        id=event.id,
        decision=event.decision,
        actor_id=event.actor_id,
        previous_state=event.previous_state,
        next_state=event.next_state,
        comment=event.comment,
        rejection_reason=event.rejection_reason,
        created_at=event.created_at,
    )
