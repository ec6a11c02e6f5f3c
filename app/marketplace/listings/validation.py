from __future__ import annotations

from decimal import Decimal

from app.marketplace.listings.errors import ListingValidationError
from app.marketplace.listings.types import ListingContent

LISTING_PRICE_TYPES = ("sale", "rent")
LISTING_TITLE_MAX_LENGTH = 200
REQUIRED_LOCATION_KEYS = ("address",)
REQUIRED_CONTACT_KEYS = ("name", "phone")


def _is_blank(value: object) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def validate_listing_content(content: ListingContent) -> ListingContent:
    """Check required fields and return a trimmed copy of the content.

    Raises ``ListingValidationError`` naming the first offending field.
    """
    if _is_blank(content.title) or len(content.title.strip()) > LISTING_TITLE_MAX_LENGTH:
        raise ListingValidationError("title")
    if _is_blank(content.description):
        raise ListingValidationError("description")
    if content.price is None or not isinstance(content.price, Decimal) or content.price < 0:
        raise ListingValidationError("price")
    if content.price_type not in LISTING_PRICE_TYPES:
        raise ListingValidationError("priceType")
    if _is_blank(content.property_type):
        raise ListingValidationError("propertyType")
    if not isinstance(content.location, dict):
        raise ListingValidationError("location")
    for key in REQUIRED_LOCATION_KEYS:
        if _is_blank(content.location.get(key)):
            raise ListingValidationError(f"location.{key}")
    if not isinstance(content.contact_info, dict):
        raise ListingValidationError("contactInfo")
    for key in REQUIRED_CONTACT_KEYS:
        if _is_blank(content.contact_info.get(key)):
            raise ListingValidationError(f"contactInfo.{key}")

    return ListingContent(
        title=content.title.strip(),
        description=content.description.strip(),
        price=content.price.quantize(Decimal("0.01")),
        price_type=content.price_type,
        property_type=content.property_type.strip(),
        location=dict(content.location),
        contact_info=dict(content.contact_info),
        sub_category=(content.sub_category or "").strip() or None,
        specifications=dict(content.specifications or {}),
        amenities=[str(item) for item in (content.amenities or [])],
        owner_type=content.owner_type,
    )
