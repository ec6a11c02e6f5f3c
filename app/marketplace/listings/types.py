from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from uuid import UUID


@dataclass(slots=True)
class ListingContent:
    title: str
    description: str
    price: Decimal
    price_type: str
    property_type: str
    location: dict[str, object]
    contact_info: dict[str, object]
    sub_category: str | None = None
    specifications: dict[str, object] = field(default_factory=dict)
    amenities: list[str] = field(default_factory=list)
    owner_type: str = "seller"


@dataclass(slots=True)
class ModerationResult:
    listing_id: UUID
    decision: str
    previous_state: str
    state: str
    lifecycle_status: str
    approval_status: str


@dataclass(slots=True)
class PackageApplyResult:
    listing_id: UUID
    applied: bool
    state: str
    payment_status: str
