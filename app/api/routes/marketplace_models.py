from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Literal
from uuid import UUID

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LocationPayload(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    address: str = Field(min_length=1, max_length=512)
    city: str | None = Field(default=None, max_length=128)
    state: str | None = Field(default=None, max_length=128)
    pincode: str | None = Field(default=None, max_length=16)


class ContactInfoPayload(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    name: str = Field(min_length=1, max_length=128)
    phone: str = Field(min_length=5, max_length=20)
    email: str | None = Field(default=None, max_length=254)


class ListingContentPayload(CamelModel):
    title: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1, max_length=5000)
    price: Decimal = Field(ge=0, max_digits=14, decimal_places=2)
    price_type: Literal["sale", "rent"]
    property_type: str = Field(min_length=1, max_length=32)
    sub_category: str | None = Field(default=None, max_length=32)
    location: LocationPayload
    specifications: dict[str, Any] = Field(default_factory=dict)
    amenities: list[str] = Field(default_factory=list, max_length=64)
    contact_info: ContactInfoPayload


class ListingSubmitRequest(CamelModel):
    content: ListingContentPayload
    package_id: UUID | None = None


class ListingSubmitResponse(CamelModel):
    listing_id: UUID
    lifecycle_status: str
    approval_status: str


class ListingResponse(CamelModel):
    id: UUID
    owner_id: str
    title: str
    description: str
    price: Decimal
    price_type: str
    property_type: str
    sub_category: str | None = None
    location: dict[str, Any]
    specifications: dict[str, Any]
    amenities: list[str]
    contact_info: dict[str, Any]
    state: str
    lifecycle_status: str
    approval_status: str
    is_approved: bool
    payment_status: str
    package_id: UUID | None = None
    package_snapshot: dict[str, Any] | None = None
    package_expiry: datetime | None = None
    has_active_package: bool
    featured: bool
    rejection_reason: str | None = None
    admin_comments: str | None = None
    approved_at: datetime | None = None
    rejected_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class ListingListResponse(CamelModel):
    listings: list[ListingResponse]


class PackageResponse(CamelModel):
    id: UUID
    code: str
    name: str
    description: str
    package_type: str
    category: str
    location: str
    price: Decimal
    duration_days: int
    features: list[str]


class PackageListResponse(CamelModel):
    packages: list[PackageResponse]


class PaymentOrderRequest(CamelModel):
    package_id: UUID
    listing_id: UUID | None = None


class PaymentOrderResponse(CamelModel):
    transaction_id: UUID
    gateway_order_id: str
    amount: Decimal
    amount_minor: int
    currency: str
    key_id: str


class PaymentVerifyRequest(CamelModel):
    gateway_order_id: str = Field(min_length=1, max_length=64)
    gateway_payment_id: str = Field(min_length=1, max_length=64)
    signature: str = Field(min_length=1, max_length=128)


class PaymentVerifyResponse(CamelModel):
    transaction_id: UUID
    status: str
    idempotent_replay: bool
    fulfillment_status: str | None = None


class PaymentStatusResponse(CamelModel):
    transaction_id: UUID
    gateway_order_id: str
    status: str
    amount: Decimal
    currency: str
    package_id: UUID
    listing_id: UUID | None = None
    fulfillment_status: str
    paid_at: datetime | None = None


class PaymentWebhookResponse(CamelModel):
    status: str
    event: str


class CouponPreviewRequest(CamelModel):
    code: str = Field(min_length=1, max_length=64)
    package_id: UUID | None = None
    purchase_amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)


class CouponPreviewResponse(CamelModel):
    coupon_id: UUID
    code: str
    discount_amount: Decimal
    final_amount: Decimal


class CouponCommitRequest(CamelModel):
    coupon_id: UUID
    transaction_id: UUID


class CouponCommitResponse(CamelModel):
    coupon_id: UUID
    usage_id: UUID
    transaction_id: UUID
    discount_amount: Decimal
    final_amount: Decimal


class ModerationRequest(CamelModel):
    decision: Literal["approve", "reject"]
    comment: str | None = Field(default=None, max_length=1024)
    rejection_reason: str | None = Field(default=None, max_length=512)


class ModerationResponse(CamelModel):
    listing_id: UUID
    decision: str
    previous_state: str
    state: str
    lifecycle_status: str
    approval_status: str


class ModerationEventResponse(CamelModel):
    id: UUID
    decision: str
    actor_id: str
    previous_state: str
    next_state: str
    comment: str | None = None
    rejection_reason: str | None = None
    created_at: datetime


class ModerationEventListResponse(CamelModel):
    events: list[ModerationEventResponse]


class CouponCreateRequest(CamelModel):
    code: str = Field(min_length=3, max_length=64)
    description: str = Field(min_length=1, max_length=256)
    discount_type: Literal["percentage", "fixed"]
    discount_value: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    min_purchase_amount: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    max_discount_amount: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    valid_from: AwareDatetime
    valid_until: AwareDatetime
    usage_limit: int | None = Field(default=None, gt=0)
    applicable_for: Literal["all", "specific_packages", "first_time_users"] = "all"
    package_ids: list[UUID] = Field(default_factory=list, max_length=64)
    is_active: bool = True


class CouponUpdateRequest(CamelModel):
    """Partial edit; omitted fields keep their stored values."""

    code: str | None = Field(default=None, min_length=3, max_length=64)
    description: str | None = Field(default=None, min_length=1, max_length=256)
    discount_type: Literal["percentage", "fixed"] | None = None
    discount_value: Decimal | None = Field(default=None, gt=0, max_digits=12, decimal_places=2)
    min_purchase_amount: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    max_discount_amount: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    valid_from: AwareDatetime | None = None
    valid_until: AwareDatetime | None = None
    usage_limit: int | None = Field(default=None, gt=0)
    applicable_for: Literal["all", "specific_packages", "first_time_users"] | None = None
    package_ids: list[UUID] | None = Field(default=None, max_length=64)
    is_active: bool | None = None


class CouponStatusRequest(CamelModel):
    is_active: bool


class CouponResponse(CamelModel):
    id: UUID
    code: str
    description: str
    discount_type: str
    discount_value: Decimal
    min_purchase_amount: Decimal | None = None
    max_discount_amount: Decimal | None = None
    valid_from: datetime
    valid_until: datetime
    usage_limit: int | None = None
    used_count: int
    applicable_for: str
    package_ids: list[str]
    is_active: bool
    created_by: str
    created_at: datetime


class CouponListResponse(CamelModel):
    coupons: list[CouponResponse]
