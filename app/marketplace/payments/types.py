from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from uuid import UUID


@dataclass(slots=True)
class OrderCreateResult:
    transaction_id: UUID
    gateway_order_id: str
    amount: Decimal
    amount_minor: int
    currency: str
    key_id: str


@dataclass(slots=True)
class VerifyResult:
    transaction_id: UUID
    status: str
    idempotent_replay: bool
    listing_id: UUID | None = None
    fulfillment_status: str | None = None


@dataclass(slots=True)
class TransactionStatusResult:
    transaction_id: UUID
    gateway_order_id: str
    status: str
    amount: Decimal
    currency: str
    package_id: UUID
    listing_id: UUID | None
    fulfillment_status: str
    paid_at: datetime | None


@dataclass(slots=True)
class WebhookResult:
    event: str
    outcome: str
    transaction_id: UUID | None = None
