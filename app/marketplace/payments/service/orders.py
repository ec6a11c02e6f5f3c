from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.transactions import Transaction
from app.db.repo.listings_repo import ListingsRepo
from app.db.repo.transactions_repo import TransactionsRepo
from app.marketplace.listings.errors import ListingNotFoundError
from app.marketplace.packages.service import PackageCatalog
from app.marketplace.payments.errors import (
    PaymentGatewayError,
    PaymentInvalidAmountError,
    PaymentPackageMismatchError,
)
from app.marketplace.payments.types import OrderCreateResult
from app.services.razorpay_client import PaymentGateway, RazorpayClientError

from .amounts import to_minor_units

logger = structlog.get_logger("app.marketplace.payments")


async def create_order(
    session: AsyncSession,
    *,
    user_id: str,
    package_id: UUID,
    gateway: PaymentGateway,
    currency: str,
    now_utc: datetime,
    listing_id: UUID | None = None,
) -> OrderCreateResult:
    package = await PackageCatalog.get_by_id(session, package_id)
    if package.price <= 0:
        raise PaymentInvalidAmountError

    if listing_id is not None:
        listing = await ListingsRepo.get_by_id(session, listing_id)
        if listing is None or listing.owner_id != user_id:
            raise ListingNotFoundError
        # A listing still awaiting payment is paid with the package chosen at submit.
        if listing.state == "AWAITING_PAYMENT" and listing.package_id != package.id:
            logger.warning(
                "payment_order_package_mismatch",
                user_id=user_id,
                listing_id=str(listing_id),
                selected_package_id=str(listing.package_id),
                requested_package_id=str(package.id),
            )
            raise PaymentPackageMismatchError

    transaction_id = uuid4()
    amount_minor = to_minor_units(package.price)
    try:
        order = await gateway.create_order(
            amount_minor=amount_minor,
            currency=currency,
            receipt=f"txn_{transaction_id.hex[:24]}",
            notes={
                "transaction_id": str(transaction_id),
                "package_id": str(package.id),
                "listing_id": str(listing_id) if listing_id else "",
            },
        )
    except RazorpayClientError as exc:
        logger.warning(
            "payment_order_gateway_failed",
            user_id=user_id,
            package_id=str(package.id),
            error=str(exc),
        )
        raise PaymentGatewayError from exc

    # Persisted before returning so a lost response still leaves a traceable order.
    await TransactionsRepo.create(
        session,
        transaction=Transaction(
            id=transaction_id,
            user_id=user_id,
            package_id=package.id,
            listing_id=listing_id,
            amount=package.price,
            currency=currency,
            gateway="razorpay",
            gateway_order_id=order.order_id,
            status="pending",
            package_name=package.name,
            package_duration_days=package.duration_days,
            fulfillment_status="PENDING" if listing_id is not None else "NOT_REQUIRED",
            fulfillment_attempts=0,
            created_at=now_utc,
            updated_at=now_utc,
        ),
    )
    logger.info(
        "payment_order_created",
        transaction_id=str(transaction_id),
        gateway_order_id=order.order_id,
        user_id=user_id,
        package_id=str(package.id),
        listing_id=str(listing_id) if listing_id else None,
        amount=str(package.price),
        amount_minor=amount_minor,
    )
    return OrderCreateResult(
        transaction_id=transaction_id,
        gateway_order_id=order.order_id,
        amount=package.price,
        amount_minor=amount_minor,
        currency=currency,
        key_id=gateway.key_id,
    )
