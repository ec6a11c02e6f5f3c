from __future__ import annotations

from datetime import datetime
from uuid import UUID

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.transactions import Transaction
from app.db.repo.packages_repo import PackagesRepo
from app.db.repo.transactions_repo import TransactionsRepo
from app.marketplace.errors import MarketplaceError
from app.marketplace.listings.service import ListingService
from app.marketplace.packages.errors import PackageNotFoundError
from app.marketplace.packages.service import PackageCatalog

logger = structlog.get_logger("app.marketplace.payments")


async def _apply_to_listing(
    session: AsyncSession,
    *,
    transaction: Transaction,
    now_utc: datetime,
) -> None:
    if transaction.listing_id is None:
        return
    # Inactive packages still back purchases that were already paid for.
    package = await PackagesRepo.get_by_id(session, transaction.package_id)
    if package is None:
        raise PackageNotFoundError
    # Catalog edits after the order was opened must not change what was bought.
    snapshot = PackageCatalog.build_snapshot(
        package,
        purchased_at=transaction.paid_at or now_utc,
        name=transaction.package_name,
        price=transaction.amount,
        duration_days=transaction.package_duration_days,
    )
    await ListingService.apply_package_purchase(
        session,
        listing_id=transaction.listing_id,
        transaction=transaction,
        package_snapshot=snapshot,
        now_utc=now_utc,
    )


async def fulfill_transaction(
    session: AsyncSession,
    *,
    transaction: Transaction,
    now_utc: datetime,
) -> str:
    """Apply a paid transaction's package to its listing inside a savepoint.

    A failure leaves the payment paid and the fulfillment PENDING for the
    reconciliation job. Returns the resulting fulfillment status.
    """
    if transaction.listing_id is None:
        return transaction.fulfillment_status

    transaction_id = transaction.id
    gateway_order_id = transaction.gateway_order_id
    listing_id = transaction.listing_id
    try:
        async with session.begin_nested():
            await _apply_to_listing(session, transaction=transaction, now_utc=now_utc)
    except (MarketplaceError, SQLAlchemyError) as exc:
        await TransactionsRepo.set_fulfillment_status(
            session,
            transaction_id=transaction_id,
            fulfillment_status="PENDING",
            now_utc=now_utc,
            increment_attempts=True,
        )
        logger.error(
            "payment_fulfillment_failed",
            transaction_id=str(transaction_id),
            gateway_order_id=gateway_order_id,
            listing_id=str(listing_id),
            error_type=type(exc).__name__,
        )
        return "PENDING"

    await TransactionsRepo.set_fulfillment_status(
        session,
        transaction_id=transaction_id,
        fulfillment_status="APPLIED",
        now_utc=now_utc,
    )
    return "APPLIED"


async def retry_fulfillment(
    session: AsyncSession,
    *,
    transaction_id: UUID,
    max_attempts: int,
    now_utc: datetime,
) -> str:
    transaction = await TransactionsRepo.get_by_id_for_update(session, transaction_id)
    if transaction is None:
        return "MISSING"
    if transaction.status != "paid" or transaction.fulfillment_status != "PENDING":
        return transaction.fulfillment_status

    attempts = transaction.fulfillment_attempts + 1
    gateway_order_id = transaction.gateway_order_id
    listing_id = transaction.listing_id
    outcome = await fulfill_transaction(session, transaction=transaction, now_utc=now_utc)
    if outcome == "APPLIED":
        logger.info(
            "payment_fulfillment_recovered",
            transaction_id=str(transaction_id),
            listing_id=str(listing_id),
        )
        return outcome

    if attempts >= max_attempts:
        await TransactionsRepo.set_fulfillment_status(
            session,
            transaction_id=transaction_id,
            fulfillment_status="REVIEW",
            now_utc=now_utc,
        )
        logger.error(
            "payment_fulfillment_review_required",
            transaction_id=str(transaction_id),
            gateway_order_id=gateway_order_id,
            listing_id=str(listing_id),
            attempts=attempts,
        )
        return "REVIEW"
    return outcome
