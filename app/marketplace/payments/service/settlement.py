from __future__ import annotations

from datetime import datetime

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.repo.transactions_repo import TransactionsRepo
from app.marketplace.payments.errors import (
    PaymentSignatureError,
    PaymentStorageError,
    TransactionNotFoundError,
)
from app.marketplace.payments.types import TransactionStatusResult, VerifyResult
from app.services.payment_signatures import is_valid_payment_signature

from .fulfillment import fulfill_transaction

logger = structlog.get_logger("app.marketplace.payments")


async def settle_paid_order(
    session: AsyncSession,
    *,
    gateway_order_id: str,
    gateway_payment_id: str,
    signature: str | None,
    now_utc: datetime,
) -> VerifyResult:
    transaction = await TransactionsRepo.get_by_gateway_order_id(session, gateway_order_id)
    if transaction is None:
        raise TransactionNotFoundError

    fulfillment_status = "PENDING" if transaction.listing_id is not None else "NOT_REQUIRED"
    updated = await TransactionsRepo.mark_paid_if_open(
        session,
        gateway_order_id=gateway_order_id,
        gateway_payment_id=gateway_payment_id,
        gateway_signature=signature,
        fulfillment_status=fulfillment_status,
        now_utc=now_utc,
    )
    transaction = await TransactionsRepo.get_by_gateway_order_id(session, gateway_order_id)
    if transaction is None:
        raise TransactionNotFoundError

    if updated == 0:
        if transaction.status != "paid":
            raise PaymentStorageError
        if transaction.gateway_payment_id != gateway_payment_id:
            logger.warning(
                "payment_duplicate_capture",
                transaction_id=str(transaction.id),
                gateway_order_id=gateway_order_id,
                gateway_payment_id=gateway_payment_id,
                settled_payment_id=transaction.gateway_payment_id,
            )
        return VerifyResult(
            transaction_id=transaction.id,
            status=transaction.status,
            idempotent_replay=True,
            listing_id=transaction.listing_id,
            fulfillment_status=transaction.fulfillment_status,
        )

    transaction_id = transaction.id
    listing_id = transaction.listing_id
    fulfillment_status = await fulfill_transaction(
        session,
        transaction=transaction,
        now_utc=now_utc,
    )
    logger.info(
        "payment_verified",
        transaction_id=str(transaction_id),
        gateway_order_id=gateway_order_id,
        gateway_payment_id=gateway_payment_id,
        listing_id=str(listing_id) if listing_id else None,
        fulfillment_status=fulfillment_status,
    )
    return VerifyResult(
        transaction_id=transaction_id,
        status="paid",
        idempotent_replay=False,
        listing_id=listing_id,
        fulfillment_status=fulfillment_status,
    )


async def verify_payment(
    session: AsyncSession,
    *,
    gateway_order_id: str,
    gateway_payment_id: str,
    signature: str,
    key_secret: str,
    now_utc: datetime,
) -> VerifyResult:
    if not is_valid_payment_signature(
        order_id=gateway_order_id,
        payment_id=gateway_payment_id,
        signature=signature,
        key_secret=key_secret,
    ):
        logger.warning(
            "payment_signature_mismatch",
            gateway_order_id=gateway_order_id,
            gateway_payment_id=gateway_payment_id,
        )
        raise PaymentSignatureError

    try:
        return await settle_paid_order(
            session,
            gateway_order_id=gateway_order_id,
            gateway_payment_id=gateway_payment_id,
            signature=signature,
            now_utc=now_utc,
        )
    except SQLAlchemyError as exc:
        logger.exception("payment_verify_storage_failed", gateway_order_id=gateway_order_id)
        raise PaymentStorageError from exc


async def get_status(
    session: AsyncSession,
    *,
    gateway_order_id: str,
    user_id: str | None = None,
) -> TransactionStatusResult:
    transaction = await TransactionsRepo.get_by_gateway_order_id(session, gateway_order_id)
    if transaction is None or (user_id is not None and transaction.user_id != user_id):
        raise TransactionNotFoundError
    return TransactionStatusResult(
        transaction_id=transaction.id,
        gateway_order_id=transaction.gateway_order_id,
        status=transaction.status,
        amount=transaction.amount,
        currency=transaction.currency,
        package_id=transaction.package_id,
        listing_id=transaction.listing_id,
        fulfillment_status=transaction.fulfillment_status,
        paid_at=transaction.paid_at,
    )
