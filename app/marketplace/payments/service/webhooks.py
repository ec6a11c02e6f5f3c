from __future__ import annotations

import json
from datetime import datetime
from typing import Any

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.repo.transactions_repo import TransactionsRepo
from app.marketplace.listings.service import ListingService
from app.marketplace.payments.errors import (
    PaymentSignatureError,
    PaymentStorageError,
    PaymentWebhookPayloadError,
    TransactionNotFoundError,
)
from app.marketplace.payments.types import WebhookResult
from app.services.payment_signatures import is_valid_webhook_signature

from .settlement import settle_paid_order

logger = structlog.get_logger("app.marketplace.payments")

SETTLEMENT_EVENTS = frozenset({"payment.captured", "order.paid"})
FAILURE_EVENTS = frozenset({"payment.failed"})
FAILURE_REASON_MAX_LENGTH = 256


def _entity(payload: dict[str, Any], name: str) -> dict[str, Any]:
    wrapper = payload.get("payload")
    if not isinstance(wrapper, dict):
        return {}
    section = wrapper.get(name)
    if not isinstance(section, dict):
        return {}
    entity = section.get("entity")
    return entity if isinstance(entity, dict) else {}


def _parse_event(raw_body: bytes) -> tuple[str, str, str | None, str | None]:
    try:
        payload = json.loads(raw_body)
    except ValueError as exc:
        raise PaymentWebhookPayloadError from exc
    if not isinstance(payload, dict) or not isinstance(payload.get("event"), str):
        raise PaymentWebhookPayloadError

    payment = _entity(payload, "payment")
    order = _entity(payload, "order")
    order_id = payment.get("order_id") or order.get("id")
    payment_id = payment.get("id")
    if not isinstance(order_id, str) or not order_id:
        raise PaymentWebhookPayloadError
    failure_reason = payment.get("error_description")
    return (
        payload["event"],
        order_id,
        payment_id if isinstance(payment_id, str) and payment_id else None,
        str(failure_reason)[:FAILURE_REASON_MAX_LENGTH] if failure_reason else None,
    )


async def _mark_order_failed(
    session: AsyncSession,
    *,
    gateway_order_id: str,
    failure_reason: str | None,
    now_utc: datetime,
) -> WebhookResult:
    transaction = await TransactionsRepo.get_by_gateway_order_id(session, gateway_order_id)
    if transaction is None:
        raise TransactionNotFoundError

    updated = await TransactionsRepo.mark_failed_if_pending(
        session,
        gateway_order_id=gateway_order_id,
        failure_reason=failure_reason,
        now_utc=now_utc,
    )
    if updated == 0:
        return WebhookResult(event="payment.failed", outcome="ignored", transaction_id=transaction.id)

    if transaction.listing_id is not None:
        await ListingService.mark_payment_failed(
            session,
            listing_id=transaction.listing_id,
            now_utc=now_utc,
        )
    logger.info(
        "payment_marked_failed",
        transaction_id=str(transaction.id),
        gateway_order_id=gateway_order_id,
        failure_reason=failure_reason,
    )
    return WebhookResult(event="payment.failed", outcome="processed", transaction_id=transaction.id)


async def handle_webhook(
    session: AsyncSession,
    *,
    raw_body: bytes,
    signature: str | None,
    webhook_secret: str,
    now_utc: datetime,
) -> WebhookResult:
    if not is_valid_webhook_signature(
        body=raw_body,
        signature=signature,
        webhook_secret=webhook_secret,
    ):
        logger.warning("payment_webhook_signature_mismatch", body_size=len(raw_body))
        raise PaymentSignatureError

    event, gateway_order_id, gateway_payment_id, failure_reason = _parse_event(raw_body)
    if event not in SETTLEMENT_EVENTS and event not in FAILURE_EVENTS:
        logger.info("payment_webhook_ignored", webhook_event=event)
        return WebhookResult(event=event, outcome="ignored")

    try:
        if event in FAILURE_EVENTS:
            return await _mark_order_failed(
                session,
                gateway_order_id=gateway_order_id,
                failure_reason=failure_reason,
                now_utc=now_utc,
            )

        if gateway_payment_id is None:
            raise PaymentWebhookPayloadError
        result = await settle_paid_order(
            session,
            gateway_order_id=gateway_order_id,
            gateway_payment_id=gateway_payment_id,
            signature=None,
            now_utc=now_utc,
        )
    except TransactionNotFoundError:
        logger.warning(
            "payment_webhook_unknown_order",
            webhook_event=event,
            gateway_order_id=gateway_order_id,
        )
        return WebhookResult(event=event, outcome="ignored")
    except SQLAlchemyError as exc:
        logger.exception("payment_webhook_storage_failed", gateway_order_id=gateway_order_id)
        raise PaymentStorageError from exc

    return WebhookResult(
        event=event,
        outcome="replay" if result.idempotent_replay else "processed",
        transaction_id=result.transaction_id,
    )
