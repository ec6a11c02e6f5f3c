from __future__ import annotations

from datetime import datetime, timezone

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.exc import SQLAlchemyError

from app.core.config import get_settings
from app.db.session import SessionLocal
from app.marketplace.listings.errors import ListingNotFoundError
from app.marketplace.packages.errors import PackageNotFoundError
from app.marketplace.payments.errors import (
    PaymentGatewayError,
    PaymentInvalidAmountError,
    PaymentPackageMismatchError,
    PaymentSignatureError,
    PaymentStorageError,
    PaymentWebhookPayloadError,
    TransactionNotFoundError,
)
from app.marketplace.payments.service import PaymentService
from app.services.caller_identity import CallerIdentity, resolve_caller
from app.services.razorpay_client import build_razorpay_client

from .marketplace_models import (
    PaymentOrderRequest,
    PaymentOrderResponse,
    PaymentStatusResponse,
    PaymentVerifyRequest,
    PaymentVerifyResponse,
    PaymentWebhookResponse,
)

router = APIRouter(prefix="/payments", tags=["payments"])
logger = structlog.get_logger(__name__)

WEBHOOK_SIGNATURE_HEADER = "X-Razorpay-Signature"


@router.post("/orders")
async def create_payment_order(
    payload: PaymentOrderRequest,
    caller: CallerIdentity = Depends(resolve_caller),
) -> PaymentOrderResponse:
    settings = get_settings()
    now_utc = datetime.now(timezone.utc)
    try:
        async with SessionLocal.begin() as session:
            result = await PaymentService.create_order(
                session,
                user_id=caller.user_id,
                package_id=payload.package_id,
                listing_id=payload.listing_id,
                gateway=build_razorpay_client(settings),
                currency=settings.payment_currency,
                now_utc=now_utc,
            )
    except PaymentInvalidAmountError as exc:
        raise HTTPException(status_code=400, detail={"code": "E_PAYMENT_INVALID_AMOUNT"}) from exc
    except PaymentPackageMismatchError as exc:
        raise HTTPException(status_code=409, detail={"code": "E_PAYMENT_PACKAGE_MISMATCH"}) from exc
    except PackageNotFoundError as exc:
        raise HTTPException(status_code=404, detail={"code": "E_PACKAGE_NOT_FOUND"}) from exc
    except ListingNotFoundError as exc:
        raise HTTPException(status_code=404, detail={"code": "E_LISTING_NOT_FOUND"}) from exc
    except PaymentGatewayError as exc:
        raise HTTPException(
            status_code=503,
            detail={"code": "E_PAYMENT_GATEWAY_UNAVAILABLE"},
        ) from exc

    return PaymentOrderResponse(
        transaction_id=result.transaction_id,
        gateway_order_id=result.gateway_order_id,
        amount=result.amount,
        amount_minor=result.amount_minor,
        currency=result.currency,
        key_id=result.key_id,
    )


@router.post("/verify")
async def verify_payment(
    payload: PaymentVerifyRequest,
    caller: CallerIdentity = Depends(resolve_caller),
) -> PaymentVerifyResponse:
    settings = get_settings()
    now_utc = datetime.now(timezone.utc)
    try:
        async with SessionLocal.begin() as session:
            result = await PaymentService.verify(
                session,
                gateway_order_id=payload.gateway_order_id,
                gateway_payment_id=payload.gateway_payment_id,
                signature=payload.signature,
                key_secret=settings.razorpay_key_secret,
                now_utc=now_utc,
            )
    except PaymentSignatureError as exc:
        raise HTTPException(
            status_code=400,
            detail={"code": "E_PAYMENT_SIGNATURE_MISMATCH"},
        ) from exc
    except TransactionNotFoundError as exc:
        raise HTTPException(status_code=404, detail={"code": "E_TRANSACTION_NOT_FOUND"}) from exc
    except (PaymentStorageError, SQLAlchemyError) as exc:
        logger.warning(
            "payment_verify_retryable_failure",
            gateway_order_id=payload.gateway_order_id,
            caller_id=caller.user_id,
            error_type=type(exc).__name__,
        )
        raise HTTPException(
            status_code=503,
            detail={"code": "E_PAYMENT_TEMPORARILY_UNAVAILABLE"},
        ) from exc

    return PaymentVerifyResponse(
        transaction_id=result.transaction_id,
        status=result.status,
        idempotent_replay=result.idempotent_replay,
        fulfillment_status=result.fulfillment_status,
    )


@router.get("/orders/{gateway_order_id}/status")
async def get_payment_status(
    gateway_order_id: str,
    caller: CallerIdentity = Depends(resolve_caller),
) -> PaymentStatusResponse:
    try:
        async with SessionLocal() as session:
            result = await PaymentService.get_status(
                session,
                gateway_order_id=gateway_order_id,
                user_id=None if caller.is_admin else caller.user_id,
            )
    except TransactionNotFoundError as exc:
        raise HTTPException(status_code=404, detail={"code": "E_TRANSACTION_NOT_FOUND"}) from exc

    return PaymentStatusResponse(
        transaction_id=result.transaction_id,
        gateway_order_id=result.gateway_order_id,
        status=result.status,
        amount=result.amount,
        currency=result.currency,
        package_id=result.package_id,
        listing_id=result.listing_id,
        fulfillment_status=result.fulfillment_status,
        paid_at=result.paid_at,
    )


@router.post("/webhook")
async def payment_webhook(request: Request) -> PaymentWebhookResponse:
    settings = get_settings()
    raw_body = await request.body()
    now_utc = datetime.now(timezone.utc)
    try:
        async with SessionLocal.begin() as session:
            result = await PaymentService.handle_webhook(
                session,
                raw_body=raw_body,
                signature=request.headers.get(WEBHOOK_SIGNATURE_HEADER),
                webhook_secret=settings.razorpay_webhook_secret,
                now_utc=now_utc,
            )
    except PaymentSignatureError as exc:
        raise HTTPException(
            status_code=400,
            detail={"code": "E_WEBHOOK_SIGNATURE_MISMATCH"},
        ) from exc
    except PaymentWebhookPayloadError as exc:
        raise HTTPException(status_code=400, detail={"code": "E_WEBHOOK_PAYLOAD_INVALID"}) from exc
    except (PaymentStorageError, SQLAlchemyError) as exc:
        raise HTTPException(
            status_code=503,
            detail={"code": "E_PAYMENT_TEMPORARILY_UNAVAILABLE"},
        ) from exc

    return PaymentWebhookResponse(status=result.outcome, event=result.event)
