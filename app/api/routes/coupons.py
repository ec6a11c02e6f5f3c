from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException

from app.db.session import SessionLocal
from app.marketplace.coupons.errors import (
    CouponAlreadyUsedError,
    CouponLimitExceededError,
    CouponNotFoundError,
    CouponRuleViolationError,
    CouponValidationError,
)
from app.marketplace.coupons.service import CouponService
from app.marketplace.errors import MarketplaceError
from app.marketplace.payments.errors import TransactionNotFoundError
from app.services.caller_identity import CallerIdentity, resolve_caller

from .marketplace_models import (
    CouponCommitRequest,
    CouponCommitResponse,
    CouponPreviewRequest,
    CouponPreviewResponse,
)

router = APIRouter(prefix="/coupons", tags=["coupons"])


def _coupon_http_error(exc: MarketplaceError) -> HTTPException:
    if isinstance(exc, CouponNotFoundError):
        return HTTPException(status_code=404, detail={"code": "E_COUPON_NOT_FOUND"})
    if isinstance(exc, TransactionNotFoundError):
        return HTTPException(status_code=404, detail={"code": "E_TRANSACTION_NOT_FOUND"})
    if isinstance(exc, CouponAlreadyUsedError):
        return HTTPException(status_code=400, detail={"code": "E_COUPON_ALREADY_USED"})
    if isinstance(exc, CouponLimitExceededError):
        return HTTPException(status_code=400, detail={"code": "E_COUPON_LIMIT_EXCEEDED"})
    if isinstance(exc, CouponRuleViolationError):
        return HTTPException(
            status_code=400,
            detail={"code": "E_COUPON_RULE_VIOLATION", "reason": exc.reason},
        )
    return HTTPException(status_code=400, detail={"code": "E_VALIDATION"})


@router.post("/preview")
async def preview_coupon(
    payload: CouponPreviewRequest,
    caller: CallerIdentity = Depends(resolve_caller),
) -> CouponPreviewResponse:
    now_utc = datetime.now(timezone.utc)
    try:
        async with SessionLocal() as session:
            result = await CouponService.preview(
                session,
                code=payload.code,
                user_id=caller.user_id,
                package_id=payload.package_id,
                purchase_amount=payload.purchase_amount,
                now_utc=now_utc,
            )
    except (
        CouponNotFoundError,
        CouponAlreadyUsedError,
        CouponLimitExceededError,
        CouponRuleViolationError,
        CouponValidationError,
    ) as exc:
        raise _coupon_http_error(exc) from exc

    return CouponPreviewResponse(
        coupon_id=result.coupon_id,
        code=result.code,
        discount_amount=result.discount_amount,
        final_amount=result.final_amount,
    )


@router.post("/commit")
async def commit_coupon(
    payload: CouponCommitRequest,
    caller: CallerIdentity = Depends(resolve_caller),
) -> CouponCommitResponse:
    now_utc = datetime.now(timezone.utc)
    try:
        async with SessionLocal.begin() as session:
            result = await CouponService.commit_usage(
                session,
                coupon_id=payload.coupon_id,
                user_id=caller.user_id,
                transaction_id=payload.transaction_id,
                now_utc=now_utc,
            )
    except (
        CouponNotFoundError,
        TransactionNotFoundError,
        CouponAlreadyUsedError,
        CouponLimitExceededError,
        CouponRuleViolationError,
        CouponValidationError,
    ) as exc:
        raise _coupon_http_error(exc) from exc

    return CouponCommitResponse(
        coupon_id=result.coupon_id,
        usage_id=result.usage_id,
        transaction_id=result.transaction_id,
        discount_amount=result.discount_amount,
        final_amount=result.final_amount,
    )
