from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.db.session import SessionLocal
from app.marketplace.coupons.errors import (
    CouponCodeTakenError,
    CouponNotFoundError,
    CouponValidationError,
)
from app.marketplace.coupons.service import CouponService
from app.services.caller_identity import CallerIdentity, require_admin

from .marketplace_helpers import _coupon_as_response
from .marketplace_models import (
    CouponCreateRequest,
    CouponListResponse,
    CouponResponse,
    CouponStatusRequest,
    CouponUpdateRequest,
)

router = APIRouter(prefix="/admin/coupons", tags=["admin", "coupons"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_coupon(
    payload: CouponCreateRequest,
    admin: CallerIdentity = Depends(require_admin),
) -> CouponResponse:
    now_utc = datetime.now(timezone.utc)
    try:
        async with SessionLocal.begin() as session:
            coupon = await CouponService.create_coupon(
                session,
                code=payload.code,
                description=payload.description,
                discount_type=payload.discount_type,
                discount_value=payload.discount_value,
                min_purchase_amount=payload.min_purchase_amount,
                max_discount_amount=payload.max_discount_amount,
                valid_from=payload.valid_from,
                valid_until=payload.valid_until,
                usage_limit=payload.usage_limit,
                applicable_for=payload.applicable_for,
                package_ids=payload.package_ids,
                is_active=payload.is_active,
                created_by=admin.user_id,
                now_utc=now_utc,
            )
            response = _coupon_as_response(coupon)
    except CouponCodeTakenError as exc:
        raise HTTPException(status_code=400, detail={"code": "E_COUPON_CODE_TAKEN"}) from exc
    except CouponValidationError as exc:
        raise HTTPException(
            status_code=400,
            detail={"code": "E_VALIDATION", "field": str(exc)},
        ) from exc

    return response


@router.get("")
async def list_coupons(
    status_filter: Literal["active", "inactive", "all"] = Query(default="all", alias="status"),
    limit: int = Query(default=50, ge=1, le=200),
    admin: CallerIdentity = Depends(require_admin),
) -> CouponListResponse:
    async with SessionLocal() as session:
        coupons = await CouponService.list_coupons(session, status=status_filter, limit=limit)
    return CouponListResponse(coupons=[_coupon_as_response(coupon) for coupon in coupons])


@router.post("/{coupon_id}/status")
async def set_coupon_status(
    coupon_id: UUID,
    payload: CouponStatusRequest,
    admin: CallerIdentity = Depends(require_admin),
) -> CouponResponse:
    now_utc = datetime.now(timezone.utc)
    try:
        async with SessionLocal.begin() as session:
            coupon = await CouponService.set_active(
                session,
                coupon_id=coupon_id,
                is_active=payload.is_active,
                now_utc=now_utc,
            )
            response = _coupon_as_response(coupon)
    except CouponNotFoundError as exc:
        raise HTTPException(status_code=404, detail={"code": "E_COUPON_NOT_FOUND"}) from exc

    return response


@router.patch("/{coupon_id}")
async def update_coupon(
    coupon_id: UUID,
    payload: CouponUpdateRequest,
    admin: CallerIdentity = Depends(require_admin),
) -> CouponResponse:
    now_utc = datetime.now(timezone.utc)
    try:
        async with SessionLocal.begin() as session:
            coupon = await CouponService.update_coupon(
                session,
                coupon_id=coupon_id,
                changes=payload.model_dump(exclude_unset=True),
                updated_by=admin.user_id,
                now_utc=now_utc,
            )
            response = _coupon_as_response(coupon)
    except CouponNotFoundError as exc:
        raise HTTPException(status_code=404, detail={"code": "E_COUPON_NOT_FOUND"}) from exc
    except CouponCodeTakenError as exc:
        raise HTTPException(status_code=400, detail={"code": "E_COUPON_CODE_TAKEN"}) from exc
    except CouponValidationError as exc:
        raise HTTPException(
            status_code=400,
            detail={"code": "E_VALIDATION", "field": str(exc)},
        ) from exc

    return response
