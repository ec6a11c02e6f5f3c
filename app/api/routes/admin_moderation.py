from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query

from app.db.session import SessionLocal
from app.marketplace.listings.errors import (
    ListingInvalidStateError,
    ListingNotFoundError,
    ListingPaymentRequiredError,
    ListingValidationError,
)
from app.marketplace.moderation.service import ModerationService
from app.services.caller_identity import CallerIdentity, require_admin

from .marketplace_helpers import _event_as_response, _listing_as_response
from .marketplace_models import (
    ListingListResponse,
    ModerationEventListResponse,
    ModerationRequest,
    ModerationResponse,
)

router = APIRouter(prefix="/admin/listings", tags=["admin", "moderation"])


@router.put("/{listing_id}/moderation")
async def moderate_listing(
    listing_id: UUID,
    payload: ModerationRequest,
    admin: CallerIdentity = Depends(require_admin),
) -> ModerationResponse:
    now_utc = datetime.now(timezone.utc)
    try:
        async with SessionLocal.begin() as session:
            result = await ModerationService.decide(
                session,
                listing_id=listing_id,
                decision=payload.decision,
                actor_id=admin.user_id,
                comment=payload.comment,
                rejection_reason=payload.rejection_reason,
                now_utc=now_utc,
            )
    except ListingValidationError as exc:
        raise HTTPException(
            status_code=400,
            detail={"code": "E_VALIDATION", "field": exc.field},
        ) from exc
    except ListingNotFoundError as exc:
        raise HTTPException(status_code=404, detail={"code": "E_LISTING_NOT_FOUND"}) from exc
    except ListingPaymentRequiredError as exc:
        raise HTTPException(
            status_code=409,
            detail={"code": "E_LISTING_PAYMENT_REQUIRED"},
        ) from exc
    except ListingInvalidStateError as exc:
        raise HTTPException(status_code=409, detail={"code": "E_LISTING_INVALID_STATE"}) from exc

    return ModerationResponse(
        listing_id=result.listing_id,
        decision=result.decision,
        previous_state=result.previous_state,
        state=result.state,
        lifecycle_status=result.lifecycle_status,
        approval_status=result.approval_status,
    )


@router.get("/pending")
async def list_pending_listings(
    limit: int = Query(default=50, ge=1, le=200),
    admin: CallerIdentity = Depends(require_admin),
) -> ListingListResponse:
    now_utc = datetime.now(timezone.utc)
    async with SessionLocal() as session:
        listings = await ModerationService.list_pending(session, limit=limit)
    return ListingListResponse(
        listings=[_listing_as_response(listing, now_utc=now_utc) for listing in listings]
    )


@router.get("/{listing_id}/moderation/events")
async def list_moderation_events(
    listing_id: UUID,
    admin: CallerIdentity = Depends(require_admin),
) -> ModerationEventListResponse:
    try:
        async with SessionLocal() as session:
            events = await ModerationService.list_events(session, listing_id=listing_id)
    except ListingNotFoundError as exc:
        raise HTTPException(status_code=404, detail={"code": "E_LISTING_NOT_FOUND"}) from exc
    return ModerationEventListResponse(events=[_event_as_response(event) for event in events])
