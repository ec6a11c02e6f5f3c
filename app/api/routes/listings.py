from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.db.session import SessionLocal
from app.marketplace.listings.errors import ListingNotFoundError, ListingValidationError
from app.marketplace.listings.service import ListingService
from app.marketplace.listings.types import ListingContent
from app.marketplace.packages.errors import PackageNotFoundError
from app.services.caller_identity import CallerIdentity, resolve_caller

from .marketplace_helpers import _listing_as_response
from .marketplace_models import (
    ListingContentPayload,
    ListingListResponse,
    ListingResponse,
    ListingSubmitRequest,
    ListingSubmitResponse,
)

router = APIRouter(prefix="/listings", tags=["listings"])


def _content_from_payload(payload: ListingContentPayload, *, owner_type: str) -> ListingContent:
    return ListingContent(
        title=payload.title,
        description=payload.description,
        price=payload.price,
        price_type=payload.price_type,
        property_type=payload.property_type,
        sub_category=payload.sub_category,
        location=payload.location.model_dump(exclude_none=True),
        contact_info=payload.contact_info.model_dump(exclude_none=True),
        specifications=payload.specifications,
        amenities=payload.amenities,
        owner_type=owner_type,
    )


@router.post("", status_code=status.HTTP_201_CREATED)
async def submit_listing(
    payload: ListingSubmitRequest,
    caller: CallerIdentity = Depends(resolve_caller),
) -> ListingSubmitResponse:
    now_utc = datetime.now(timezone.utc)
    owner_type = "admin" if caller.is_admin else "seller"
    try:
        async with SessionLocal.begin() as session:
            listing_id = await ListingService.submit(
                session,
                owner_id=caller.user_id,
                content=_content_from_payload(payload.content, owner_type=owner_type),
                package_id=payload.package_id,
                now_utc=now_utc,
            )
            listing = await ListingService.get(session, listing_id)
            response = ListingSubmitResponse(
                listing_id=listing.id,
                lifecycle_status=listing.lifecycle_status,
                approval_status=listing.approval_status,
            )
    except ListingValidationError as exc:
        raise HTTPException(
            status_code=400,
            detail={"code": "E_VALIDATION", "field": exc.field},
        ) from exc
    except PackageNotFoundError as exc:
        raise HTTPException(status_code=404, detail={"code": "E_PACKAGE_NOT_FOUND"}) from exc

    return response


@router.get("/mine")
async def list_my_listings(
    limit: int = Query(default=50, ge=1, le=200),
    caller: CallerIdentity = Depends(resolve_caller),
) -> ListingListResponse:
    now_utc = datetime.now(timezone.utc)
    async with SessionLocal() as session:
        listings = await ListingService.list_for_owner(
            session,
            owner_id=caller.user_id,
            limit=limit,
        )
    return ListingListResponse(
        listings=[_listing_as_response(listing, now_utc=now_utc) for listing in listings]
    )


@router.get("/{listing_id}")
async def get_listing(
    listing_id: UUID,
    caller: CallerIdentity = Depends(resolve_caller),
) -> ListingResponse:
    now_utc = datetime.now(timezone.utc)
    try:
        async with SessionLocal() as session:
            listing = await ListingService.get(session, listing_id)
    except ListingNotFoundError as exc:
        raise HTTPException(status_code=404, detail={"code": "E_LISTING_NOT_FOUND"}) from exc

    # Unpublished listings are visible to their owner and to moderators only.
    if listing.lifecycle_status != "active" and not (
        caller.is_admin or listing.owner_id == caller.user_id
    ):
        raise HTTPException(status_code=404, detail={"code": "E_LISTING_NOT_FOUND"})
    return _listing_as_response(listing, now_utc=now_utc)
