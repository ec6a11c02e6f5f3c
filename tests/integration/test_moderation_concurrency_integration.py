from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from uuid import UUID

import pytest
from sqlalchemy import func, select

from app.db.models.listing_moderation_events import ListingModerationEvent
from app.db.models.listings import Listing
from app.db.session import SessionLocal
from app.marketplace.listings.errors import ListingInvalidStateError
from app.marketplace.moderation import ModerationService
from tests.integration.listing_pipeline_fixtures import submit_listing

UTC = timezone.utc


@pytest.mark.asyncio
async def test_parallel_approve_and_reject_produce_one_decision() -> None:
    listing_id = await submit_listing(owner_id="seller-1", package_id=None, now_utc=datetime.now(UTC))
    barrier = asyncio.Event()

    async def _decide(decision: str, actor_id: str, target: UUID) -> str:
        await barrier.wait()
        try:
            async with SessionLocal.begin() as session:
                result = await ModerationService.decide(
                    session,
                    listing_id=target,
                    decision=decision,
                    actor_id=actor_id,
                    rejection_reason="Duplicate listing" if decision == "reject" else None,
                    now_utc=datetime.now(UTC),
                )
            return result.state
        except ListingInvalidStateError:
            return "conflict"

    tasks = [
        asyncio.create_task(_decide("approve", "admin-1", listing_id)),
        asyncio.create_task(_decide("reject", "admin-2", listing_id)),
    ]
    barrier.set()
    outcomes = await asyncio.gather(*tasks)

    assert "conflict" in outcomes
    winner = next(outcome for outcome in outcomes if outcome != "conflict")
    assert winner in {"APPROVED", "REJECTED"}

    async with SessionLocal.begin() as session:
        listing = await session.get(Listing, listing_id)
        events = await session.scalar(
            select(func.count(ListingModerationEvent.id)).where(
                ListingModerationEvent.listing_id == listing_id
            )
        )
    assert listing is not None
    assert listing.state == winner
    assert events == 1
