from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.listing_moderation_events import ListingModerationEvent
from app.db.models.listings import Listing
from app.db.repo.listings_repo import ListingsRepo
from app.db.repo.moderation_events_repo import ModerationEventsRepo
from app.marketplace.listings.errors import ListingNotFoundError
from app.marketplace.listings.service import ListingService
from app.marketplace.listings.types import ModerationResult

PENDING_QUEUE_MAX_LIMIT = 200


class ModerationService:
    @staticmethod
    async def decide(
        session: AsyncSession,
        *,
        listing_id: UUID,
        decision: str,
        actor_id: str,
        now_utc: datetime,
        comment: str | None = None,
        rejection_reason: str | None = None,
    ) -> ModerationResult:
        return await ListingService.apply_moderation(
            session,
            listing_id=listing_id,
            decision=decision,
            actor_id=actor_id,
            now_utc=now_utc,
            comment=comment,
            rejection_reason=rejection_reason,
        )

    @staticmethod
    async def list_pending(session: AsyncSession, *, limit: int = 50) -> list[Listing]:
        return await ListingsRepo.list_pending(
            session,
            limit=max(1, min(limit, PENDING_QUEUE_MAX_LIMIT)),
        )

    @staticmethod
    async def list_events(
        session: AsyncSession,
        *,
        listing_id: UUID,
    ) -> list[ListingModerationEvent]:
        if await ListingsRepo.get_by_id(session, listing_id) is None:
            raise ListingNotFoundError
        return await ModerationEventsRepo.list_for_listing(session, listing_id=listing_id)
