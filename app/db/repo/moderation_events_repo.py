from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.listing_moderation_events import ListingModerationEvent


class ModerationEventsRepo:
    @staticmethod
    async def create(
        session: AsyncSession,
        *,
        event: ListingModerationEvent,
    ) -> ListingModerationEvent:
        session.add(event)
        await session.flush()
        return event

    @staticmethod
    async def list_for_listing(
        session: AsyncSession,
        *,
        listing_id: UUID,
        limit: int = 50,
    ) -> list[ListingModerationEvent]:
        stmt = (
            select(ListingModerationEvent)
            .where(ListingModerationEvent.listing_id == listing_id)
            .order_by(ListingModerationEvent.created_at.asc(), ListingModerationEvent.id.asc())
            .limit(limit)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())
