from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import case, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.listings import LISTING_PENDING_STATES, Listing


class ListingsRepo:
    @staticmethod
    async def create(session: AsyncSession, *, listing: Listing) -> Listing:
        session.add(listing)
        await session.flush()
        return listing

    @staticmethod
    async def get_by_id(session: AsyncSession, listing_id: UUID) -> Listing | None:
        return await session.get(Listing, listing_id)

    @staticmethod
    async def get_by_id_fresh(session: AsyncSession, listing_id: UUID) -> Listing | None:
        stmt = (
            select(Listing)
            .where(Listing.id == listing_id)
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def list_for_owner(
        session: AsyncSession,
        *,
        owner_id: str,
        limit: int = 50,
    ) -> list[Listing]:
        stmt = (
            select(Listing)
            .where(Listing.owner_id == owner_id)
            .order_by(Listing.created_at.desc(), Listing.id.desc())
            .limit(limit)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_pending(session: AsyncSession, *, limit: int = 50) -> list[Listing]:
        stmt = (
            select(Listing)
            .where(Listing.state.in_(LISTING_PENDING_STATES))
            .order_by(Listing.created_at.desc(), Listing.id.desc())
            .limit(limit)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def transition_state(
        session: AsyncSession,
        *,
        listing_id: UUID,
        from_states: Iterable[str],
        to_state: str,
        values: dict[str, Any],
        now_utc: datetime,
    ) -> int:
        stmt = (
            update(Listing)
            .where(
                Listing.id == listing_id,
                Listing.state.in_(tuple(from_states)),
            )
            .values(state=to_state, updated_at=now_utc, **values)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return int(result.rowcount or 0)

    @staticmethod
    async def apply_payment_fields(
        session: AsyncSession,
        *,
        listing_id: UUID,
        gateway_order_id: str,
        values: dict[str, Any],
        now_utc: datetime,
    ) -> int:
        # Moderation fields are never part of this statement.
        stmt = (
            update(Listing)
            .where(
                Listing.id == listing_id,
                or_(
                    Listing.gateway_order_id.is_(None),
                    Listing.gateway_order_id != gateway_order_id,
                ),
            )
            .values(
                state=case(
                    (Listing.state == "AWAITING_PAYMENT", "PENDING_REVIEW"),
                    else_=Listing.state,
                ),
                gateway_order_id=gateway_order_id,
                payment_status="paid",
                updated_at=now_utc,
                **values,
            )
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return int(result.rowcount or 0)

    @staticmethod
    async def mark_payment_failed(
        session: AsyncSession,
        *,
        listing_id: UUID,
        now_utc: datetime,
    ) -> int:
        stmt = (
            update(Listing)
            .where(
                Listing.id == listing_id,
                Listing.payment_status != "paid",
            )
            .values(payment_status="failed", updated_at=now_utc)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return int(result.rowcount or 0)
