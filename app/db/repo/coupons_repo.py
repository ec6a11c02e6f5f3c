from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.coupon_usages import CouponUsage
from app.db.models.coupons import Coupon


class CouponsRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, coupon_id: UUID) -> Coupon | None:
        return await session.get(Coupon, coupon_id)

    @staticmethod
    async def get_by_id_for_update(session: AsyncSession, coupon_id: UUID) -> Coupon | None:
        stmt = (
            select(Coupon)
            .where(Coupon.id == coupon_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_code(session: AsyncSession, code: str) -> Coupon | None:
        stmt = select(Coupon).where(Coupon.code == code)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def list_coupons(
        session: AsyncSession,
        *,
        is_active: bool | None = None,
        limit: int = 50,
    ) -> list[Coupon]:
        stmt = select(Coupon).order_by(Coupon.created_at.desc(), Coupon.code.asc()).limit(limit)
        if is_active is not None:
            stmt = stmt.where(Coupon.is_active.is_(is_active))
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def create(session: AsyncSession, *, coupon: Coupon) -> Coupon:
        session.add(coupon)
        await session.flush()
        return coupon

    @staticmethod
    async def set_active(
        session: AsyncSession,
        *,
        coupon_id: UUID,
        is_active: bool,
        now_utc: datetime,
    ) -> int:
        stmt = (
            update(Coupon)
            .where(Coupon.id == coupon_id)
            .values(is_active=is_active, updated_at=now_utc)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return int(result.rowcount or 0)

    @staticmethod
    async def increment_used_count_if_available(
        session: AsyncSession,
        *,
        coupon_id: UUID,
        now_utc: datetime,
    ) -> int:
        stmt = (
            update(Coupon)
            .where(
                Coupon.id == coupon_id,
                or_(
                    Coupon.usage_limit.is_(None),
                    Coupon.used_count < Coupon.usage_limit,
                ),
            )
            .values(used_count=Coupon.used_count + 1, updated_at=now_utc)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return int(result.rowcount or 0)

    @staticmethod
    async def get_usage_for_user(
        session: AsyncSession,
        *,
        coupon_id: UUID,
        user_id: str,
    ) -> CouponUsage | None:
        stmt = select(CouponUsage).where(
            CouponUsage.coupon_id == coupon_id,
            CouponUsage.user_id == user_id,
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create_usage(session: AsyncSession, *, usage: CouponUsage) -> CouponUsage:
        session.add(usage)
        await session.flush()
        return usage

    @staticmethod
    async def save(session: AsyncSession, *, coupon: Coupon) -> Coupon:
        await session.flush()
        return coupon
