from __future__ import annotations

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.ad_packages import AdPackage


class PackagesRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, package_id: UUID) -> AdPackage | None:
        return await session.get(AdPackage, package_id)

    @staticmethod
    async def get_by_code(session: AsyncSession, code: str) -> AdPackage | None:
        stmt = select(AdPackage).where(AdPackage.code == code)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def list_active(
        session: AsyncSession,
        *,
        category: str | None = None,
        location: str | None = None,
        package_type: str | None = None,
    ) -> list[AdPackage]:
        stmt = (
            select(AdPackage)
            .where(AdPackage.is_active.is_(True))
            .order_by(AdPackage.package_type.asc(), AdPackage.price.asc(), AdPackage.code.asc())
        )
        if category is not None:
            stmt = stmt.where(AdPackage.category == category)
        if location is not None:
            # Packages sold for "all" locations match every concrete location.
            stmt = stmt.where(AdPackage.location.in_((location, "all")))
        if package_type is not None:
            stmt = stmt.where(AdPackage.package_type == package_type)
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def count_all(session: AsyncSession) -> int:
        stmt = select(func.count(AdPackage.id))
        result = await session.execute(stmt)
        return int(result.scalar_one() or 0)

    @staticmethod
    async def create(session: AsyncSession, *, package: AdPackage) -> AdPackage:
        session.add(package)
        await session.flush()
        return package
