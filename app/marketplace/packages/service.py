from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal
from uuid import UUID, uuid4

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.ad_packages import AdPackage
from app.db.repo.packages_repo import PackagesRepo
from app.marketplace.packages.catalog import DEFAULT_PACKAGES
from app.marketplace.packages.errors import PackageNotFoundError
from app.marketplace.packages.types import PackageFilter, PackageSnapshot

logger = structlog.get_logger(__name__)


class PackageCatalog:
    @staticmethod
    async def get_active(
        session: AsyncSession,
        *,
        package_filter: PackageFilter | None = None,
    ) -> list[AdPackage]:
        package_filter = package_filter or PackageFilter()
        return await PackagesRepo.list_active(
            session,
            category=package_filter.category,
            location=package_filter.location,
            package_type=package_filter.package_type,
        )

    @staticmethod
    async def get_by_id(session: AsyncSession, package_id: UUID) -> AdPackage:
        package = await PackagesRepo.get_by_id(session, package_id)
        if package is None or not package.is_active:
            raise PackageNotFoundError
        return package

    @staticmethod
    def build_snapshot(
        package: AdPackage,
        *,
        purchased_at: datetime,
        name: str | None = None,
        price: Decimal | None = None,
        duration_days: int | None = None,
    ) -> PackageSnapshot:
        """Freeze a package for a listing.

        ``name``, ``price`` and ``duration_days`` override the catalog row with
        the terms recorded on the order; type and features are read from the
        row, which is never deleted while purchases reference it.
        """
        duration_days = package.duration_days if duration_days is None else duration_days
        return PackageSnapshot(
            package_id=package.id,
            name=package.name if name is None else name,
            package_type=package.package_type,
            price=package.price if price is None else price,
            duration_days=duration_days,
            features=tuple(package.features or ()),
            purchased_at=purchased_at,
            expires_at=purchased_at + timedelta(days=duration_days),
        )

    @staticmethod
    async def seed_default_packages(session: AsyncSession, *, now_utc: datetime) -> int:
        if await PackagesRepo.count_all(session) > 0:
            logger.info("package_seed_skipped", reason="catalog_not_empty")
            return 0

        for package_spec in DEFAULT_PACKAGES:
            await PackagesRepo.create(
                session,
                package=AdPackage(
                    id=uuid4(),
                    code=package_spec.code,
                    name=package_spec.name,
                    description=package_spec.description,
                    package_type=package_spec.package_type,
                    category=package_spec.category,
                    location=package_spec.location,
                    price=package_spec.price,
                    duration_days=package_spec.duration_days,
                    features=list(package_spec.features),
                    is_active=True,
                    created_at=now_utc,
                    updated_at=now_utc,
                ),
            )
        logger.info("package_catalog_seeded", packages_total=len(DEFAULT_PACKAGES))
        return len(DEFAULT_PACKAGES)
