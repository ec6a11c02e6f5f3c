from __future__ import annotations

from typing import Literal
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query

from app.db.session import SessionLocal
from app.marketplace.packages.errors import PackageNotFoundError
from app.marketplace.packages.service import PackageCatalog
from app.marketplace.packages.types import PackageFilter

from .marketplace_helpers import _package_as_response
from .marketplace_models import PackageListResponse, PackageResponse

router = APIRouter(prefix="/packages", tags=["packages"])


@router.get("")
async def list_packages(
    category: Literal["property", "general"] | None = Query(default=None),
    location: Literal["rohtak", "all"] | None = Query(default=None),
    package_type: Literal["basic", "featured", "premium"] | None = Query(default=None, alias="type"),
) -> PackageListResponse:
    async with SessionLocal() as session:
        packages = await PackageCatalog.get_active(
            session,
            package_filter=PackageFilter(
                category=category,
                location=location,
                package_type=package_type,
            ),
        )
    return PackageListResponse(packages=[_package_as_response(package) for package in packages])


@router.get("/{package_id}")
async def get_package(package_id: UUID) -> PackageResponse:
    try:
        async with SessionLocal() as session:
            package = await PackageCatalog.get_by_id(session, package_id)
    except PackageNotFoundError as exc:
        raise HTTPException(status_code=404, detail={"code": "E_PACKAGE_NOT_FOUND"}) from exc
    return _package_as_response(package)
