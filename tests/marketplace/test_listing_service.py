from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest

from app.marketplace.listings import ListingService
from app.marketplace.listings.errors import ListingNotFoundError, ListingValidationError
from app.marketplace.packages.errors import PackageNotFoundError
from tests.marketplace.marketplace_fixtures import NOW, make_listing_content, seed_catalog


async def test_submit_without_package_goes_to_review(session_factory) -> None:
    async with session_factory.begin() as session:
        listing_id = await ListingService.submit(
            session,
            owner_id="seller-1",
            content=make_listing_content(title="  Plot in Sector 14  "),
            now_utc=NOW,
        )
        listing = await ListingService.get(session, listing_id)

    assert listing.state == "PENDING_REVIEW"
    assert listing.lifecycle_status == "inactive"
    assert listing.approval_status == "pending"
    assert listing.is_approved is False
    assert listing.payment_status == "unpaid"
    assert listing.title == "Plot in Sector 14"
    assert listing.price == Decimal("4500000.00")


async def test_submit_with_paid_package_awaits_payment(session_factory) -> None:
    async with session_factory.begin() as session:
        packages = await seed_catalog(session)
        listing_id = await ListingService.submit(
            session,
            owner_id="seller-1",
            content=make_listing_content(),
            package_id=packages["FEATURED_45"].id,
            now_utc=NOW,
        )
        listing = await ListingService.get(session, listing_id)

    assert listing.state == "AWAITING_PAYMENT"
    assert listing.approval_status == "pending_payment_approval"
    assert listing.lifecycle_status == "inactive"
    assert listing.package_id == packages["FEATURED_45"].id
    assert listing.featured is False


async def test_submit_with_free_package_is_treated_as_no_package(session_factory) -> None:
    async with session_factory.begin() as session:
        packages = await seed_catalog(session)
        listing_id = await ListingService.submit(
            session,
            owner_id="seller-1",
            content=make_listing_content(),
            package_id=packages["BASIC_30"].id,
            now_utc=NOW,
        )
        listing = await ListingService.get(session, listing_id)

    assert listing.state == "PENDING_REVIEW"
    assert listing.package_id is None


async def test_submit_rejects_unknown_package(session_factory) -> None:
    async with session_factory.begin() as session:
        with pytest.raises(PackageNotFoundError):
            await ListingService.submit(
                session,
                owner_id="seller-1",
                content=make_listing_content(),
                package_id=uuid4(),
                now_utc=NOW,
            )


@pytest.mark.parametrize(
    ("overrides", "field"),
    [
        ({"title": "   "}, "title"),
        ({"description": ""}, "description"),
        ({"price": Decimal("-1")}, "price"),
        ({"price_type": "lease"}, "priceType"),
        ({"location": {"city": "Rohtak"}}, "location.address"),
        ({"contact_info": {"name": "Ravi"}}, "contactInfo.phone"),
    ],
)
async def test_submit_reports_first_invalid_field(session_factory, overrides, field) -> None:
    async with session_factory.begin() as session:
        with pytest.raises(ListingValidationError) as exc_info:
            await ListingService.submit(
                session,
                owner_id="seller-1",
                content=make_listing_content(**overrides),
                now_utc=NOW,
            )
    assert exc_info.value.field == field


async def test_list_for_owner_returns_only_own_listings(session_factory) -> None:
    async with session_factory.begin() as session:
        for owner_id in ("seller-1", "seller-1", "seller-2"):
            await ListingService.submit(
                session,
                owner_id=owner_id,
                content=make_listing_content(),
                now_utc=NOW,
            )
        mine = await ListingService.list_for_owner(session, owner_id="seller-1")

    assert len(mine) == 2
    assert {listing.owner_id for listing in mine} == {"seller-1"}


async def test_get_unknown_listing_raises(session_factory) -> None:
    async with session_factory() as session:
        with pytest.raises(ListingNotFoundError):
            await ListingService.get(session, uuid4())
