from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from uuid import UUID

import pytest
from sqlalchemy import func, select

from app.db.models.coupon_usages import CouponUsage
from app.db.models.coupons import Coupon
from app.db.session import SessionLocal
from app.marketplace.coupons import CouponService
from app.marketplace.coupons.errors import CouponAlreadyUsedError, CouponLimitExceededError
from tests.integration.listing_pipeline_fixtures import (
    create_limited_coupon,
    open_order,
    pay_order,
    seed_package_id,
)
from tests.marketplace.marketplace_fixtures import FakeGateway

UTC = timezone.utc


async def _commit(*, barrier: asyncio.Event, coupon_id: UUID, user_id: str, transaction_id: UUID) -> str:
    await barrier.wait()
    try:
        async with SessionLocal.begin() as session:
            await CouponService.commit_usage(
                session,
                coupon_id=coupon_id,
                user_id=user_id,
                transaction_id=transaction_id,
                now_utc=datetime.now(UTC),
            )
        return "accepted"
    except CouponLimitExceededError:
        return "limit_exceeded"
    except CouponAlreadyUsedError:
        return "already_used"


@pytest.mark.asyncio
async def test_parallel_commits_respect_usage_limit() -> None:
    now_utc = datetime.now(UTC)
    gateway = FakeGateway()
    package_id = await seed_package_id(code="PREMIUM_60", now_utc=now_utc)
    coupon_id = await create_limited_coupon(code="LASTONE", usage_limit=1, now_utc=now_utc)

    transactions = {}
    for user_id in ("buyer-1", "buyer-2"):
        order_id = await open_order(user_id=user_id, package_id=package_id, gateway=gateway, now_utc=now_utc)
        transactions[user_id] = await pay_order(
            gateway_order_id=order_id,
            payment_id=f"pay_{user_id}",
            now_utc=now_utc,
        )

    barrier = asyncio.Event()
    tasks = [
        asyncio.create_task(
            _commit(barrier=barrier, coupon_id=coupon_id, user_id=user_id, transaction_id=transaction_id)
        )
        for user_id, transaction_id in transactions.items()
    ]
    barrier.set()
    outcomes = await asyncio.gather(*tasks)

    assert sorted(outcomes) == ["accepted", "limit_exceeded"]

    async with SessionLocal.begin() as session:
        used_count = await session.scalar(select(Coupon.used_count).where(Coupon.id == coupon_id))
        usages = await session.scalar(
            select(func.count(CouponUsage.id)).where(CouponUsage.coupon_id == coupon_id)
        )
    assert used_count == 1
    assert usages == 1


@pytest.mark.asyncio
async def test_parallel_commits_by_same_user_record_one_usage() -> None:
    now_utc = datetime.now(UTC)
    gateway = FakeGateway()
    package_id = await seed_package_id(code="FEATURED_45", now_utc=now_utc)
    coupon_id = await create_limited_coupon(code="ONEPERUSER", usage_limit=10, now_utc=now_utc)
    order_id = await open_order(user_id="buyer-1", package_id=package_id, gateway=gateway, now_utc=now_utc)
    transaction_id = await pay_order(gateway_order_id=order_id, payment_id="pay_same_user", now_utc=now_utc)

    barrier = asyncio.Event()
    tasks = [
        asyncio.create_task(
            _commit(barrier=barrier, coupon_id=coupon_id, user_id="buyer-1", transaction_id=transaction_id)
        )
        for _ in range(2)
    ]
    barrier.set()
    outcomes = await asyncio.gather(*tasks)

    assert sorted(outcomes) == ["accepted", "already_used"]

    async with SessionLocal.begin() as session:
        used_count = await session.scalar(select(Coupon.used_count).where(Coupon.id == coupon_id))
    assert used_count == 1
