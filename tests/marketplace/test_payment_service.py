from __future__ import annotations

from datetime import timedelta
from decimal import Decimal
from uuid import uuid4

import pytest

from app.core.config import get_settings
from app.db.models.transactions import Transaction
from app.db.repo.packages_repo import PackagesRepo
from app.db.repo.transactions_repo import TransactionsRepo
from app.marketplace.listings import ListingService
from app.marketplace.listings.errors import ListingNotFoundError
from app.marketplace.moderation import ModerationService
from app.marketplace.payments import PaymentService
from app.marketplace.payments.errors import (
    PaymentGatewayError,
    PaymentInvalidAmountError,
    PaymentPackageMismatchError,
    PaymentSignatureError,
    TransactionNotFoundError,
)
from tests.marketplace.marketplace_fixtures import (
    NOW,
    FakeGateway,
    make_listing_content,
    seed_catalog,
    sign_payment,
)


async def _listing_with_order(session, *, package_code: str = "FEATURED_45", gateway=None):
    packages = await seed_catalog(session)
    listing_id = await ListingService.submit(
        session,
        owner_id="seller-1",
        content=make_listing_content(),
        package_id=packages[package_code].id,
        now_utc=NOW,
    )
    order = await PaymentService.create_order(
        session,
        user_id="seller-1",
        package_id=packages[package_code].id,
        listing_id=listing_id,
        gateway=gateway or FakeGateway(),
        currency="INR",
        now_utc=NOW,
    )
    return listing_id, order


async def _verify(session, order_id: str, payment_id: str, *, signature: str | None = None):
    return await PaymentService.verify(
        session,
        gateway_order_id=order_id,
        gateway_payment_id=payment_id,
        signature=signature or sign_payment(order_id, payment_id),
        key_secret=get_settings().razorpay_key_secret,
        now_utc=NOW,
    )


async def _reload(session, order_id: str) -> Transaction:
    transaction = await TransactionsRepo.get_by_gateway_order_id(session, order_id)
    assert transaction is not None
    return transaction


def test_to_minor_units_rounds_half_up() -> None:
    assert PaymentService.to_minor_units(Decimal("299.00")) == 29900
    assert PaymentService.to_minor_units(Decimal("0.005")) == 1
    assert PaymentService.to_minor_units(Decimal("12.344")) == 1234


async def test_create_order_stores_pending_transaction(session_factory) -> None:
    gateway = FakeGateway()
    async with session_factory.begin() as session:
        listing_id, order = await _listing_with_order(session, gateway=gateway)
        transaction = await _reload(session, order.gateway_order_id)

    assert order.amount == Decimal("299.00")
    assert order.amount_minor == 29900
    assert order.key_id == "rzp_test_key"
    assert gateway.calls[0]["amount_minor"] == 29900
    assert gateway.calls[0]["receipt"] == f"txn_{order.transaction_id.hex[:24]}"
    assert gateway.calls[0]["notes"]["listing_id"] == str(listing_id)
    assert transaction.status == "pending"
    assert transaction.amount == Decimal("299.00")
    assert transaction.fulfillment_status == "PENDING"
    assert transaction.package_duration_days == 45


async def test_create_order_rejects_free_package(session_factory) -> None:
    async with session_factory.begin() as session:
        packages = await seed_catalog(session)
        with pytest.raises(PaymentInvalidAmountError):
            await PaymentService.create_order(
                session,
                user_id="seller-1",
                package_id=packages["BASIC_30"].id,
                gateway=FakeGateway(),
                currency="INR",
                now_utc=NOW,
            )


async def test_create_order_rejects_someone_elses_listing(session_factory) -> None:
    async with session_factory.begin() as session:
        packages = await seed_catalog(session)
        listing_id = await ListingService.submit(
            session,
            owner_id="seller-1",
            content=make_listing_content(),
            package_id=packages["PREMIUM_60"].id,
            now_utc=NOW,
        )
        with pytest.raises(ListingNotFoundError):
            await PaymentService.create_order(
                session,
                user_id="seller-2",
                package_id=packages["PREMIUM_60"].id,
                listing_id=listing_id,
                gateway=FakeGateway(),
                currency="INR",
                now_utc=NOW,
            )


async def test_create_order_keeps_package_chosen_at_submit(session_factory) -> None:
    gateway = FakeGateway()
    async with session_factory.begin() as session:
        packages = await seed_catalog(session)
        listing_id = await ListingService.submit(
            session,
            owner_id="seller-1",
            content=make_listing_content(),
            package_id=packages["PREMIUM_60"].id,
            now_utc=NOW,
        )
        with pytest.raises(PaymentPackageMismatchError):
            await PaymentService.create_order(
                session,
                user_id="seller-1",
                package_id=packages["FEATURED_WEEKLY"].id,
                listing_id=listing_id,
                gateway=gateway,
                currency="INR",
                now_utc=NOW,
            )
        listing = await ListingService.get(session, listing_id)

    assert gateway.calls == []
    assert listing.package_id == packages["PREMIUM_60"].id


async def test_listing_in_review_can_buy_any_paid_package(session_factory) -> None:
    async with session_factory.begin() as session:
        packages = await seed_catalog(session)
        listing_id = await ListingService.submit(
            session,
            owner_id="seller-1",
            content=make_listing_content(),
            now_utc=NOW,
        )
        order = await PaymentService.create_order(
            session,
            user_id="seller-1",
            package_id=packages["FEATURED_WEEKLY"].id,
            listing_id=listing_id,
            gateway=FakeGateway(),
            currency="INR",
            now_utc=NOW,
        )

    assert order.amount == Decimal("99.00")


async def test_create_order_maps_gateway_failure(session_factory) -> None:
    async with session_factory.begin() as session:
        packages = await seed_catalog(session)
        with pytest.raises(PaymentGatewayError):
            await PaymentService.create_order(
                session,
                user_id="seller-1",
                package_id=packages["PREMIUM_60"].id,
                gateway=FakeGateway(fail=True),
                currency="INR",
                now_utc=NOW,
            )


async def test_paid_listing_scenario_ends_active_after_approval(session_factory) -> None:
    async with session_factory.begin() as session:
        listing_id, order = await _listing_with_order(session)
        listing = await ListingService.get(session, listing_id)
        assert listing.approval_status == "pending_payment_approval"

        result = await _verify(session, order.gateway_order_id, "pay_001")
        assert result.status == "paid"
        assert result.idempotent_replay is False
        assert result.fulfillment_status == "APPLIED"

        listing = await ListingService.get(session, listing_id)
        assert listing.payment_status == "paid"
        assert listing.state == "PENDING_REVIEW"
        assert listing.lifecycle_status == "inactive"
        assert listing.featured is True
        assert listing.package_expiry == NOW + timedelta(days=45)
        assert listing.package_snapshot["name"]
        assert listing.gateway_payment_id == "pay_001"
        assert listing.has_active_package(NOW) is True

        moderation = await ModerationService.decide(
            session,
            listing_id=listing_id,
            decision="approve",
            actor_id="admin-1",
            now_utc=NOW,
        )

    assert moderation.lifecycle_status == "active"
    assert moderation.approval_status == "approved"


async def test_catalog_edit_after_order_does_not_change_purchased_terms(session_factory) -> None:
    async with session_factory.begin() as session:
        listing_id, order = await _listing_with_order(session)
        package = await PackagesRepo.get_by_code(session, "FEATURED_45")
        assert package is not None
        package.price = Decimal("1.00")
        package.duration_days = 365
        package.name = "Featured (repriced)"
        await session.flush()

        await _verify(session, order.gateway_order_id, "pay_001")
        listing = await ListingService.get(session, listing_id)
        transaction = await _reload(session, order.gateway_order_id)

    assert listing.package_snapshot["price"] == "299.00"
    assert Decimal(listing.package_snapshot["price"]) == transaction.amount
    assert listing.package_snapshot["duration_days"] == 45
    assert listing.package_snapshot["name"] == transaction.package_name
    assert listing.package_expiry == NOW + timedelta(days=45)


async def test_verify_is_idempotent(session_factory) -> None:
    async with session_factory.begin() as session:
        listing_id, order = await _listing_with_order(session)
        first = await _verify(session, order.gateway_order_id, "pay_001")
        second = await _verify(session, order.gateway_order_id, "pay_001")
        listing = await ListingService.get(session, listing_id)
        transaction = await _reload(session, order.gateway_order_id)

    assert first.idempotent_replay is False
    assert second.idempotent_replay is True
    assert second.transaction_id == first.transaction_id
    assert transaction.gateway_payment_id == "pay_001"
    assert listing.last_payment_at == NOW


async def test_duplicate_capture_keeps_first_payment(session_factory) -> None:
    async with session_factory.begin() as session:
        _, order = await _listing_with_order(session)
        await _verify(session, order.gateway_order_id, "pay_001")
        replay = await _verify(session, order.gateway_order_id, "pay_002")
        transaction = await _reload(session, order.gateway_order_id)

    assert replay.idempotent_replay is True
    assert transaction.gateway_payment_id == "pay_001"


async def test_signature_mismatch_leaves_everything_untouched(session_factory) -> None:
    async with session_factory.begin() as session:
        listing_id, order = await _listing_with_order(session)
        with pytest.raises(PaymentSignatureError):
            await _verify(session, order.gateway_order_id, "pay_001", signature="0" * 64)
        with pytest.raises(PaymentSignatureError):
            await _verify(
                session,
                order.gateway_order_id,
                "pay_001",
                signature=sign_payment(order.gateway_order_id, "pay_other"),
            )
        transaction = await _reload(session, order.gateway_order_id)
        listing = await ListingService.get(session, listing_id)

    assert transaction.status == "pending"
    assert listing.payment_status == "unpaid"
    assert listing.state == "AWAITING_PAYMENT"


async def test_verify_unknown_order_raises_not_found(session_factory) -> None:
    async with session_factory.begin() as session:
        with pytest.raises(TransactionNotFoundError):
            await _verify(session, "order_missing", "pay_001")


async def test_fulfillment_failure_keeps_payment_and_retries_later(session_factory, monkeypatch) -> None:
    async def _broken_apply(*args, **kwargs):
        raise ListingNotFoundError

    original_apply = ListingService.apply_package_purchase
    monkeypatch.setattr(ListingService, "apply_package_purchase", staticmethod(_broken_apply))
    async with session_factory.begin() as session:
        listing_id, order = await _listing_with_order(session)
        result = await _verify(session, order.gateway_order_id, "pay_001")
        transaction = await _reload(session, order.gateway_order_id)

    assert result.status == "paid"
    assert result.fulfillment_status == "PENDING"
    assert transaction.status == "paid"
    assert transaction.fulfillment_attempts == 1

    monkeypatch.setattr(ListingService, "apply_package_purchase", staticmethod(original_apply))
    async with session_factory.begin() as session:
        outcome = await PaymentService.retry_fulfillment(
            session,
            transaction_id=order.transaction_id,
            max_attempts=3,
            now_utc=NOW + timedelta(minutes=5),
        )
        listing = await ListingService.get(session, listing_id)

    assert outcome == "APPLIED"
    assert listing.payment_status == "paid"
    assert listing.state == "PENDING_REVIEW"


async def test_fulfillment_moves_to_review_after_max_attempts(session_factory, monkeypatch) -> None:
    async def _broken_apply(*args, **kwargs):
        raise ListingNotFoundError

    monkeypatch.setattr(ListingService, "apply_package_purchase", staticmethod(_broken_apply))
    async with session_factory.begin() as session:
        _, order = await _listing_with_order(session)
        await _verify(session, order.gateway_order_id, "pay_001")
        outcomes = [
            await PaymentService.retry_fulfillment(
                session,
                transaction_id=order.transaction_id,
                max_attempts=3,
                now_utc=NOW,
            )
            for _ in range(3)
        ]
        transaction = await _reload(session, order.gateway_order_id)

    assert outcomes == ["PENDING", "REVIEW", "REVIEW"]
    assert transaction.fulfillment_status == "REVIEW"
    assert transaction.fulfillment_attempts == 3


async def test_retry_fulfillment_reports_missing_transaction(session_factory) -> None:
    async with session_factory.begin() as session:
        outcome = await PaymentService.retry_fulfillment(
            session,
            transaction_id=uuid4(),
            max_attempts=3,
            now_utc=NOW,
        )
    assert outcome == "MISSING"


async def test_order_without_listing_needs_no_fulfillment(session_factory) -> None:
    async with session_factory.begin() as session:
        packages = await seed_catalog(session)
        order = await PaymentService.create_order(
            session,
            user_id="seller-1",
            package_id=packages["FEATURED_WEEKLY"].id,
            gateway=FakeGateway(),
            currency="INR",
            now_utc=NOW,
        )
        result = await _verify(session, order.gateway_order_id, "pay_001")

    assert result.fulfillment_status == "NOT_REQUIRED"
    assert result.listing_id is None


async def test_get_status_is_scoped_to_the_buyer(session_factory) -> None:
    async with session_factory.begin() as session:
        _, order = await _listing_with_order(session)
        await _verify(session, order.gateway_order_id, "pay_001")
        status = await PaymentService.get_status(
            session,
            gateway_order_id=order.gateway_order_id,
            user_id="seller-1",
        )
        with pytest.raises(TransactionNotFoundError):
            await PaymentService.get_status(
                session,
                gateway_order_id=order.gateway_order_id,
                user_id="seller-2",
            )

    assert status.status == "paid"
    assert status.fulfillment_status == "APPLIED"
    assert status.paid_at == NOW
