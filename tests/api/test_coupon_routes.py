from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from app.api.routes import payments as payment_routes
from tests.marketplace.marketplace_fixtures import FakeGateway, seed_catalog, sign_payment


@pytest.fixture(autouse=True)
def gateway(monkeypatch) -> FakeGateway:
    fake = FakeGateway()
    monkeypatch.setattr(payment_routes, "build_razorpay_client", lambda settings: fake)
    return fake


def _coupon_body(code: str, **overrides) -> dict:
    now = datetime.now(timezone.utc)
    body = {
        "code": code,
        "description": "Festive season offer",
        "discountType": "percentage",
        "discountValue": "10",
        "validFrom": (now - timedelta(days=1)).isoformat(),
        "validUntil": (now + timedelta(days=30)).isoformat(),
    }
    body.update(overrides)
    return body


async def _create_coupon(api_client, caller_headers, code: str, **overrides) -> dict:
    response = await api_client.post(
        "/admin/coupons",
        json=_coupon_body(code, **overrides),
        headers=caller_headers("admin-1", role="admin"),
    )
    assert response.status_code == 201
    return response.json()


async def _paid_order(api_client, headers, package_id) -> str:
    order = await api_client.post("/payments/orders", json={"packageId": str(package_id)}, headers=headers)
    order_id = order.json()["gatewayOrderId"]
    verified = await api_client.post(
        "/payments/verify",
        json={
            "gatewayOrderId": order_id,
            "gatewayPaymentId": f"pay_{order_id}",
            "signature": sign_payment(order_id, f"pay_{order_id}"),
        },
        headers=headers,
    )
    assert verified.json()["status"] == "paid"
    return verified.json()["transactionId"]


async def test_preview_applies_percentage_discount(api_client, caller_headers) -> None:
    await _create_coupon(api_client, caller_headers, "SAVE10")

    response = await api_client.post(
        "/coupons/preview",
        json={"code": " save10 ", "purchaseAmount": "599"},
        headers=caller_headers("buyer-1"),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["code"] == "SAVE10"
    assert body["discountAmount"] == "59.90"
    assert body["finalAmount"] == "539.10"


async def test_preview_unknown_code_is_not_found(api_client, caller_headers) -> None:
    response = await api_client.post(
        "/coupons/preview",
        json={"code": "NOPE", "purchaseAmount": "599"},
        headers=caller_headers("buyer-1"),
    )
    assert response.status_code == 404
    assert response.json() == {"detail": {"code": "E_COUPON_NOT_FOUND"}}


async def test_preview_rule_violation_reports_reason(api_client, caller_headers) -> None:
    await _create_coupon(api_client, caller_headers, "BIGSPEND", minPurchaseAmount="2000")

    response = await api_client.post(
        "/coupons/preview",
        json={"code": "BIGSPEND", "purchaseAmount": "599"},
        headers=caller_headers("buyer-1"),
    )

    assert response.status_code == 400
    assert response.json() == {
        "detail": {"code": "E_COUPON_RULE_VIOLATION", "reason": "MIN_PURCHASE_NOT_MET"}
    }


async def test_preview_requires_positive_amount(api_client, caller_headers) -> None:
    response = await api_client.post(
        "/coupons/preview",
        json={"code": "SAVE10", "purchaseAmount": "0"},
        headers=caller_headers("buyer-1"),
    )
    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "E_VALIDATION"


async def test_commit_records_usage_once(api_client, caller_headers, session_factory) -> None:
    async with session_factory.begin() as session:
        packages = await seed_catalog(session)
    coupon = await _create_coupon(
        api_client,
        caller_headers,
        "ONCE50",
        discountType="fixed",
        discountValue="50",
    )
    headers = caller_headers("buyer-1")
    transaction_id = await _paid_order(api_client, headers, packages["FEATURED_45"].id)

    first = await api_client.post(
        "/coupons/commit",
        json={"couponId": coupon["id"], "transactionId": transaction_id},
        headers=headers,
    )
    second = await api_client.post(
        "/coupons/commit",
        json={"couponId": coupon["id"], "transactionId": transaction_id},
        headers=headers,
    )

    assert first.status_code == 200
    assert first.json()["discountAmount"] == "50.00"
    assert first.json()["finalAmount"] == "249.00"
    assert second.status_code == 400
    assert second.json() == {"detail": {"code": "E_COUPON_ALREADY_USED"}}

    listed = await api_client.get("/admin/coupons", headers=caller_headers("admin-1", role="admin"))
    assert listed.json()["coupons"][0]["usedCount"] == 1


async def test_commit_against_foreign_transaction_is_not_found(
    api_client,
    caller_headers,
    session_factory,
) -> None:
    async with session_factory.begin() as session:
        packages = await seed_catalog(session)
    coupon = await _create_coupon(api_client, caller_headers, "SAVE10")
    transaction_id = await _paid_order(api_client, caller_headers("buyer-1"), packages["PREMIUM_60"].id)

    response = await api_client.post(
        "/coupons/commit",
        json={"couponId": coupon["id"], "transactionId": transaction_id},
        headers=caller_headers("buyer-2"),
    )

    assert response.status_code == 404
    assert response.json() == {"detail": {"code": "E_TRANSACTION_NOT_FOUND"}}


async def test_commit_beyond_usage_limit_is_rejected(api_client, caller_headers, session_factory) -> None:
    async with session_factory.begin() as session:
        packages = await seed_catalog(session)
    coupon = await _create_coupon(api_client, caller_headers, "SINGLE", usageLimit=1)
    first_txn = await _paid_order(api_client, caller_headers("buyer-1"), packages["PREMIUM_60"].id)
    second_txn = await _paid_order(api_client, caller_headers("buyer-2"), packages["PREMIUM_60"].id)

    first = await api_client.post(
        "/coupons/commit",
        json={"couponId": coupon["id"], "transactionId": first_txn},
        headers=caller_headers("buyer-1"),
    )
    second = await api_client.post(
        "/coupons/commit",
        json={"couponId": coupon["id"], "transactionId": second_txn},
        headers=caller_headers("buyer-2"),
    )

    assert first.status_code == 200
    assert second.status_code == 400
    assert second.json() == {"detail": {"code": "E_COUPON_LIMIT_EXCEEDED"}}
