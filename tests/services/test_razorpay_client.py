from __future__ import annotations

import base64
import json
from types import SimpleNamespace

import httpx
import pytest

from app.services.razorpay_client import RazorpayClient, RazorpayClientError, build_razorpay_client


def _client(handler) -> RazorpayClient:
    return RazorpayClient(
        key_id="rzp_test_key",
        key_secret="rzp_test_secret",
        base_url="https://api.razorpay.test/v1/",
        transport=httpx.MockTransport(handler),
    )


async def test_create_order_posts_amount_in_minor_units() -> None:
    seen: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(
            200,
            json={
                "id": "order_EKwxwAgItmmXdp",
                "amount": 29900,
                "currency": "INR",
                "receipt": "txn_abc",
                "status": "created",
            },
        )

    order = await _client(handler).create_order(
        amount_minor=29900,
        currency="INR",
        receipt="txn_abc",
        notes={"listing_id": "l-1"},
    )

    assert order.order_id == "order_EKwxwAgItmmXdp"
    assert order.amount_minor == 29900
    assert order.status == "created"
    assert seen["url"] == "https://api.razorpay.test/v1/orders"
    assert seen["body"] == {
        "amount": 29900,
        "currency": "INR",
        "receipt": "txn_abc",
        "notes": {"listing_id": "l-1"},
    }
    expected_auth = base64.b64encode(b"rzp_test_key:rzp_test_secret").decode()
    assert seen["auth"] == f"Basic {expected_auth}"


async def test_create_order_maps_rejection_to_client_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"error": {"code": "BAD_REQUEST_ERROR"}})

    with pytest.raises(RazorpayClientError, match="order_rejected"):
        await _client(handler).create_order(amount_minor=100, currency="INR", receipt="r", notes={})


async def test_create_order_maps_transport_failure_to_client_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(RazorpayClientError, match="transport_failed"):
        await _client(handler).create_order(amount_minor=100, currency="INR", receipt="r", notes={})


async def test_create_order_rejects_response_without_id() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"status": "created"})

    with pytest.raises(RazorpayClientError, match="malformed_response"):
        await _client(handler).create_order(amount_minor=100, currency="INR", receipt="r", notes={})


def test_build_razorpay_client_reads_settings() -> None:
    client = build_razorpay_client(
        SimpleNamespace(
            razorpay_key_id="rzp_live_key",
            razorpay_key_secret="secret",
            razorpay_api_base_url="https://api.razorpay.com/v1",
            razorpay_timeout_seconds=5.0,
        )
    )
    assert client.key_id == "rzp_live_key"
