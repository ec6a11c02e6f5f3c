from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

import httpx
import structlog

from app.core.config import Settings

logger = structlog.get_logger(__name__)


class RazorpayClientError(Exception):
    pass


@dataclass(frozen=True, slots=True)
class GatewayOrder:
    order_id: str
    amount_minor: int
    currency: str
    receipt: str
    status: str


class PaymentGateway(Protocol):
    key_id: str

    async def create_order(
        self,
        *,
        amount_minor: int,
        currency: str,
        receipt: str,
        notes: dict[str, str],
    ) -> GatewayOrder: ...


class RazorpayClient:
    """Thin async client for the Razorpay Orders API."""

    def __init__(
        self,
        *,
        key_id: str,
        key_secret: str,
        base_url: str,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.key_id = key_id
        self._key_secret = key_secret
        self._base_url = base_url.rstrip("/")
        self._timeout_seconds = timeout_seconds
        self._transport = transport

    async def create_order(
        self,
        *,
        amount_minor: int,
        currency: str,
        receipt: str,
        notes: dict[str, str],
    ) -> GatewayOrder:
        body = {
            "amount": amount_minor,
            "currency": currency,
            "receipt": receipt,
            "notes": notes,
        }
        try:
            async with httpx.AsyncClient(
                base_url=self._base_url,
                auth=(self.key_id, self._key_secret),
                timeout=self._timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.post("/orders", json=body)
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "razorpay_order_rejected",
                status_code=exc.response.status_code,
                receipt=receipt,
            )
            raise RazorpayClientError("order_rejected") from exc
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("razorpay_order_transport_failed", receipt=receipt, error_type=type(exc).__name__)
            raise RazorpayClientError("transport_failed") from exc

        order_id = payload.get("id") if isinstance(payload, dict) else None
        if not isinstance(order_id, str) or not order_id:
            raise RazorpayClientError("malformed_response")
        return GatewayOrder(
            order_id=order_id,
            amount_minor=int(payload.get("amount", amount_minor)),
            currency=str(payload.get("currency", currency)),
            receipt=str(payload.get("receipt", receipt)),
            status=str(payload.get("status", "created")),
        )


def build_razorpay_client(settings: Settings) -> RazorpayClient:
    return RazorpayClient(
        key_id=settings.razorpay_key_id,
        key_secret=settings.razorpay_key_secret,
        base_url=settings.razorpay_api_base_url,
        timeout_seconds=settings.razorpay_timeout_seconds,
    )
