from __future__ import annotations

import hashlib
import hmac


def compute_payment_signature(*, order_id: str, payment_id: str, key_secret: str) -> str:
    digest = hmac.new(
        key_secret.encode("utf-8"),
        f"{order_id}|{payment_id}".encode("utf-8"),
        hashlib.sha256,
    )
    return digest.hexdigest()


def is_valid_payment_signature(
    *,
    order_id: str,
    payment_id: str,
    signature: str | None,
    key_secret: str,
) -> bool:
    if not key_secret or not signature:
        return False
    expected = compute_payment_signature(
        order_id=order_id,
        payment_id=payment_id,
        key_secret=key_secret,
    )
    return hmac.compare_digest(expected, signature.strip().lower())


def compute_webhook_signature(*, body: bytes, webhook_secret: str) -> str:
    return hmac.new(webhook_secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


def is_valid_webhook_signature(
    *,
    body: bytes,
    signature: str | None,
    webhook_secret: str,
) -> bool:
    if not webhook_secret or not signature:
        return False
    expected = compute_webhook_signature(body=body, webhook_secret=webhook_secret)
    return hmac.compare_digest(expected, signature.strip().lower())
