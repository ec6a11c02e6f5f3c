from __future__ import annotations

import hashlib
import hmac

from app.services.payment_signatures import (
    compute_payment_signature,
    compute_webhook_signature,
    is_valid_payment_signature,
    is_valid_webhook_signature,
)


def test_payment_signature_is_hmac_of_order_and_payment() -> None:
    expected = hmac.new(b"key_secret", b"order_9A33XWu170gUtm|pay_29QQoUBi66xm2f", hashlib.sha256).hexdigest()
    assert (
        compute_payment_signature(
            order_id="order_9A33XWu170gUtm",
            payment_id="pay_29QQoUBi66xm2f",
            key_secret="key_secret",
        )
        == expected
    )


def test_is_valid_payment_signature_rejects_tampering() -> None:
    signature = compute_payment_signature(order_id="order_1", payment_id="pay_1", key_secret="s3cret")

    assert is_valid_payment_signature(
        order_id="order_1",
        payment_id="pay_1",
        signature=signature,
        key_secret="s3cret",
    )
    assert is_valid_payment_signature(
        order_id="order_1",
        payment_id="pay_1",
        signature=f" {signature.upper()} ",
        key_secret="s3cret",
    )
    assert not is_valid_payment_signature(
        order_id="order_1",
        payment_id="pay_2",
        signature=signature,
        key_secret="s3cret",
    )
    assert not is_valid_payment_signature(
        order_id="order_1",
        payment_id="pay_1",
        signature=signature,
        key_secret="other",
    )
    assert not is_valid_payment_signature(
        order_id="order_1",
        payment_id="pay_1",
        signature=None,
        key_secret="s3cret",
    )
    assert not is_valid_payment_signature(
        order_id="order_1",
        payment_id="pay_1",
        signature=signature,
        key_secret="",
    )


def test_webhook_signature_covers_the_raw_body() -> None:
    body = b'{"event":"payment.captured"}'
    signature = compute_webhook_signature(body=body, webhook_secret="hook")

    assert is_valid_webhook_signature(body=body, signature=signature, webhook_secret="hook")
    assert not is_valid_webhook_signature(body=body + b" ", signature=signature, webhook_secret="hook")
    assert not is_valid_webhook_signature(body=body, signature=signature, webhook_secret="")
