from __future__ import annotations

from .amounts import to_minor_units
from .fulfillment import fulfill_transaction, retry_fulfillment
from .orders import create_order
from .settlement import get_status, settle_paid_order, verify_payment
from .webhooks import handle_webhook


class PaymentService:
    to_minor_units = staticmethod(to_minor_units)
    create_order = staticmethod(create_order)
    verify = staticmethod(verify_payment)
    get_status = staticmethod(get_status)
    handle_webhook = staticmethod(handle_webhook)
    settle_paid_order = staticmethod(settle_paid_order)
    fulfill_transaction = staticmethod(fulfill_transaction)
    retry_fulfillment = staticmethod(retry_fulfillment)


__all__ = ["PaymentService"]
