from app.marketplace.payments.service import PaymentService

__all__ = ["PaymentService"]
