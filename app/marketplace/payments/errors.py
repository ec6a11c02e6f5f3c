from app.marketplace.errors import (
    InvalidAmountError,
    NotFoundError,
    SignatureMismatchError,
    TransientError,
    ValidationError,
)


class TransactionNotFoundError(NotFoundError):
    pass


class PaymentInvalidAmountError(InvalidAmountError):
    pass


class PaymentSignatureError(SignatureMismatchError):
    pass


class PaymentWebhookPayloadError(ValidationError):
    pass


class PaymentGatewayError(TransientError):
    pass


class PaymentStorageError(TransientError):
    pass


class PaymentPackageMismatchError(ValidationError):
    pass
