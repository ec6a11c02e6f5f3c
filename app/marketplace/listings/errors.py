from app.marketplace.errors import InvalidStateError, NotFoundError, ValidationError


class ListingValidationError(ValidationError):
    def __init__(self, field: str) -> None:
        super().__init__(field)
        self.field = field


class ListingNotFoundError(NotFoundError):
    pass


class ListingInvalidStateError(InvalidStateError):
    pass


class ListingPaymentRequiredError(ListingInvalidStateError):
    pass
