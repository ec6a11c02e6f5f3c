class MarketplaceError(Exception):
    pass


class ValidationError(MarketplaceError):
    pass


class NotFoundError(MarketplaceError):
    pass


class InvalidStateError(MarketplaceError):
    pass


class SignatureMismatchError(MarketplaceError):
    pass


class AlreadyUsedError(MarketplaceError):
    pass


class LimitExceededError(MarketplaceError):
    pass


class RuleViolationError(MarketplaceError):
    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class InvalidAmountError(MarketplaceError):
    pass


class TransientError(MarketplaceError):
    pass
