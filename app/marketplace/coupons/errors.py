from app.marketplace.errors import (
    AlreadyUsedError,
    LimitExceededError,
    NotFoundError,
    RuleViolationError,
    ValidationError,
)


class CouponNotFoundError(NotFoundError):
    pass


class CouponAlreadyUsedError(AlreadyUsedError):
    pass


class CouponLimitExceededError(LimitExceededError):
    pass


class CouponRuleViolationError(RuleViolationError):
    pass


class CouponValidationError(ValidationError):
    pass


class CouponCodeTakenError(CouponValidationError):
    pass
