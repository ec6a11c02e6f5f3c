from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.coupon_usages import CouponUsage
from app.db.models.coupons import Coupon
from app.db.repo.coupons_repo import CouponsRepo
from app.db.repo.transactions_repo import TransactionsRepo
from app.marketplace.coupons.errors import (
    CouponAlreadyUsedError,
    CouponCodeTakenError,
    CouponLimitExceededError,
    CouponNotFoundError,
    CouponRuleViolationError,
    CouponValidationError,
)
from app.marketplace.coupons.rules import (
    COUPON_APPLICABILITY,
    COUPON_DISCOUNT_TYPES,
    REASON_FIRST_TIME_USERS_ONLY,
    REASON_MIN_PURCHASE_NOT_MET,
    REASON_NOT_IN_VALIDITY_WINDOW,
    REASON_PACKAGE_NOT_ELIGIBLE,
    compute_discount,
    has_usage_capacity,
    is_package_eligible,
    is_within_validity_window,
    meets_min_purchase,
    quantize_money,
)
from app.marketplace.coupons.types import CouponCommitResult, CouponPreviewResult
from app.marketplace.payments.errors import TransactionNotFoundError
from app.services.coupon_codes import is_well_formed_coupon_code, normalize_coupon_code

logger = structlog.get_logger(__name__)

COUPON_LIST_STATUSES = ("active", "inactive", "all")
COUPON_EDITABLE_FIELDS = (
    "code",
    "description",
    "discount_type",
    "discount_value",
    "min_purchase_amount",
    "max_discount_amount",
    "valid_from",
    "valid_until",
    "usage_limit",
    "applicable_for",
    "package_ids",
    "is_active",
)
COUPON_NULLABLE_FIELDS = ("min_purchase_amount", "max_discount_amount", "usage_limit")


class CouponService:
    @staticmethod
    async def _check_rules(
        session: AsyncSession,
        *,
        coupon: Coupon | None,
        user_id: str,
        package_id: UUID | None,
        purchase_amount: Decimal,
        now_utc: datetime,
        current_transaction_id: UUID | None = None,
    ) -> Coupon:
        """Run the coupon rules in order; the first failing rule raises."""
        if coupon is None or not coupon.is_active:
            raise CouponNotFoundError
        if not is_within_validity_window(coupon, now_utc=now_utc):
            raise CouponRuleViolationError(REASON_NOT_IN_VALIDITY_WINDOW)
        if not has_usage_capacity(coupon):
            raise CouponLimitExceededError
        existing_usage = await CouponsRepo.get_usage_for_user(
            session,
            coupon_id=coupon.id,
            user_id=user_id,
        )
        if existing_usage is not None:
            raise CouponAlreadyUsedError
        if coupon.applicable_for == "first_time_users":
            prior_paid = await TransactionsRepo.count_paid_for_user(
                session,
                user_id=user_id,
                exclude_transaction_id=current_transaction_id,
            )
            if prior_paid > 0:
                raise CouponRuleViolationError(REASON_FIRST_TIME_USERS_ONLY)
        if not meets_min_purchase(coupon, purchase_amount=purchase_amount):
            raise CouponRuleViolationError(REASON_MIN_PURCHASE_NOT_MET)
        if not is_package_eligible(coupon, package_id=package_id):
            raise CouponRuleViolationError(REASON_PACKAGE_NOT_ELIGIBLE)
        return coupon

    @staticmethod
    def _discount_for(coupon: Coupon, *, purchase_amount: Decimal) -> Decimal:
        return compute_discount(
            discount_type=coupon.discount_type,
            discount_value=coupon.discount_value,
            max_discount_amount=coupon.max_discount_amount,
            purchase_amount=purchase_amount,
        )

    @staticmethod
    async def preview(
        session: AsyncSession,
        *,
        code: str,
        user_id: str,
        purchase_amount: Decimal,
        now_utc: datetime,
        package_id: UUID | None = None,
    ) -> CouponPreviewResult:
        if purchase_amount <= 0:
            raise CouponValidationError("purchase_amount")
        normalized_code = normalize_coupon_code(code)
        if not normalized_code:
            raise CouponValidationError("code")

        coupon = await CouponService._check_rules(
            session,
            coupon=await CouponsRepo.get_by_code(session, normalized_code),
            user_id=user_id,
            package_id=package_id,
            purchase_amount=purchase_amount,
            now_utc=now_utc,
        )
        discount_amount = CouponService._discount_for(coupon, purchase_amount=purchase_amount)
        return CouponPreviewResult(
            coupon_id=coupon.id,
            code=coupon.code,
            discount_amount=discount_amount,
            final_amount=quantize_money(purchase_amount - discount_amount),
        )

    @staticmethod
    async def commit_usage(
        session: AsyncSession,
        *,
        coupon_id: UUID,
        user_id: str,
        transaction_id: UUID,
        now_utc: datetime,
    ) -> CouponCommitResult:
        transaction = await TransactionsRepo.get_by_id(session, transaction_id)
        if transaction is None or transaction.user_id != user_id or transaction.status != "paid":
            raise TransactionNotFoundError

        # The amount and package come from the stored transaction, never the caller.
        coupon = await CouponService._check_rules(
            session,
            coupon=await CouponsRepo.get_by_id_for_update(session, coupon_id),
            user_id=user_id,
            package_id=transaction.package_id,
            purchase_amount=transaction.amount,
            now_utc=now_utc,
            current_transaction_id=transaction.id,
        )
        discount_amount = CouponService._discount_for(coupon, purchase_amount=transaction.amount)

        usage_id = uuid4()
        # The usage row and the counter bump commit or roll back together.
        try:
            async with session.begin_nested():
                await CouponsRepo.create_usage(
                    session,
                    usage=CouponUsage(
                        id=usage_id,
                        coupon_id=coupon.id,
                        user_id=user_id,
                        transaction_id=transaction.id,
                        discount_amount=discount_amount,
                        used_at=now_utc,
                    ),
                )
                incremented = await CouponsRepo.increment_used_count_if_available(
                    session,
                    coupon_id=coupon.id,
                    now_utc=now_utc,
                )
                if incremented == 0:
                    raise CouponLimitExceededError
        except IntegrityError as exc:
            raise CouponAlreadyUsedError from exc

        logger.info(
            "coupon_usage_committed",
            coupon_id=str(coupon.id),
            coupon_code=coupon.code,
            user_id=user_id,
            transaction_id=str(transaction.id),
            discount_amount=str(discount_amount),
        )
        return CouponCommitResult(
            coupon_id=coupon.id,
            usage_id=usage_id,
            transaction_id=transaction.id,
            discount_amount=discount_amount,
            final_amount=quantize_money(transaction.amount - discount_amount),
        )

    @staticmethod
    def _validate_terms(
        *,
        code: str,
        discount_type: str,
        discount_value: Decimal,
        valid_from: datetime,
        valid_until: datetime,
        usage_limit: int | None,
        applicable_for: str,
        package_ids: Sequence[UUID],
        min_purchase_amount: Decimal | None,
        max_discount_amount: Decimal | None,
    ) -> None:
        """Raise ``CouponValidationError`` naming the first bad field."""
        if not is_well_formed_coupon_code(code):
            raise CouponValidationError("code")
        if discount_type not in COUPON_DISCOUNT_TYPES:
            raise CouponValidationError("discount_type")
        if discount_value <= 0 or (discount_type == "percentage" and discount_value > 100):
            raise CouponValidationError("discount_value")
        if valid_from >= valid_until:
            raise CouponValidationError("valid_until")
        if usage_limit is not None and usage_limit <= 0:
            raise CouponValidationError("usage_limit")
        if applicable_for not in COUPON_APPLICABILITY:
            raise CouponValidationError("applicable_for")
        if applicable_for == "specific_packages" and not package_ids:
            raise CouponValidationError("package_ids")
        for field_name, amount in (
            ("min_purchase_amount", min_purchase_amount),
            ("max_discount_amount", max_discount_amount),
        ):
            if amount is not None and amount < 0:
                raise CouponValidationError(field_name)

    @staticmethod
    async def create_coupon(
        session: AsyncSession,
        *,
        code: str,
        description: str,
        discount_type: str,
        discount_value: Decimal,
        valid_from: datetime,
        valid_until: datetime,
        created_by: str,
        now_utc: datetime,
        min_purchase_amount: Decimal | None = None,
        max_discount_amount: Decimal | None = None,
        usage_limit: int | None = None,
        applicable_for: str = "all",
        package_ids: Sequence[UUID] = (),
        is_active: bool = True,
    ) -> Coupon:
        normalized_code = normalize_coupon_code(code)
        CouponService._validate_terms(
            code=normalized_code,
            discount_type=discount_type,
            discount_value=discount_value,
            valid_from=valid_from,
            valid_until=valid_until,
            usage_limit=usage_limit,
            applicable_for=applicable_for,
            package_ids=package_ids,
            min_purchase_amount=min_purchase_amount,
            max_discount_amount=max_discount_amount,
        )

        if await CouponsRepo.get_by_code(session, normalized_code) is not None:
            raise CouponCodeTakenError("code")

        try:
            async with session.begin_nested():
                coupon = await CouponsRepo.create(
                    session,
                    coupon=Coupon(
                        id=uuid4(),
                        code=normalized_code,
                        description=description.strip(),
                        discount_type=discount_type,
                        discount_value=quantize_money(discount_value),
                        min_purchase_amount=min_purchase_amount,
                        max_discount_amount=max_discount_amount,
                        valid_from=valid_from,
                        valid_until=valid_until,
                        usage_limit=usage_limit,
                        used_count=0,
                        applicable_for=applicable_for,
                        package_ids=[str(package_id) for package_id in package_ids],
                        is_active=is_active,
                        created_by=created_by,
                        created_at=now_utc,
                        updated_at=now_utc,
                    ),
                )
        except IntegrityError as exc:
            raise CouponCodeTakenError("code") from exc

        logger.info(
            "coupon_created",
            coupon_id=str(coupon.id),
            coupon_code=coupon.code,
            discount_type=discount_type,
            created_by=created_by,
        )
        return coupon

    @staticmethod
    async def update_coupon(
        session: AsyncSession,
        *,
        coupon_id: UUID,
        changes: Mapping[str, Any],
        updated_by: str,
        now_utc: datetime,
    ) -> Coupon:
        """Apply a partial edit, re-validating the coupon as a whole.

        Only fields present in ``changes`` are touched; ``None`` clears the
        optional limits. A coupon that has been redeemed keeps its code.
        """
        for field_name, value in changes.items():
            if field_name not in COUPON_EDITABLE_FIELDS:
                raise CouponValidationError(field_name)
            if value is None and field_name not in COUPON_NULLABLE_FIELDS:
                raise CouponValidationError(field_name)

        coupon = await CouponsRepo.get_by_id_for_update(session, coupon_id)
        if coupon is None:
            raise CouponNotFoundError

        values: dict[str, Any] = {
            field_name: getattr(coupon, field_name) for field_name in COUPON_EDITABLE_FIELDS
        }
        values["package_ids"] = [UUID(str(package_id)) for package_id in coupon.package_ids or ()]
        values.update(changes)
        values["code"] = normalize_coupon_code(values["code"])

        code_changed = values["code"] != coupon.code
        if code_changed and coupon.used_count > 0:
            raise CouponValidationError("code")
        CouponService._validate_terms(
            code=values["code"],
            discount_type=values["discount_type"],
            discount_value=values["discount_value"],
            valid_from=values["valid_from"],
            valid_until=values["valid_until"],
            usage_limit=values["usage_limit"],
            applicable_for=values["applicable_for"],
            package_ids=values["package_ids"],
            min_purchase_amount=values["min_purchase_amount"],
            max_discount_amount=values["max_discount_amount"],
        )
        if values["usage_limit"] is not None and values["usage_limit"] < coupon.used_count:
            raise CouponValidationError("usage_limit")
        if code_changed and await CouponsRepo.get_by_code(session, values["code"]) is not None:
            raise CouponCodeTakenError("code")

        values["description"] = values["description"].strip()
        values["discount_value"] = quantize_money(values["discount_value"])
        values["package_ids"] = [str(package_id) for package_id in values["package_ids"]]
        for field_name, value in values.items():
            setattr(coupon, field_name, value)
        coupon.updated_at = now_utc

        try:
            async with session.begin_nested():
                await CouponsRepo.save(session, coupon=coupon)
        except IntegrityError as exc:
            raise CouponCodeTakenError("code") from exc

        logger.info(
            "coupon_updated",
            coupon_id=str(coupon.id),
            coupon_code=coupon.code,
            fields=sorted(changes),
            updated_by=updated_by,
        )
        return coupon

    @staticmethod
    async def list_coupons(
        session: AsyncSession,
        *,
        status: str = "all",
        limit: int = 50,
    ) -> list[Coupon]:
        if status not in COUPON_LIST_STATUSES:
            raise CouponValidationError("status")
        is_active = None if status == "all" else status == "active"
        return await CouponsRepo.list_coupons(session, is_active=is_active, limit=limit)

    @staticmethod
    async def set_active(
        session: AsyncSession,
        *,
        coupon_id: UUID,
        is_active: bool,
        now_utc: datetime,
    ) -> Coupon:
        updated = await CouponsRepo.set_active(
            session,
            coupon_id=coupon_id,
            is_active=is_active,
            now_utc=now_utc,
        )
        if updated == 0:
            raise CouponNotFoundError
        coupon = await CouponsRepo.get_by_id_for_update(session, coupon_id)
        if coupon is None:
            raise CouponNotFoundError
        logger.info("coupon_status_changed", coupon_id=str(coupon_id), is_active=is_active)
        return coupon
