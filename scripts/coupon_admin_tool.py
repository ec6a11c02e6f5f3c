from __future__ import annotations

import argparse
import asyncio
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from uuid import UUID

from app.db.session import SessionLocal
from app.marketplace.coupons import CouponService
from app.marketplace.coupons.errors import CouponValidationError


def parse_utc_datetime(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _parse_amount(value: str) -> Decimal:
    try:
        return Decimal(value)
    except InvalidOperation as exc:
        raise argparse.ArgumentTypeError(f"not a decimal amount: {value}") from exc


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create, list and toggle listing coupons")
    subparsers = parser.add_subparsers(dest="command", required=True)

    create = subparsers.add_parser("create")
    create.add_argument("--code", required=True)
    create.add_argument("--description", required=True)
    create.add_argument("--discount-type", choices=("percentage", "fixed"), required=True)
    create.add_argument("--discount-value", type=_parse_amount, required=True)
    create.add_argument("--min-purchase-amount", type=_parse_amount)
    create.add_argument("--max-discount-amount", type=_parse_amount)
    create.add_argument("--valid-from", required=True, help="ISO datetime")
    create.add_argument("--valid-until", required=True, help="ISO datetime")
    create.add_argument("--usage-limit", type=int)
    create.add_argument(
        "--applicable-for",
        choices=("all", "specific_packages", "first_time_users"),
        default="all",
    )
    create.add_argument("--package-id", action="append", type=UUID, default=[])
    create.add_argument("--created-by", required=True)
    create.add_argument("--inactive", action="store_true")

    listing = subparsers.add_parser("list")
    listing.add_argument("--status", choices=("active", "inactive", "all"), default="all")
    listing.add_argument("--limit", type=int, default=50)

    toggle = subparsers.add_parser("set-status")
    toggle.add_argument("--coupon-id", type=UUID, required=True)
    toggle.add_argument("--active", choices=("true", "false"), required=True)
    return parser.parse_args()


async def _create(args: argparse.Namespace) -> int:
    now_utc = datetime.now(timezone.utc)
    try:
        async with SessionLocal.begin() as session:
            coupon = await CouponService.create_coupon(
                session,
                code=args.code,
                description=args.description,
                discount_type=args.discount_type,
                discount_value=args.discount_value,
                valid_from=parse_utc_datetime(args.valid_from),
                valid_until=parse_utc_datetime(args.valid_until),
                created_by=args.created_by,
                now_utc=now_utc,
                min_purchase_amount=args.min_purchase_amount,
                max_discount_amount=args.max_discount_amount,
                usage_limit=args.usage_limit,
                applicable_for=args.applicable_for,
                package_ids=args.package_id,
                is_active=not args.inactive,
            )
            coupon_id, coupon_code = coupon.id, coupon.code
    except CouponValidationError as exc:
        print(f"coupon_admin_tool: invalid field={exc}")  # noqa: T201
        return 2

    print(f"created coupon_id={coupon_id} code={coupon_code}")  # noqa: T201
    return 0


async def _list(args: argparse.Namespace) -> int:
    async with SessionLocal.begin() as session:
        coupons = await CouponService.list_coupons(session, status=args.status, limit=args.limit)
        for coupon in coupons:
            print(  # noqa: T201
                f"{coupon.id} code={coupon.code} type={coupon.discount_type} "
                f"value={coupon.discount_value} used={coupon.used_count}/{coupon.usage_limit or '-'} "
                f"active={coupon.is_active} valid_until={coupon.valid_until.isoformat()}"
            )
    return 0


async def _set_status(args: argparse.Namespace) -> int:
    async with SessionLocal.begin() as session:
        coupon = await CouponService.set_active(
            session,
            coupon_id=args.coupon_id,
            is_active=args.active == "true",
            now_utc=datetime.now(timezone.utc),
        )
        print(f"coupon_id={coupon.id} active={coupon.is_active}")  # noqa: T201
    return 0


async def _run() -> int:
    args = _parse_args()
    if args.command == "create":
        return await _create(args)
    if args.command == "list":
        return await _list(args)
    return await _set_status(args)


def main() -> int:
    return asyncio.run(_run())


if __name__ == "__main__":
    raise SystemExit(main())
