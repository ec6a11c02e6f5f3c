from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.listings import Listing
from app.db.models.transactions import Transaction


class TransactionsRepo:
    @staticmethod
    async def create(session: AsyncSession, *, transaction: Transaction) -> Transaction:
        session.add(transaction)
        await session.flush()
        return transaction

    @staticmethod
    async def get_by_id(session: AsyncSession, transaction_id: UUID) -> Transaction | None:
        return await session.get(Transaction, transaction_id)

    @staticmethod
    async def get_by_gateway_order_id(
        session: AsyncSession,
        gateway_order_id: str,
    ) -> Transaction | None:
        stmt = (
            select(Transaction)
            .where(Transaction.gateway_order_id == gateway_order_id)
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_id_for_update(
        session: AsyncSession,
        transaction_id: UUID,
    ) -> Transaction | None:
        stmt = (
            select(Transaction)
            .where(Transaction.id == transaction_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def mark_paid_if_open(
        session: AsyncSession,
        *,
        gateway_order_id: str,
        gateway_payment_id: str,
        gateway_signature: str | None,
        fulfillment_status: str,
        now_utc: datetime,
    ) -> int:
        stmt = (
            update(Transaction)
            .where(
                Transaction.gateway_order_id == gateway_order_id,
                Transaction.status.in_(("pending", "failed")),
            )
            .values(
                status="paid",
                gateway_payment_id=gateway_payment_id,
                gateway_signature=gateway_signature,
                fulfillment_status=fulfillment_status,
                failure_reason=None,
                paid_at=now_utc,
                updated_at=now_utc,
            )
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return int(result.rowcount or 0)

    @staticmethod
    async def mark_failed_if_pending(
        session: AsyncSession,
        *,
        gateway_order_id: str,
        failure_reason: str | None,
        now_utc: datetime,
    ) -> int:
        stmt = (
            update(Transaction)
            .where(
                Transaction.gateway_order_id == gateway_order_id,
                Transaction.status == "pending",
            )
            .values(status="failed", failure_reason=failure_reason, updated_at=now_utc)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return int(result.rowcount or 0)

    @staticmethod
    async def set_fulfillment_status(
        session: AsyncSession,
        *,
        transaction_id: UUID,
        fulfillment_status: str,
        now_utc: datetime,
        increment_attempts: bool = False,
    ) -> int:
        values: dict[str, object] = {
            "fulfillment_status": fulfillment_status,
            "updated_at": now_utc,
        }
        if increment_attempts:
            values["fulfillment_attempts"] = Transaction.fulfillment_attempts + 1
        stmt = (
            update(Transaction)
            .where(Transaction.id == transaction_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return int(result.rowcount or 0)

    @staticmethod
    async def count_paid_for_user(
        session: AsyncSession,
        *,
        user_id: str,
        exclude_transaction_id: UUID | None = None,
    ) -> int:
        stmt = select(func.count(Transaction.id)).where(
            Transaction.user_id == user_id,
            Transaction.status == "paid",
        )
        if exclude_transaction_id is not None:
            stmt = stmt.where(Transaction.id != exclude_transaction_id)
        result = await session.execute(stmt)
        return int(result.scalar_one() or 0)

    @staticmethod
    async def list_paid_pending_fulfillment(
        session: AsyncSession,
        *,
        paid_before_utc: datetime,
        limit: int = 100,
    ) -> list[Transaction]:
        stmt = (
            select(Transaction)
            .where(
                Transaction.status == "paid",
                Transaction.fulfillment_status == "PENDING",
                Transaction.listing_id.is_not(None),
                Transaction.paid_at <= paid_before_utc,
            )
            .order_by(Transaction.paid_at.asc(), Transaction.id.asc())
            .limit(limit)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def count_paid_by_fulfillment_status(session: AsyncSession) -> dict[str, int]:
        stmt = (
            select(Transaction.fulfillment_status, func.count(Transaction.id))
            .where(Transaction.status == "paid")
            .group_by(Transaction.fulfillment_status)
        )
        result = await session.execute(stmt)
        return {str(status): int(count) for status, count in result.all()}

    @staticmethod
    async def count_applied_without_listing_payment(session: AsyncSession) -> int:
        stmt = (
            select(func.count(Transaction.id))
            .join(Listing, Listing.id == Transaction.listing_id)
            .where(
                Transaction.status == "paid",
                Transaction.fulfillment_status == "APPLIED",
                or_(
                    Listing.payment_status != "paid",
                    Listing.gateway_order_id.is_(None),
                ),
            )
        )
        result = await session.execute(stmt)
        return int(result.scalar_one() or 0)

    @staticmethod
    async def count_paid_pending_fulfillment_older_than(
        session: AsyncSession,
        *,
        paid_before_utc: datetime,
    ) -> int:
        stmt = select(func.count(Transaction.id)).where(
            Transaction.status == "paid",
            Transaction.fulfillment_status == "PENDING",
            Transaction.paid_at <= paid_before_utc,
        )
        result = await session.execute(stmt)
        return int(result.scalar_one() or 0)
