from __future__ import annotations

from datetime import datetime, timedelta, timezone
from uuid import UUID

import structlog
from celery.schedules import crontab

from app.core.config import get_settings
from app.db.repo.transactions_repo import TransactionsRepo
from app.db.session import SessionLocal
from app.marketplace.payments.service import PaymentService
from app.services.payments_reliability import compute_reconciliation_diff, reconciliation_status
from app.workers.asyncio_runner import run_async_job
from app.workers.celery_app import celery_app

logger = structlog.get_logger(__name__)

RETRY_OUTCOMES = {
    "APPLIED": "applied",
    "PENDING": "retryable_failure",
    "REVIEW": "review",
    "MISSING": "missing",
}


async def _retry_single_transaction(
    transaction_id: UUID,
    *,
    max_attempts: int,
    now_utc: datetime,
) -> str:
    async with SessionLocal.begin() as session:
        fulfillment_status = await PaymentService.retry_fulfillment(
            session,
            transaction_id=transaction_id,
            max_attempts=max_attempts,
            now_utc=now_utc,
        )
    return RETRY_OUTCOMES.get(fulfillment_status, "skipped")


async def reconcile_unfulfilled_payments_async(
    *,
    batch_size: int = 100,
    stale_minutes: int = 2,
) -> dict[str, int]:
    now_utc = datetime.now(timezone.utc)
    stale_cutoff = now_utc - timedelta(minutes=stale_minutes)
    max_attempts = get_settings().payment_fulfillment_max_attempts

    async with SessionLocal.begin() as session:
        candidates = await TransactionsRepo.list_paid_pending_fulfillment(
            session,
            paid_before_utc=stale_cutoff,
            limit=batch_size,
        )
        candidate_ids = [transaction.id for transaction in candidates]

    summary: dict[str, int] = {
        "examined": len(candidate_ids),
        "applied": 0,
        "review": 0,
        "retryable_failure": 0,
        "skipped": 0,
        "missing": 0,
        "errors": 0,
    }

    for transaction_id in candidate_ids:
        try:
            outcome = await _retry_single_transaction(
                transaction_id,
                max_attempts=max_attempts,
                now_utc=now_utc,
            )
        except Exception:
            summary["errors"] += 1
            logger.exception("payment_fulfillment_retry_error", transaction_id=str(transaction_id))
            continue

        summary[outcome] = summary.get(outcome, 0) + 1

    if summary["review"] > 0 or summary["errors"] > 0:
        logger.warning("payments_fulfillment_review_required", **summary)
    logger.info("unfulfilled_payments_reconcile_finished", **summary)
    return summary


async def run_payments_reconciliation_async(*, stale_minutes: int = 30) -> dict[str, int | str]:
    started_at = datetime.now(timezone.utc)
    stale_cutoff = started_at - timedelta(minutes=stale_minutes)

    async with SessionLocal.begin() as session:
        fulfillment_counts = await TransactionsRepo.count_paid_by_fulfillment_status(session)
        stale_pending_count = await TransactionsRepo.count_paid_pending_fulfillment_older_than(
            session,
            paid_before_utc=stale_cutoff,
        )
        applied_without_listing_payment_count = await TransactionsRepo.count_applied_without_listing_payment(
            session
        )

    diff_count = compute_reconciliation_diff(
        fulfillment_counts=fulfillment_counts,
        stale_pending_count=stale_pending_count,
        applied_without_listing_payment_count=applied_without_listing_payment_count,
    )
    status = reconciliation_status(diff_count)

    result: dict[str, int | str] = {
        "paid_transactions_count": sum(fulfillment_counts.values()),
        "applied_count": fulfillment_counts.get("APPLIED", 0),
        "pending_count": fulfillment_counts.get("PENDING", 0),
        "review_count": fulfillment_counts.get("REVIEW", 0),
        "stale_pending_count": stale_pending_count,
        "applied_without_listing_payment_count": applied_without_listing_payment_count,
        "diff_count": diff_count,
        "status": status,
    }
    if diff_count > 0:
        logger.warning("payments_reconciliation_diff_detected", **result)
    else:
        logger.info("payments_reconciliation_finished", **result)
    return result


@celery_app.task(name="app.workers.tasks.payments_reliability.reconcile_unfulfilled_payments")
def reconcile_unfulfilled_payments(batch_size: int = 100, stale_minutes: int = 2) -> dict[str, int]:
    return run_async_job(
        reconcile_unfulfilled_payments_async(
            batch_size=batch_size,
            stale_minutes=stale_minutes,
        )
    )


@celery_app.task(name="app.workers.tasks.payments_reliability.run_payments_reconciliation")
def run_payments_reconciliation(stale_minutes: int = 30) -> dict[str, int | str]:
    return run_async_job(run_payments_reconciliation_async(stale_minutes=stale_minutes))


celery_app.conf.beat_schedule = celery_app.conf.beat_schedule or {}
celery_app.conf.beat_schedule.update(
    {
        "reconcile-unfulfilled-payments-every-5-minutes": {
            "task": "app.workers.tasks.payments_reliability.reconcile_unfulfilled_payments",
            "schedule": 300.0,
            "options": {"queue": "q_high"},
        },
        "payments-reconciliation-every-15-minutes": {
            "task": "app.workers.tasks.payments_reliability.run_payments_reconciliation",
            "schedule": 900.0,
            "options": {"queue": "q_normal"},
        },
        "payments-reconciliation-daily-0400-ist": {
            "task": "app.workers.tasks.payments_reliability.run_payments_reconciliation",
            "schedule": crontab(hour=4, minute=0),
            "options": {"queue": "q_normal"},
        },
    }
)
