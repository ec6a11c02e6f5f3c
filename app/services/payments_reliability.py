from __future__ import annotations

UNRESOLVED_FULFILLMENT_STATUSES = ("PENDING", "REVIEW")


def compute_reconciliation_diff(
    *,
    fulfillment_counts: dict[str, int],
    stale_pending_count: int,
    applied_without_listing_payment_count: int,
) -> int:
    """Count paid transactions whose listing does not reflect the payment."""
    return (
        max(0, fulfillment_counts.get("REVIEW", 0))
        + max(0, stale_pending_count)
        + max(0, applied_without_listing_payment_count)
    )


def reconciliation_status(diff_count: int) -> str:
    return "OK" if diff_count == 0 else "DIFF"
