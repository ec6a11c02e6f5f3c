from app.workers.tasks.payments_reliability import (
    reconcile_unfulfilled_payments,
    run_payments_reconciliation,
)

__all__ = [
    "reconcile_unfulfilled_payments",
    "run_payments_reconciliation",
]
