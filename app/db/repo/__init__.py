from app.db.repo.coupons_repo import CouponsRepo
from app.db.repo.listings_repo import ListingsRepo
from app.db.repo.moderation_events_repo import ModerationEventsRepo
from app.db.repo.packages_repo import PackagesRepo
from app.db.repo.transactions_repo import TransactionsRepo

__all__ = [
    "CouponsRepo",
    "ListingsRepo",
    "ModerationEventsRepo",
    "PackagesRepo",
    "TransactionsRepo",
]
