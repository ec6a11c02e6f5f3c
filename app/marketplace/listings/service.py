from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.listing_moderation_events import ListingModerationEvent
from app.db.models.listings import LISTING_TERMINAL_STATES, Listing
from app.db.models.transactions import Transaction
from app.db.repo.listings_repo import ListingsRepo
from app.db.repo.moderation_events_repo import ModerationEventsRepo
from app.db.repo.packages_repo import PackagesRepo
from app.marketplace.listings.errors import (
    ListingInvalidStateError,
    ListingNotFoundError,
    ListingPaymentRequiredError,
    ListingValidationError,
)
from app.marketplace.listings.types import ListingContent, ModerationResult, PackageApplyResult
from app.marketplace.listings.validation import validate_listing_content
from app.marketplace.packages.catalog import is_featured_type
from app.marketplace.packages.errors import PackageNotFoundError
from app.marketplace.packages.types import PackageSnapshot

logger = structlog.get_logger(__name__)

MODERATION_DECISIONS = ("approve", "reject")
MODERATION_SOURCE_STATES: dict[str, tuple[str, ...]] = {
    "approve": ("PENDING_REVIEW",),
    "reject": ("AWAITING_PAYMENT", "PENDING_REVIEW"),
}
MODERATION_TARGET_STATES = {"approve": "APPROVED", "reject": "REJECTED"}


def _raise_for_moderation_state(listing: Listing, *, decision: str) -> None:
    if listing.state in LISTING_TERMINAL_STATES:
        raise ListingInvalidStateError
    if decision == "approve" and listing.state == "AWAITING_PAYMENT":
        raise ListingPaymentRequiredError


class ListingService:
    @staticmethod
    async def submit(
        session: AsyncSession,
        *,
        owner_id: str,
        content: ListingContent,
        now_utc: datetime,
        package_id: UUID | None = None,
    ) -> UUID:
        if not owner_id:
            raise ListingValidationError("ownerId")
        clean = validate_listing_content(content)

        selected_package_id: UUID | None = None
        if package_id is not None:
            package = await PackagesRepo.get_by_id(session, package_id)
            if package is None or not package.is_active:
                raise PackageNotFoundError
            # A free tier has nothing to pay for, so it goes straight to review.
            if package.price > 0:
                selected_package_id = package.id

        state = "AWAITING_PAYMENT" if selected_package_id is not None else "PENDING_REVIEW"
        listing = await ListingsRepo.create(
            session,
            listing=Listing(
                id=uuid4(),
                owner_id=owner_id,
                owner_type=clean.owner_type,
                title=clean.title,
                description=clean.description,
                price=clean.price,
                price_type=clean.price_type,
                property_type=clean.property_type,
                sub_category=clean.sub_category,
                location=clean.location,
                specifications=clean.specifications,
                amenities=clean.amenities,
                contact_info=clean.contact_info,
                state=state,
                payment_status="unpaid",
                package_id=selected_package_id,
                featured=False,
                created_at=now_utc,
                updated_at=now_utc,
            ),
        )
        logger.info(
            "listing_submitted",
            listing_id=str(listing.id),
            owner_id=owner_id,
            state=state,
            package_id=str(selected_package_id) if selected_package_id else None,
        )
        return listing.id

    @staticmethod
    async def get(session: AsyncSession, listing_id: UUID) -> Listing:
        listing = await ListingsRepo.get_by_id_fresh(session, listing_id)
        if listing is None:
            raise ListingNotFoundError
        return listing

    @staticmethod
    async def list_for_owner(
        session: AsyncSession,
        *,
        owner_id: str,
        limit: int = 50,
    ) -> list[Listing]:
        return await ListingsRepo.list_for_owner(session, owner_id=owner_id, limit=limit)

    @staticmethod
    async def apply_moderation(
        session: AsyncSession,
        *,
        listing_id: UUID,
        decision: str,
        actor_id: str,
        now_utc: datetime,
        comment: str | None = None,
        rejection_reason: str | None = None,
    ) -> ModerationResult:
        if decision not in MODERATION_DECISIONS:
            raise ListingValidationError("decision")

        listing = await ListingsRepo.get_by_id_fresh(session, listing_id)
        if listing is None:
            raise ListingNotFoundError
        _raise_for_moderation_state(listing, decision=decision)

        previous_state = listing.state
        next_state = MODERATION_TARGET_STATES[decision]
        if decision == "approve":
            values: dict[str, object] = {
                "approved_at": now_utc,
                "approved_by": actor_id,
                "admin_comments": comment,
            }
        else:
            rejection_reason = rejection_reason or comment
            values = {
                "rejected_at": now_utc,
                "rejected_by": actor_id,
                "rejection_reason": rejection_reason,
                "admin_comments": comment,
            }

        updated = await ListingsRepo.transition_state(
            session,
            listing_id=listing_id,
            from_states=(previous_state,),
            to_state=next_state,
            values=values,
            now_utc=now_utc,
        )
        if updated == 0:
            # Lost a race with another writer; report what the row looks like now.
            current = await ListingsRepo.get_by_id_fresh(session, listing_id)
            if current is None:
                raise ListingNotFoundError
            _raise_for_moderation_state(current, decision=decision)
            raise ListingInvalidStateError

        await ModerationEventsRepo.create(
            session,
            event=ListingModerationEvent(
                id=uuid4(),
                listing_id=listing_id,
                decision=decision,
                actor_id=actor_id,
                previous_state=previous_state,
                next_state=next_state,
                comment=comment,
                rejection_reason=rejection_reason if decision == "reject" else None,
                created_at=now_utc,
            ),
        )

        listing = await ListingsRepo.get_by_id_fresh(session, listing_id)
        if listing is None:
            raise ListingNotFoundError
        logger.info(
            "listing_moderated",
            listing_id=str(listing_id),
            decision=decision,
            actor_id=actor_id,
            previous_state=previous_state,
            state=listing.state,
        )
        return ModerationResult(
            listing_id=listing_id,
            decision=decision,
            previous_state=previous_state,
            state=listing.state,
            lifecycle_status=listing.lifecycle_status,
            approval_status=listing.approval_status,
        )

    @staticmethod
    async def apply_package_purchase(
        session: AsyncSession,
        *,
        listing_id: UUID,
        transaction: Transaction,
        package_snapshot: PackageSnapshot,
        now_utc: datetime,
    ) -> PackageApplyResult:
        """Record a verified payment on the listing.

        Only payment fields are written. The listing moves from
        AWAITING_PAYMENT to PENDING_REVIEW at most; approval stays with moderation.
        """
        listing = await ListingsRepo.get_by_id_fresh(session, listing_id)
        if listing is None:
            raise ListingNotFoundError

        if listing.payment_status == "paid" and listing.gateway_order_id == transaction.gateway_order_id:
            return PackageApplyResult(
                listing_id=listing_id,
                applied=False,
                state=listing.state,
                payment_status=listing.payment_status,
            )

        updated = await ListingsRepo.apply_payment_fields(
            session,
            listing_id=listing_id,
            gateway_order_id=transaction.gateway_order_id,
            values={
                "package_id": package_snapshot.package_id,
                "package_snapshot": package_snapshot.as_json(),
                "package_expiry": package_snapshot.expires_at,
                "featured": is_featured_type(package_snapshot.package_type),
                "paid_amount": transaction.amount,
                "paid_currency": transaction.currency,
                "gateway_payment_id": transaction.gateway_payment_id,
                "last_payment_at": now_utc,
            },
            now_utc=now_utc,
        )

        listing = await ListingsRepo.get_by_id_fresh(session, listing_id)
        if listing is None:
            raise ListingNotFoundError
        if updated == 0:
            return PackageApplyResult(
                listing_id=listing_id,
                applied=False,
                state=listing.state,
                payment_status=listing.payment_status,
            )

        if listing.state in LISTING_TERMINAL_STATES:
            logger.warning(
                "listing_package_applied_after_moderation",
                listing_id=str(listing_id),
                state=listing.state,
                gateway_order_id=transaction.gateway_order_id,
            )
        logger.info(
            "listing_package_applied",
            listing_id=str(listing_id),
            transaction_id=str(transaction.id),
            package_id=str(package_snapshot.package_id),
            state=listing.state,
            package_expiry=package_snapshot.expires_at.isoformat(),
        )
        return PackageApplyResult(
            listing_id=listing_id,
            applied=True,
            state=listing.state,
            payment_status=listing.payment_status,
        )

    @staticmethod
    async def mark_payment_failed(
        session: AsyncSession,
        *,
        listing_id: UUID,
        now_utc: datetime,
    ) -> bool:
        updated = await ListingsRepo.mark_payment_failed(
            session,
            listing_id=listing_id,
            now_utc=now_utc,
        )
        if updated:
            logger.info("listing_payment_failed", listing_id=str(listing_id))
        return bool(updated)
