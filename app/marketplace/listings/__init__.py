from app.marketplace.listings.service import ListingService

__all__ = ["ListingService"]
