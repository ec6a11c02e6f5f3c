from app.marketplace.moderation.service import ModerationService

__all__ = ["ModerationService"]
