from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from uuid import UUID


@dataclass(frozen=True, slots=True)
class PackageFilter:
    category: str | None = None
    location: str | None = None
    package_type: str | None = None


@dataclass(frozen=True, slots=True)
class PackageSnapshot:
    """Copy of a package taken when its purchase is verified.

    Later catalog edits never change what a buyer already paid for.
    """

    package_id: UUID
    name: str
    package_type: str
    price: Decimal
    duration_days: int
    features: tuple[str, ...]
    purchased_at: datetime
    expires_at: datetime

    def as_json(self) -> dict[str, object]:
        return {
            "id": str(self.package_id),
            "name": self.name,
            "type": self.package_type,
            "price": str(self.price),
            "duration_days": self.duration_days,
            "features": list(self.features),
            "purchased_at": self.purchased_at.isoformat(),
            "expires_at": self.expires_at.isoformat(),
        }
