from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

PACKAGE_TYPES = ("basic", "featured", "premium")
PACKAGE_CATEGORIES = ("property", "general")
PACKAGE_LOCATIONS = ("rohtak", "all")
FEATURED_PACKAGE_TYPES = frozenset({"featured", "premium"})


@dataclass(frozen=True, slots=True)
class PackageSpec:
    code: str
    name: str
    description: str
    package_type: str
    price: Decimal
    duration_days: int
    features: tuple[str, ...] = field(default_factory=tuple)
    category: str = "property"
    location: str = "rohtak"


DEFAULT_PACKAGES: tuple[PackageSpec, ...] = (
    PackageSpec(
        code="BASIC_30",
        name="Basic Listing",
        description="Perfect for getting started with property listing in Rohtak",
        package_type="basic",
        price=Decimal("0.00"),
        duration_days=30,
        features=(
            "Basic property listing",
            "Up to 5 images",
            "Standard visibility",
            "Email support",
            "30-day listing duration",
        ),
    ),
    PackageSpec(
        code="FEATURED_45",
        name="Featured Listing",
        description="Boost your property visibility and get faster responses",
        package_type="featured",
        price=Decimal("299.00"),
        duration_days=45,
        features=(
            "Featured in property listings",
            "Up to 10 images",
            "Priority placement",
            "Highlighted in search results",
            "Phone support",
            "45-day listing duration",
            "WhatsApp chat support",
        ),
    ),
    PackageSpec(
        code="PREMIUM_60",
        name="Premium Listing",
        description="Maximum exposure and fastest sales for your premium properties",
        package_type="premium",
        price=Decimal("599.00"),
        duration_days=60,
        features=(
            "Top placement in all searches",
            "Unlimited images",
            "Homepage banner placement",
            "Social media promotion",
            "Dedicated relationship manager",
            "60-day listing duration",
            "Priority customer support",
            "Property photoshoot assistance",
            "Market analysis report",
        ),
    ),
    PackageSpec(
        code="FEATURED_WEEKLY",
        name="Weekly Featured",
        description="7-day featured listing for quick sales",
        package_type="featured",
        price=Decimal("99.00"),
        duration_days=7,
        features=(
            "7 days listing",
            "Featured badge",
            "Top of search results",
            "Contact information display",
        ),
    ),
    PackageSpec(
        code="PREMIUM_EXTENDED",
        name="Extended Premium",
        description="60-day premium listing with maximum exposure",
        package_type="premium",
        price=Decimal("999.00"),
        duration_days=60,
        features=(
            "60 days listing",
            "Premium badge",
            "Top priority in all searches",
            "Homepage banner slot",
            "Featured in category top",
            "Enhanced property details",
            "Multiple image gallery",
            "Contact information display",
            "Analytics dashboard",
            "Priority customer support",
            "Social media promotion",
        ),
    ),
)


def is_featured_type(package_type: str) -> bool:
    return package_type in FEATURED_PACKAGE_TYPES
