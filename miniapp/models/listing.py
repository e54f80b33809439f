"""Listing models for the marketplace, housing and jobs sections."""

from datetime import datetime
from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel


class ListingSection(str, Enum):
    """Classifieds section. Each one lives in its own table."""

    MARKET = "market"
    HOUSING = "housing"
    JOBS = "jobs"


class ListingStatus(str, Enum):
    ACTIVE = "active"
    ARCHIVED = "archived"


LISTING_SECTION_TABLES: Dict[ListingSection, str] = {
    ListingSection.MARKET: "market_listings",
    ListingSection.HOUSING: "housing_listings",
    ListingSection.JOBS: "job_listings",
}

DEFAULT_CURRENCY = "RUB"


class Listing(BaseModel):
    """
    Listing model.

    Covers all three sections; the price fields that do not apply to a
    section stay None.
    """

    id: str
    user_id: str
    title: str
    city: Optional[str] = None
    currency: Optional[str] = None
    status: ListingStatus = ListingStatus.ACTIVE
    price: Optional[int] = None
    price_per_month: Optional[int] = None
    salary_from: Optional[int] = None
    salary_to: Optional[int] = None
    created_at: Optional[datetime] = None


class ListingSummary(BaseModel):
    """Short listing description shown in moderation queues."""

    id: str
    title: Optional[str] = None
    city: Optional[str] = None
    price_label: Optional[str] = None
    status: Optional[str] = None


def build_price_label(section: ListingSection, listing: Listing) -> Optional[str]:
    """Render the section-specific price of a listing."""
    currency = listing.currency or DEFAULT_CURRENCY

    if section == ListingSection.MARKET:
        return f"{listing.price} {currency}" if listing.price is not None else None

    if section == ListingSection.HOUSING:
        return f"{listing.price_per_month} {currency} / mo" if listing.price_per_month is not None else None

    if listing.salary_from is None and listing.salary_to is None:
        return None
    salary_from = listing.salary_from if listing.salary_from is not None else "from"
    salary_to = listing.salary_to if listing.salary_to is not None else "..."
    return f"{salary_from} - {salary_to} {currency}"


class ListingPreview(BaseModel):
    """Listing card offered for attachment to a dating profile."""

    id: str
    section: ListingSection
    title: str
    city: Optional[str] = None
    price_label: Optional[str] = None


class ListingAttachment(BaseModel):
    """Reference from a dating profile to one of its owner's listings."""

    section: ListingSection
    listing_id: str


class ContactReveal(BaseModel):
    """Outcome of buying access to a listing owner's Telegram contact."""

    already_purchased: bool = False
    price_cents: int
    currency: str
    telegram_username: Optional[str] = None
