"""Listing lookups and paid contact reveal for the classifieds sections."""

from typing import Any, Dict, List, Optional, Union

import sentry_sdk

from miniapp.config import settings
from miniapp.models.listing import (
    LISTING_SECTION_TABLES,
    ContactReveal,
    Listing,
    ListingPreview,
    ListingSection,
    ListingStatus,
    build_price_label,
)
from miniapp.utils.database import execute_query
from miniapp.utils.errors import DuplicateRecordError, ErrorCode, NotFoundError, ValidationError
from miniapp.utils.logging import get_logger

logger = get_logger(__name__)


def parse_section(section: Union[ListingSection, str]) -> ListingSection:
    """Turn a client-supplied section name into a `ListingSection`.

    Raises:
        ValidationError: INVALID_INPUT for an unknown section.
    """
    try:
        return ListingSection(section)
    except ValueError as e:
        raise ValidationError(f"Unknown listing section: {section}", ErrorCode.INVALID_INPUT) from e


def get_listing(section: ListingSection, listing_id: str) -> Optional[Listing]:
    """Get a listing from its section table, or None."""
    result = execute_query(
        table=LISTING_SECTION_TABLES[section],
        query_type="select",
        filters={"id": listing_id},
        limit=1,
    )
    row = result.first()
    return Listing.model_validate(row) if row else None


def get_user_listings(
    user_id: str,
    section: ListingSection,
    status: ListingStatus = ListingStatus.ACTIVE,
    limit: Optional[int] = None,
) -> List[Listing]:
    """Get a user's listings in one section, newest first."""
    result = execute_query(
        table=LISTING_SECTION_TABLES[section],
        query_type="select",
        filters={"user_id": user_id, "status": status.value},
        order_by="created_at desc",
        limit=limit,
    )
    return [Listing.model_validate(row) for row in result.data]


def build_preview(section: ListingSection, listing: Listing) -> ListingPreview:
    return ListingPreview(
        id=listing.id,
        section=section,
        title=listing.title,
        city=listing.city,
        price_label=build_price_label(section, listing),
    )


def _find_purchase(buyer_id: str, section: ListingSection, listing_id: str) -> Optional[Dict[str, Any]]:
    result = execute_query(
        table="listing_contact_purchases",
        query_type="select",
        filters={"buyer_user_id": buyer_id, "section": section.value, "listing_id": listing_id},
        limit=1,
    )
    return result.first()


def reveal_listing_contact(buyer_id: str, section: Union[ListingSection, str], listing_id: str) -> ContactReveal:
    """
    Sell a buyer the Telegram contact of a listing's owner.

    A buyer pays once per listing. Later calls return the stored purchase
    with ``already_purchased`` set and write nothing.

    Args:
        buyer_id (str): The acting user.
        section (Union[ListingSection, str]): Section the listing lives in.
        listing_id (str): The listing.

    Returns:
        ContactReveal: Price paid and the owner's Telegram username.

    Raises:
        ValidationError: INVALID_INPUT for an unknown section,
            CANNOT_PURCHASE_OWN_LISTING for the owner.
        NotFoundError: LISTING_NOT_FOUND for a missing or archived listing,
            USER_NOT_FOUND if the owner account is gone.
    """
    section = parse_section(section)
    context = {"buyer_id": buyer_id, "section": section.value, "listing_id": listing_id}

    with sentry_sdk.start_span(op="listing.contact", name=f"{section.value}:{listing_id}") as span:
        listing = get_listing(section, listing_id)
        if listing is None or listing.status == ListingStatus.ARCHIVED:
            raise NotFoundError(f"Listing not found: {section.value}/{listing_id}", ErrorCode.LISTING_NOT_FOUND)

        if listing.user_id == buyer_id:
            raise ValidationError("Cannot buy the contact of your own listing", ErrorCode.CANNOT_PURCHASE_OWN_LISTING)

        owner = execute_query(table="users", query_type="select", filters={"id": listing.user_id}, limit=1).first()
        if not owner:
            raise NotFoundError(f"Listing owner not found: {listing.user_id}", ErrorCode.USER_NOT_FOUND)

        purchase = _find_purchase(buyer_id, section, listing_id)
        already_purchased = purchase is not None

        if purchase is None:
            try:
                purchase = execute_query(
                    table="listing_contact_purchases",
                    query_type="insert",
                    data={
                        "buyer_user_id": buyer_id,
                        "section": section.value,
                        "listing_id": listing_id,
                        "price_cents": settings.CONTACT_PRICE_CENTS,
                        "currency": settings.CONTACT_CURRENCY,
                    },
                ).first()
            except DuplicateRecordError:
                # A concurrent request from the same buyer stored it first
                purchase = _find_purchase(buyer_id, section, listing_id)
                if purchase is None:
                    raise
                already_purchased = True

        span.set_data("already_purchased", already_purchased)
        if already_purchased:
            logger.info("Listing contact already purchased", **context)
        else:
            logger.info("Listing contact purchased", price_cents=purchase["price_cents"], **context)

        return ContactReveal(
            already_purchased=already_purchased,
            price_cents=purchase["price_cents"],
            currency=purchase["currency"],
            telegram_username=owner.get("telegram_username"),
        )
