"""Dating profile service for the Mini App backend."""

from typing import Any, Dict, Iterable, List, Optional, Tuple

import sentry_sdk

from miniapp.config import settings
from miniapp.models.listing import ListingAttachment, ListingSection, ListingStatus
from miniapp.models.profile import DatingProfile, DatingPurpose, ProfileInput, ProfileListings, ProfileStatus
from miniapp.services.listing_service import build_preview, get_listing, get_user_listings
from miniapp.utils.database import execute_query, utcnow
from miniapp.utils.errors import ErrorCode, NotFoundError, ValidationError
from miniapp.utils.logging import get_logger

logger = get_logger(__name__)


def get_profile(user_id: str) -> Optional[DatingProfile]:
    """Get the dating profile owned by a user.

    Args:
        user_id: Owning user ID

    Returns:
        The profile, or None if the user has not created one yet
    """
    result = execute_query(
        table="dating_profiles",
        query_type="select",
        filters={"user_id": user_id},
        limit=1,
    )
    row = result.first()
    return DatingProfile.model_validate(row) if row else None


def get_profile_by_id(profile_id: str) -> Optional[DatingProfile]:
    """Get a dating profile by its own ID."""
    result = execute_query(
        table="dating_profiles",
        query_type="select",
        filters={"id": profile_id},
        limit=1,
    )
    row = result.first()
    return DatingProfile.model_validate(row) if row else None


def normalize_profile_input(profile: ProfileInput) -> Dict[str, Any]:
    """Validate a submitted profile form and return the columns to store.

    Unknown purposes are dropped silently, blank photo URLs are removed.

    Raises:
        ValidationError: REQUIRED_FIELDS if nickname, looking_for or offering
            is blank; PURPOSE_REQUIRED if no known purpose remains.
    """
    nickname = (profile.nickname or "").strip()
    looking_for = (profile.looking_for or "").strip()
    offering = (profile.offering or "").strip()
    comment = (profile.comment or "").strip() or None

    allowed = DatingPurpose.values()
    purposes = []
    for purpose in profile.purposes:
        value = str(purpose).strip()
        if value in allowed and value not in purposes:
            purposes.append(value)

    if not nickname or not looking_for or not offering:
        raise ValidationError("Nickname, looking_for and offering are required", ErrorCode.REQUIRED_FIELDS)

    if not purposes:
        raise ValidationError("At least one purpose is required", ErrorCode.PURPOSE_REQUIRED)

    photo_urls = [str(url).strip() for url in profile.photo_urls if str(url).strip()]

    return {
        "nickname": nickname,
        "looking_for": looking_for,
        "offering": offering,
        "comment": comment,
        "purposes": purposes,
        "link_market": bool(profile.link_market),
        "link_housing": bool(profile.link_housing),
        "link_jobs": bool(profile.link_jobs),
        "photo_urls": photo_urls,
        "has_photo": bool(photo_urls),
    }


def save_profile(user_id: str, profile: ProfileInput) -> DatingProfile:
    """Create or update the user's dating profile.

    Upserts on ``user_id`` so a user never owns more than one profile. The
    activation state of an existing profile is left untouched; a brand new
    profile starts active.

    Args:
        user_id: Owning user ID
        profile: Submitted form

    Returns:
        The stored profile

    Raises:
        ValidationError: If the form is invalid
        DatabaseError: If the upsert fails
    """
    with sentry_sdk.start_span(op="profile.save", name=user_id):
        payload = {"user_id": user_id, **normalize_profile_input(profile)}

        result = execute_query(
            table="dating_profiles",
            query_type="upsert",
            data=payload,
            on_conflict=["user_id"],
        )

        row = result.first()
        if not row:
            logger.error("Profile upsert returned no row", user_id=user_id)
            raise NotFoundError(f"Profile not found after save: {user_id}", ErrorCode.PROFILE_NOT_FOUND)

        logger.info("Dating profile saved", user_id=user_id, profile_id=row["id"])
        return DatingProfile.model_validate(row)


def set_profile_active(user_id: str, active: bool) -> DatingProfile:
    """Activate or deactivate the user's profile.

    Deactivated profiles drop out of the feed and cannot swipe. Activation
    refreshes ``last_activated_at``, which the match list uses to hide
    stale profiles.

    Raises:
        ValidationError: PROFILE_REQUIRED if the user has no profile
    """
    data: Dict[str, Any] = {
        "is_active": active,
        "status": (ProfileStatus.ACTIVE if active else ProfileStatus.INACTIVE).value,
    }
    if active:
        data["last_activated_at"] = utcnow()

    result = execute_query(
        table="dating_profiles",
        query_type="update",
        filters={"user_id": user_id},
        data=data,
    )

    row = result.first()
    if not row:
        logger.warning("Cannot change activation of missing profile", user_id=user_id)
        raise ValidationError(f"User has no dating profile: {user_id}", ErrorCode.PROFILE_REQUIRED)

    logger.info("Dating profile activation changed", user_id=user_id, active=active)
    return DatingProfile.model_validate(row)


def _require_profile(user_id: str) -> DatingProfile:
    profile = get_profile(user_id)
    if profile is None:
        raise NotFoundError(f"User has no dating profile: {user_id}", ErrorCode.PROFILE_NOT_FOUND)
    return profile


def _attached_listings(profile_id: str) -> List[ListingAttachment]:
    result = execute_query(
        table="dating_profile_listings",
        query_type="select",
        filters={"profile_id": profile_id},
        order_by="created_at asc",
    )
    section_order = list(ListingSection)
    attachments = [ListingAttachment(section=row["section"], listing_id=row["listing_id"]) for row in result.data]
    return sorted(attachments, key=lambda item: section_order.index(item.section))


def get_profile_listings(user_id: str) -> ProfileListings:
    """Get the user's attachable listings and the ones on their profile.

    Attachable listings are the user's own active listings, newest first,
    capped per section by ``PROFILE_LISTINGS_LIMIT``.

    Raises:
        NotFoundError: PROFILE_NOT_FOUND if the user has no profile
    """
    profile = _require_profile(user_id)
    available = {
        section: [
            build_preview(section, listing)
            for listing in get_user_listings(user_id, section, limit=settings.PROFILE_LISTINGS_LIMIT)
        ]
        for section in ListingSection
    }
    return ProfileListings(profile_id=profile.id, available=available, attached=_attached_listings(profile.id))


def set_profile_listings(user_id: str, attachments: Iterable[ListingAttachment]) -> List[ListingAttachment]:
    """Replace the listings shown on the user's profile.

    Duplicates are collapsed. Listings that do not exist, belong to someone
    else or are archived are dropped without an error.

    Args:
        user_id: Owning user ID
        attachments: Requested listings

    Returns:
        The listings now attached

    Raises:
        NotFoundError: PROFILE_NOT_FOUND if the user has no profile
    """
    profile = _require_profile(user_id)

    unique: Dict[Tuple[ListingSection, str], ListingAttachment] = {}
    for item in attachments:
        unique.setdefault((item.section, item.listing_id), item)

    valid = []
    for item in unique.values():
        listing = get_listing(item.section, item.listing_id)
        if listing and listing.user_id == user_id and listing.status == ListingStatus.ACTIVE:
            valid.append(item)

    with sentry_sdk.start_span(op="profile.listings", name=profile.id):
        execute_query(table="dating_profile_listings", query_type="delete", filters={"profile_id": profile.id})
        for item in valid:
            execute_query(
                table="dating_profile_listings",
                query_type="insert",
                data={"profile_id": profile.id, "section": item.section.value, "listing_id": item.listing_id},
            )

    logger.info(
        "Profile listings replaced",
        user_id=user_id,
        profile_id=profile.id,
        requested=len(unique),
        attached=len(valid),
    )
    return _attached_listings(profile.id)
