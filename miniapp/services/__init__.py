"""Services package for the Mini App backend."""

from miniapp.services.listing_service import get_listing, get_user_listings, reveal_listing_contact
from miniapp.services.matching_service import canonical_pair, get_feed, get_user_matches, record_swipe
from miniapp.services.moderation_service import (
    fetch_dating_reports,
    fetch_listing_reports,
    get_dating_stats,
    get_listing_stats,
    is_moderator,
)
from miniapp.services.profile_service import (
    get_profile,
    get_profile_by_id,
    get_profile_listings,
    save_profile,
    set_profile_active,
    set_profile_listings,
)
from miniapp.services.report_service import (
    ListingTarget,
    UserTarget,
    resolve_report,
    set_target_status,
    submit_dating_report,
    submit_listing_report,
    submit_report,
)

__all__ = [
    "ListingTarget",
    "UserTarget",
    "canonical_pair",
    "fetch_dating_reports",
    "fetch_listing_reports",
    "get_dating_stats",
    "get_feed",
    "get_listing",
    "get_listing_stats",
    "get_profile",
    "get_profile_by_id",
    "get_profile_listings",
    "get_user_listings",
    "get_user_matches",
    "is_moderator",
    "record_swipe",
    "resolve_report",
    "reveal_listing_contact",
    "save_profile",
    "set_profile_active",
    "set_profile_listings",
    "set_target_status",
    "submit_dating_report",
    "submit_listing_report",
    "submit_report",
]
