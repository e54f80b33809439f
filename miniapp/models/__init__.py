"""Models package for the Mini App backend."""

from miniapp.models.listing import (
    LISTING_SECTION_TABLES,
    ContactReveal,
    Listing,
    ListingAttachment,
    ListingPreview,
    ListingSection,
    ListingStatus,
    ListingSummary,
)
from miniapp.models.match import Match, MatchView, SwipeDecision, SwipeResult
from miniapp.models.profile import DatingProfile, DatingPurpose, ProfileInput, ProfileListings, ProfileStatus
from miniapp.models.report import (
    DatingReport,
    DatingReportReason,
    ListingReport,
    ListingReportReason,
    ReportKind,
    ReportOutcome,
    ReportStatus,
)
from miniapp.models.user import CurrentUser, User, UserStatus

__all__ = [
    "LISTING_SECTION_TABLES",
    "ContactReveal",
    "CurrentUser",
    "DatingProfile",
    "DatingPurpose",
    "DatingReport",
    "DatingReportReason",
    "Listing",
    "ListingAttachment",
    "ListingPreview",
    "ListingReport",
    "ListingReportReason",
    "ListingSection",
    "ListingStatus",
    "ListingSummary",
    "Match",
    "MatchView",
    "ProfileInput",
    "ProfileListings",
    "ProfileStatus",
    "ReportKind",
    "ReportOutcome",
    "ReportStatus",
    "SwipeDecision",
    "SwipeResult",
    "User",
    "UserStatus",
]
