"""Report models for the dating and listing moderation domains."""

import uuid
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from miniapp.models.listing import ListingSection, ListingSummary


class ReportKind(str, Enum):
    """Which report table a report lives in."""

    DATING = "dating"
    LISTING = "listing"


class ReportStatus(str, Enum):
    NEW = "new"
    RESOLVED = "resolved"


class DatingReportReason(str, Enum):
    ESCORT = "escort"
    SCAM = "scam"
    DRUGS = "drugs"
    WEAPONS = "weapons"
    INAPPROPRIATE = "inappropriate"
    OTHER = "other"


class ListingReportReason(str, Enum):
    SPAM = "spam"
    SCAM = "scam"
    ESCORT = "escort"
    DRUGS = "drugs"
    WEAPONS = "weapons"
    OTHER = "other"


DATING_REPORT_REASONS: List[str] = [reason.value for reason in DatingReportReason]
LISTING_REPORT_REASONS: List[str] = [reason.value for reason in ListingReportReason]


class DatingReport(BaseModel):
    """Represents a report filed by one user against another."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    reporter_user_id: str
    reported_user_id: str
    reason: DatingReportReason
    comment: Optional[str] = None
    status: ReportStatus = ReportStatus.NEW
    created_at: datetime = Field(default_factory=datetime.now)
    resolved_at: Optional[datetime] = None
    resolved_by_user_id: Optional[str] = None
    moderator_note: Optional[str] = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "f47ac10b-58cc-4372-a567-0e02b2c3d479",
                "reporter_user_id": "user_abc_123",
                "reported_user_id": "user_def_456",
                "reason": "scam",
                "status": "new",
                "created_at": "2025-10-27T10:00:00Z",
            }
        }
    )


class ListingReport(BaseModel):
    """Represents a report filed against a listing."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    section: ListingSection
    listing_id: str
    reporter_user_id: str
    owner_user_id: Optional[str] = None
    reason: ListingReportReason
    comment: Optional[str] = None
    status: ReportStatus = ReportStatus.NEW
    created_at: datetime = Field(default_factory=datetime.now)
    resolved_at: Optional[datetime] = None
    resolved_by_user_id: Optional[str] = None
    moderator_note: Optional[str] = None


class ReportOutcome(BaseModel):
    """Result of a report submission."""

    escalated: bool = False  # This report moved the target to banned/archived
    total_reports: int = 0  # Open (new) reports on the target after this one


class ReportUser(BaseModel):
    """User reference attached to a moderation queue item."""

    id: str
    telegram_username: Optional[str] = None
    status: Optional[str] = None
    is_banned: bool = False
    total_reports: Optional[int] = None


class DatingReportFilters(BaseModel):
    status: Optional[ReportStatus] = None
    reason: Optional[DatingReportReason] = None
    target_query: Optional[str] = None
    limit: Optional[int] = None


class ListingReportFilters(BaseModel):
    status: Optional[ReportStatus] = None
    section: Optional[ListingSection] = None
    limit: Optional[int] = None


class DatingModerationItem(BaseModel):
    id: str
    reason: str
    comment: Optional[str] = None
    created_at: Optional[datetime] = None
    status: str
    resolved_at: Optional[datetime] = None
    resolved_by_user_id: Optional[str] = None
    moderator_note: Optional[str] = None
    reporter: Optional[ReportUser] = None
    target: Optional[ReportUser] = None


class ListingModerationItem(BaseModel):
    id: str
    section: ListingSection
    listing_id: str
    reason: str
    comment: Optional[str] = None
    status: str
    created_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None
    moderator_note: Optional[str] = None
    reporter: Optional[ReportUser] = None
    owner: Optional[ReportUser] = None
    listing: Optional[ListingSummary] = None
    total_reports: int = 0


class DatingModerationStats(BaseModel):
    active_profiles: int = 0
    banned_profiles: int = 0
    new_reports: int = 0
    reports_24h: int = 0
    reports_7d: int = 0


class ListingsWithReports(BaseModel):
    active: int = 0
    archived: int = 0


class ListingModerationStats(BaseModel):
    new_reports: Dict[str, int] = Field(default_factory=dict)
    listings_with_reports: ListingsWithReports = Field(default_factory=ListingsWithReports)
