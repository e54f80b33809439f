"""Request bodies accepted by the HTTP API."""

from typing import Annotated, Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator

from miniapp.models.listing import ListingAttachment, ListingSection
from miniapp.models.match import SwipeDecision

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class SwipeRequest(CamelModel):
    to_profile_id: NonEmptyStr = Field(alias="toProfileId")
    decision: SwipeDecision


class ProfileActiveRequest(CamelModel):
    active: bool


class DatingReportRequest(CamelModel):
    target_user_id: NonEmptyStr = Field(alias="targetUserId")
    reason: NonEmptyStr
    comment: Optional[str] = None


class ListingReportRequest(CamelModel):
    section: NonEmptyStr
    listing_id: NonEmptyStr = Field(alias="listingId")
    reason: NonEmptyStr
    comment: Optional[Any] = None


class ListingContactRequest(CamelModel):
    section: NonEmptyStr
    listing_id: NonEmptyStr = Field(alias="listingId")


class ProfileListingItem(CamelModel):
    """One entry of the profile listings PUT body. Older clients send "job"."""

    section: ListingSection = Field(alias="listingType")
    listing_id: NonEmptyStr = Field(alias="listingId")

    @field_validator("section", mode="before")
    @classmethod
    def accept_job_alias(cls, v: Any) -> Any:
        return ListingSection.JOBS.value if v == "job" else v

    def to_attachment(self) -> ListingAttachment:
        return ListingAttachment(section=self.section, listing_id=self.listing_id)


class DatingModerationAction(CamelModel):
    action: Literal["resolveReport", "banUser", "unbanUser"]
    report_id: Optional[str] = Field(default=None, alias="reportId")
    target_user_id: Optional[str] = Field(default=None, alias="targetUserId")
    moderator_note: Optional[str] = Field(default=None, alias="moderatorNote")


class ListingModerationAction(CamelModel):
    action: Literal["resolveReport", "archiveListing", "unarchiveListing", "banUser", "unbanUser"]
    report_id: Optional[str] = Field(default=None, alias="reportId")
    section: Optional[str] = None
    listing_id: Optional[str] = Field(default=None, alias="listingId")
    owner_user_id: Optional[str] = Field(default=None, alias="ownerUserId")
    moderator_note: Optional[str] = Field(default=None, alias="moderatorNote")
