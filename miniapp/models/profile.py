"""Dating profile models for the Mini App backend."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from miniapp.models.listing import ListingAttachment, ListingPreview, ListingSection


class ProfileStatus(str, Enum):
    """Profile status. Only active profiles can swipe or be swiped on."""

    ACTIVE = "active"
    INACTIVE = "inactive"


class DatingPurpose(str, Enum):
    """What a user is on the dating section for."""

    ROMANTIC = "romantic"
    FRIENDS = "friends"
    CO_RENT = "co_rent"
    RENT_TENANT = "rent_tenant"
    RENT_LANDLORD = "rent_landlord"
    MARKET_SELLER = "market_seller"
    MARKET_BUYER = "market_buyer"
    JOB_EMPLOYER = "job_employer"
    JOB_SEEKER = "job_seeker"
    JOB_BUDDY = "job_buddy"

    @classmethod
    def values(cls) -> List[str]:
        return [purpose.value for purpose in cls]


class DatingProfile(BaseModel):
    """
    Dating profile model.

    A user's dating-facing identity. One per user; never deleted, only
    deactivated.
    """

    id: str
    user_id: str
    nickname: str
    looking_for: str
    offering: str
    comment: Optional[str] = None
    purposes: List[str] = Field(default_factory=list)
    photo_urls: List[str] = Field(default_factory=list)
    has_photo: bool = False
    link_market: bool = False
    link_housing: bool = False
    link_jobs: bool = False
    is_verified: bool = False
    is_active: bool = True
    status: ProfileStatus = ProfileStatus.ACTIVE
    last_activated_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProfileInput(BaseModel):
    """Raw profile form as submitted by the client. Normalized by the profile service."""

    nickname: Optional[str] = None
    looking_for: Optional[str] = None
    offering: Optional[str] = None
    comment: Optional[str] = None
    purposes: List[Any] = Field(default_factory=list)
    link_market: bool = False
    link_housing: bool = False
    link_jobs: bool = False
    photo_urls: List[Any] = Field(default_factory=list)


class ProfileListings(BaseModel):
    """Listings a profile owner can show on their profile, and the ones shown."""

    profile_id: str
    available: Dict[ListingSection, List[ListingPreview]] = Field(default_factory=dict)
    attached: List[ListingAttachment] = Field(default_factory=list)
