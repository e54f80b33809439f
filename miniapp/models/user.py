"""User model for the Mini App backend."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class UserStatus(str, Enum):
    """Account status. Banned users stay in the database."""

    ACTIVE = "active"
    BANNED = "banned"


class User(BaseModel):
    """
    Platform account.

    Distinct from the dating profile: a user may have listings without a
    profile, and a ban applies to the account as a whole.
    """

    id: str
    telegram_username: Optional[str] = None
    nickname: Optional[str] = None
    status: UserStatus = UserStatus.ACTIVE
    created_at: datetime = Field(default_factory=datetime.now)

    @property
    def is_banned(self) -> bool:
        return self.status == UserStatus.BANNED


class CurrentUser(BaseModel):
    """The acting user of a request, resolved upstream from the session."""

    user_id: str
    telegram_username: Optional[str] = None
