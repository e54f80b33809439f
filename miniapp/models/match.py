"""Swipe and match models for the Mini App backend."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel

from miniapp.models.profile import DatingProfile


class SwipeDecision(str, Enum):
    """
    Swipe decision enumeration.

    A swipe pair moves between the two freely; the latest decision wins.
    """

    LIKE = "like"
    DISLIKE = "dislike"


class SwipeResult(BaseModel):
    """Outcome of a swipe. `match_created` tells the caller to notify both sides."""

    match_created: bool = False


class Match(BaseModel):
    """
    Match model.

    Mutual like between two users, stored once per unordered pair with
    `user1_id < user2_id`.
    """

    id: str
    user1_id: str
    user2_id: str
    created_at: Optional[datetime] = None
    last_activity_at: Optional[datetime] = None

    def other_user_id(self, user_id: str) -> str:
        return self.user2_id if self.user1_id == user_id else self.user1_id


class MatchView(BaseModel):
    """A match as seen by one of its two users."""

    match_id: str
    user_id: str  # The other user's ID
    telegram_username: str = ""
    nickname_fallback: str = ""
    profile: Optional[DatingProfile] = None
    is_banned: bool = False
    last_activity_at: Optional[datetime] = None
