"""Swipe and match service for the Mini App backend.

A swipe is an upserted edge ``(from_user_id, to_profile_id) -> decision``.
A like that meets a like coming back creates one match row per unordered
pair, keyed by the lexicographically sorted user ids. Match creation is
best-effort: the swipe is committed first and a failure while creating the
match only means no match is reported.
"""

from datetime import timedelta
from typing import Dict, List, Optional, Sequence, Tuple

import sentry_sdk

from miniapp.config import settings
from miniapp.models.match import Match, MatchView, SwipeDecision, SwipeResult
from miniapp.models.profile import DatingProfile, DatingPurpose, ProfileStatus
from miniapp.models.user import User, UserStatus
from miniapp.services.profile_service import get_profile, get_profile_by_id
from miniapp.utils.database import execute_query, utcnow
from miniapp.utils.errors import (
    DatabaseError,
    DuplicateRecordError,
    ErrorCode,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from miniapp.utils.logging import get_logger, log_error

logger = get_logger(__name__)


def canonical_pair(user_a: str, user_b: str) -> Tuple[str, str]:
    """
    Order two user ids into the single key a match is stored under.

    Args:
        user_a (str): One user.
        user_b (str): The other user.

    Returns:
        Tuple[str, str]: ``(user1_id, user2_id)`` with ``user1_id < user2_id``.

    Raises:
        ValidationError: If both ids are the same user.
    """
    if user_a == user_b:
        raise ValidationError("A match needs two different users", ErrorCode.CANNOT_SWIPE_SELF)
    first, second = sorted((user_a, user_b))
    return first, second


def record_swipe(acting_user_id: str, to_profile_id: str, decision: SwipeDecision) -> SwipeResult:
    """
    Record a like/dislike on a profile and create a match on mutual likes.

    All preconditions are checked before anything is written. The swipe is
    then upserted, so repeating or reversing a decision overwrites the
    previous one.

    Args:
        acting_user_id (str): The swiping user.
        to_profile_id (str): The profile being swiped on.
        decision (SwipeDecision): Like or dislike.

    Returns:
        SwipeResult: Whether this swipe created a new match.

    Raises:
        ValidationError: PROFILE_REQUIRED, PROFILE_NOT_ACTIVE or CANNOT_SWIPE_SELF.
        NotFoundError: PROFILE_NOT_FOUND if the target profile does not exist.
        DatabaseError: If the swipe itself could not be stored.
    """
    decision = SwipeDecision(decision)

    with sentry_sdk.start_span(op="dating.swipe", name=f"{acting_user_id} -> {to_profile_id}") as span:
        acting_profile = get_profile(acting_user_id)
        if acting_profile is None:
            raise ValidationError("Create a dating profile before swiping", ErrorCode.PROFILE_REQUIRED)

        if acting_profile.status != ProfileStatus.ACTIVE:
            raise ForbiddenError("Your dating profile is not active", ErrorCode.PROFILE_NOT_ACTIVE)

        target_profile = get_profile_by_id(to_profile_id)
        if target_profile is None:
            raise NotFoundError(f"Profile not found: {to_profile_id}", ErrorCode.PROFILE_NOT_FOUND)

        if target_profile.status != ProfileStatus.ACTIVE:
            raise ValidationError("Target profile is not active", ErrorCode.PROFILE_NOT_ACTIVE)

        if target_profile.user_id == acting_user_id:
            raise ValidationError("Cannot swipe on your own profile", ErrorCode.CANNOT_SWIPE_SELF)

        execute_query(
            table="dating_swipes",
            query_type="upsert",
            data={
                "from_user_id": acting_user_id,
                "to_profile_id": to_profile_id,
                "decision": decision.value,
            },
            on_conflict=["from_user_id", "to_profile_id"],
        )

        match_created = False
        if decision == SwipeDecision.LIKE:
            match_created = _create_match_if_mutual(acting_user_id, acting_profile, target_profile)

        span.set_data("match_created", match_created)
        logger.info(
            "Swipe recorded",
            user_id=acting_user_id,
            to_profile_id=to_profile_id,
            decision=decision.value,
            match_created=match_created,
        )
        return SwipeResult(match_created=match_created)


def _create_match_if_mutual(acting_user_id: str, acting_profile: DatingProfile, target_profile: DatingProfile) -> bool:
    """Insert the match row if the target's owner already liked the acting profile.

    Returns True only if this call inserted the row. Storage failures are
    logged and reported as "no match"; a duplicate insert from a concurrent
    swipe counts as the match already existing.
    """
    other_user_id = target_profile.user_id
    try:
        reciprocal = execute_query(
            table="dating_swipes",
            query_type="select",
            filters={
                "from_user_id": other_user_id,
                "to_profile_id": acting_profile.id,
                "decision": SwipeDecision.LIKE.value,
            },
            limit=1,
        )
        if not reciprocal.data:
            return False

        user1_id, user2_id = canonical_pair(acting_user_id, other_user_id)

        existing = execute_query(
            table="dating_matches",
            query_type="select",
            filters={"user1_id": user1_id, "user2_id": user2_id},
            limit=1,
        )
        if existing.data:
            logger.debug("Match already exists", user1_id=user1_id, user2_id=user2_id)
            return False

        execute_query(
            table="dating_matches",
            query_type="insert",
            data={"user1_id": user1_id, "user2_id": user2_id, "last_activity_at": utcnow()},
        )
    except DuplicateRecordError:
        logger.info("Match was created concurrently", user_id=acting_user_id, other_user_id=other_user_id)
        return False
    except DatabaseError as e:
        log_error(
            logger,
            e,
            "Failed to create match after mutual like",
            extra={"user_id": acting_user_id, "other_user_id": other_user_id},
        )
        return False

    logger.info("Match created", user1_id=user1_id, user2_id=user2_id)
    return True


def get_feed(
    acting_user_id: str,
    limit: Optional[int] = None,
    purposes: Optional[Sequence[str]] = None,
) -> List[DatingProfile]:
    """
    Get candidate profiles for the swipe feed.

    Returns active profiles of other users that the acting user has not
    swiped on yet, profiles with photos first, newest first.

    Args:
        acting_user_id (str): The user browsing the feed.
        limit (Optional[int]): Max profiles, clamped to ``[1, FEED_MAX_LIMIT]``.
        purposes (Optional[Sequence[str]]): Keep only profiles sharing at least
            one of these purposes. Unknown values are ignored.

    Returns:
        List[DatingProfile]: Feed candidates.
    """
    if limit is None:
        limit = settings.FEED_DEFAULT_LIMIT
    limit = min(max(int(limit), 1), settings.FEED_MAX_LIMIT)

    allowed = DatingPurpose.values()
    wanted = {p.strip() for p in purposes or [] if p and p.strip() in allowed}

    swipes = execute_query(
        table="dating_swipes",
        query_type="select",
        filters={"from_user_id": acting_user_id},
    )
    swiped_profile_ids = [row["to_profile_id"] for row in swipes.data if row.get("to_profile_id")]

    filters: Dict[str, object] = {
        "status": ProfileStatus.ACTIVE.value,
        "user_id__neq": acting_user_id,
    }
    if swiped_profile_ids:
        filters["id__not_in"] = swiped_profile_ids

    # Purposes live in a JSON column, so the overlap filter runs here
    result = execute_query(
        table="dating_profiles",
        query_type="select",
        filters=filters,
        order_by="has_photo desc, created_at desc",
        limit=None if wanted else limit,
    )

    profiles = [DatingProfile.model_validate(row) for row in result.data]
    if wanted:
        profiles = [p for p in profiles if wanted.intersection(p.purposes)][:limit]

    logger.debug("Feed built", user_id=acting_user_id, count=len(profiles))
    return profiles


def get_user_matches(acting_user_id: str) -> List[MatchView]:
    """
    Get the acting user's matches, newest first.

    Each match is decorated with the other user's username and ban flag, and
    with their dating profile if it was activated within
    ``MATCH_PROFILE_RECENCY_DAYS``.

    Args:
        acting_user_id (str): The user whose matches to list.

    Returns:
        List[MatchView]: One view per match.
    """
    result = execute_query(
        table="dating_matches",
        query_type="select",
        filters={"$or": [{"user1_id": acting_user_id}, {"user2_id": acting_user_id}]},
        order_by="created_at desc",
    )
    if not result.data:
        logger.debug("No matches found", user_id=acting_user_id)
        return []

    matches = [Match.model_validate(row) for row in result.data]
    other_user_ids = sorted({m.other_user_id(acting_user_id) for m in matches})

    users_result = execute_query(
        table="users",
        query_type="select",
        filters={"id__in": other_user_ids},
    )
    users = {row["id"]: User.model_validate(row) for row in users_result.data}

    recent_threshold = utcnow() - timedelta(days=settings.MATCH_PROFILE_RECENCY_DAYS)
    profiles_result = execute_query(
        table="dating_profiles",
        query_type="select",
        filters={"user_id__in": other_user_ids, "last_activated_at__gte": recent_threshold},
    )
    profiles = {row["user_id"]: DatingProfile.model_validate(row) for row in profiles_result.data}

    views = []
    for match in matches:
        other_user_id = match.other_user_id(acting_user_id)
        user = users.get(other_user_id)
        views.append(
            MatchView(
                match_id=match.id,
                user_id=other_user_id,
                telegram_username=(user.telegram_username if user else None) or "",
                nickname_fallback=(user.nickname if user else None) or "",
                profile=profiles.get(other_user_id),
                is_banned=bool(user and user.status == UserStatus.BANNED),
                last_activity_at=match.last_activity_at,
            )
        )

    logger.debug("User matches retrieved", user_id=acting_user_id, count=len(views))
    return views
