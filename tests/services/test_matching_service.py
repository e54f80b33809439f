from datetime import timedelta
from unittest.mock import patch

import pytest

from miniapp.models.match import SwipeDecision
from miniapp.services.matching_service import canonical_pair, get_feed, get_user_matches, record_swipe
from miniapp.utils.database import execute_query, utcnow
from miniapp.utils.errors import DatabaseError, ErrorCode, ForbiddenError, NotFoundError, ValidationError
from tests.conftest import count_rows, fetch_one


class TestCanonicalPair:
    def test_orders_ids(self):
        assert canonical_pair("b", "a") == ("a", "b")
        assert canonical_pair("a", "b") == ("a", "b")

    def test_same_user_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            canonical_pair("a", "a")
        assert exc_info.value.code == ErrorCode.CANNOT_SWIPE_SELF


class TestRecordSwipe:
    def test_like_without_reciprocal_creates_no_match(self, make_profile):
        make_profile("alice")
        make_profile("bob")

        result = record_swipe("alice", "profile-bob", SwipeDecision.LIKE)

        assert result.match_created is False
        swipe = fetch_one("dating_swipes", from_user_id="alice", to_profile_id="profile-bob")
        assert swipe["decision"] == "like"
        assert count_rows("dating_matches") == 0

    def test_mutual_like_creates_one_canonical_match(self, make_profile):
        make_profile("alice")
        make_profile("bob")

        assert record_swipe("bob", "profile-alice", "like").match_created is False
        assert record_swipe("alice", "profile-bob", "like").match_created is True

        match = fetch_one("dating_matches")
        assert (match["user1_id"], match["user2_id"]) == ("alice", "bob")
        assert match["last_activity_at"] is not None

    def test_repeated_like_does_not_duplicate_match(self, make_profile):
        make_profile("alice")
        make_profile("bob")
        record_swipe("bob", "profile-alice", "like")
        record_swipe("alice", "profile-bob", "like")

        assert record_swipe("alice", "profile-bob", "like").match_created is False
        assert record_swipe("bob", "profile-alice", "like").match_created is False
        assert count_rows("dating_matches") == 1
        assert count_rows("dating_swipes") == 2

    def test_dislike_overwrites_like_and_never_matches(self, make_profile):
        make_profile("alice")
        make_profile("bob")
        record_swipe("bob", "profile-alice", "like")
        record_swipe("alice", "profile-bob", "like")

        result = record_swipe("alice", "profile-bob", SwipeDecision.DISLIKE)

        assert result.match_created is False
        assert fetch_one("dating_swipes", from_user_id="alice")["decision"] == "dislike"
        assert count_rows("dating_swipes", from_user_id="alice") == 1
        # Existing matches are not removed by a later dislike
        assert count_rows("dating_matches") == 1

    def test_reciprocal_dislike_prevents_match(self, make_profile):
        make_profile("alice")
        make_profile("bob")
        record_swipe("bob", "profile-alice", "dislike")

        assert record_swipe("alice", "profile-bob", "like").match_created is False
        assert count_rows("dating_matches") == 0

    def test_acting_user_without_profile(self, make_profile):
        make_profile("bob")

        with pytest.raises(ValidationError) as exc_info:
            record_swipe("alice", "profile-bob", "like")

        assert exc_info.value.code == ErrorCode.PROFILE_REQUIRED
        assert count_rows("dating_swipes") == 0

    def test_inactive_acting_profile(self, make_profile):
        make_profile("alice", status="inactive", is_active=False)
        make_profile("bob")

        with pytest.raises(ForbiddenError) as exc_info:
            record_swipe("alice", "profile-bob", "like")

        assert exc_info.value.code == ErrorCode.PROFILE_NOT_ACTIVE
        assert exc_info.value.status_code == 403
        assert count_rows("dating_swipes") == 0

    def test_missing_target_profile(self, make_profile):
        make_profile("alice")

        with pytest.raises(NotFoundError) as exc_info:
            record_swipe("alice", "profile-nobody", "like")

        assert exc_info.value.code == ErrorCode.PROFILE_NOT_FOUND

    def test_inactive_target_profile(self, make_profile):
        make_profile("alice")
        make_profile("bob", status="inactive", is_active=False)

        with pytest.raises(ValidationError) as exc_info:
            record_swipe("alice", "profile-bob", "like")

        assert exc_info.value.code == ErrorCode.PROFILE_NOT_ACTIVE
        assert count_rows("dating_swipes") == 0

    def test_cannot_swipe_own_profile(self, make_profile):
        make_profile("alice")

        with pytest.raises(ValidationError) as exc_info:
            record_swipe("alice", "profile-alice", "like")

        assert exc_info.value.code == ErrorCode.CANNOT_SWIPE_SELF
        assert count_rows("dating_swipes") == 0

    def test_invalid_decision(self, make_profile):
        make_profile("alice")
        make_profile("bob")

        with pytest.raises(ValueError):
            record_swipe("alice", "profile-bob", "superlike")

    def test_match_storage_failure_keeps_swipe(self, make_profile):
        make_profile("alice")
        make_profile("bob")
        record_swipe("bob", "profile-alice", "like")

        real_execute_query = execute_query

        def failing_match_insert(table, query_type, **kwargs):
            if table == "dating_matches" and query_type == "insert":
                raise DatabaseError("insert failed")
            return real_execute_query(table, query_type, **kwargs)

        with patch("miniapp.services.matching_service.execute_query", side_effect=failing_match_insert):
            result = record_swipe("alice", "profile-bob", "like")

        assert result.match_created is False
        assert fetch_one("dating_swipes", from_user_id="alice")["decision"] == "like"
        assert count_rows("dating_matches") == 0

    def test_concurrent_match_insert_counts_as_existing(self, make_profile):
        make_profile("alice")
        make_profile("bob")
        record_swipe("bob", "profile-alice", "like")

        real_execute_query = execute_query

        def racing_insert(table, query_type, **kwargs):
            if table == "dating_matches" and query_type == "insert":
                # Another request creates the match between our lookup and insert
                real_execute_query(table, query_type, **kwargs)
            return real_execute_query(table, query_type, **kwargs)

        with patch("miniapp.services.matching_service.execute_query", side_effect=racing_insert):
            result = record_swipe("alice", "profile-bob", "like")

        assert result.match_created is False
        assert count_rows("dating_matches") == 1

    def test_swipe_storage_failure_propagates(self, make_profile):
        make_profile("alice")
        make_profile("bob")

        with patch("miniapp.services.matching_service.execute_query", side_effect=DatabaseError("down")):
            with pytest.raises(DatabaseError):
                record_swipe("alice", "profile-bob", "like")


class TestGetFeed:
    def test_excludes_own_swiped_and_inactive_profiles(self, make_profile):
        make_profile("alice")
        make_profile("bob")
        make_profile("carol")
        make_profile("dave", status="inactive", is_active=False)
        record_swipe("alice", "profile-bob", "dislike")

        feed = get_feed("alice")

        assert [p.id for p in feed] == ["profile-carol"]

    def test_photos_first_then_newest(self, make_profile):
        now = utcnow()
        make_profile("alice")
        make_profile("old_photo", has_photo=True, photo_urls=["a.jpg"], created_at=now - timedelta(days=3))
        make_profile("new_photo", has_photo=True, photo_urls=["b.jpg"], created_at=now - timedelta(days=1))
        make_profile("newest_plain", created_at=now)

        feed = get_feed("alice")

        assert [p.user_id for p in feed] == ["new_photo", "old_photo", "newest_plain"]

    def test_limit_is_clamped(self, make_profile):
        make_profile("alice")
        for i in range(3):
            make_profile(f"user{i}")

        assert len(get_feed("alice", limit=2)) == 2
        assert len(get_feed("alice", limit=0)) == 1
        assert len(get_feed("alice", limit=500)) == 3

    def test_purpose_filter(self, make_profile):
        make_profile("alice")
        make_profile("friend", purposes=["friends"])
        make_profile("renter", purposes=["co_rent", "romantic"])
        make_profile("seller", purposes=["market_seller"])

        feed = get_feed("alice", purposes=["friends", "co_rent", "not_a_purpose"])

        assert {p.user_id for p in feed} == {"friend", "renter"}

    def test_unknown_purposes_only_means_no_filter(self, make_profile):
        make_profile("alice")
        make_profile("bob", purposes=["friends"])

        assert [p.user_id for p in get_feed("alice", purposes=["unknown"])] == ["bob"]


class TestGetUserMatches:
    def test_lists_matches_with_other_user(self, make_profile, make_user):
        make_profile("alice")
        make_profile("bob")
        record_swipe("alice", "profile-bob", "like")
        record_swipe("bob", "profile-alice", "like")

        alice_view = get_user_matches("alice")
        bob_view = get_user_matches("bob")

        assert len(alice_view) == 1
        assert alice_view[0].user_id == "bob"
        assert alice_view[0].telegram_username == "bob"
        assert alice_view[0].profile.id == "profile-bob"
        assert alice_view[0].is_banned is False
        assert bob_view[0].user_id == "alice"
        assert bob_view[0].match_id == alice_view[0].match_id

    def test_stale_profile_hidden_and_ban_flag(self, make_profile):
        make_profile("alice")
        make_profile("bob", last_activated_at=utcnow() - timedelta(days=200))
        record_swipe("alice", "profile-bob", "like")
        record_swipe("bob", "profile-alice", "like")
        execute_query("users", "update", filters={"id": "bob"}, data={"status": "banned"})

        view = get_user_matches("alice")[0]

        assert view.profile is None
        assert view.is_banned is True

    def test_no_matches(self, make_profile):
        make_profile("alice")
        assert get_user_matches("alice") == []
