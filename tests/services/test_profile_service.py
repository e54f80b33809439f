from datetime import timedelta

import pytest

from miniapp.config import settings
from miniapp.models.listing import ListingAttachment, ListingSection
from miniapp.models.profile import ProfileInput, ProfileStatus
from miniapp.services.profile_service import (
    get_profile,
    get_profile_by_id,
    get_profile_listings,
    normalize_profile_input,
    save_profile,
    set_profile_active,
    set_profile_listings,
)
from miniapp.utils.database import utcnow
from miniapp.utils.errors import ErrorCode, NotFoundError, ValidationError
from tests.conftest import count_rows


def _form(**overrides):
    data = {
        "nickname": "  Alice ",
        "looking_for": "friends to hike with",
        "offering": "coffee",
        "purposes": ["friends", "romantic", "friends", "bogus"],
        "photo_urls": [" https://cdn.example/a.jpg ", ""],
    }
    data.update(overrides)
    return ProfileInput(**data)


class TestNormalizeProfileInput:
    def test_cleans_fields(self):
        payload = normalize_profile_input(_form())

        assert payload["nickname"] == "Alice"
        assert payload["purposes"] == ["friends", "romantic"]
        assert payload["photo_urls"] == ["https://cdn.example/a.jpg"]
        assert payload["has_photo"] is True
        assert payload["comment"] is None

    @pytest.mark.parametrize("field", ["nickname", "looking_for", "offering"])
    def test_required_fields(self, field):
        with pytest.raises(ValidationError) as exc_info:
            normalize_profile_input(_form(**{field: "   "}))
        assert exc_info.value.code == ErrorCode.REQUIRED_FIELDS

    def test_purpose_required(self):
        with pytest.raises(ValidationError) as exc_info:
            normalize_profile_input(_form(purposes=["bogus"]))
        assert exc_info.value.code == ErrorCode.PURPOSE_REQUIRED


class TestSaveProfile:
    def test_creates_then_updates_single_profile(self, make_user):
        make_user("alice")

        created = save_profile("alice", _form())
        updated = save_profile("alice", _form(nickname="Alice B", photo_urls=[]))

        assert created.id == updated.id
        assert updated.nickname == "Alice B"
        assert updated.has_photo is False
        assert updated.status == ProfileStatus.ACTIVE
        assert count_rows("dating_profiles") == 1

    def test_update_keeps_activation_state(self, make_user):
        make_user("alice")
        save_profile("alice", _form())
        set_profile_active("alice", False)

        profile = save_profile("alice", _form(nickname="Still hidden"))

        assert profile.status == ProfileStatus.INACTIVE
        assert profile.is_active is False

    def test_invalid_form_writes_nothing(self, make_user):
        make_user("alice")
        with pytest.raises(ValidationError):
            save_profile("alice", _form(purposes=[]))
        assert count_rows("dating_profiles") == 0


class TestGetProfile:
    def test_by_user_and_by_id(self, make_profile):
        make_profile("alice")

        assert get_profile("alice").id == "profile-alice"
        assert get_profile_by_id("profile-alice").user_id == "alice"
        assert get_profile("nobody") is None
        assert get_profile_by_id("nothing") is None


class TestSetProfileActive:
    def test_deactivate_and_reactivate(self, make_profile):
        old = utcnow() - timedelta(days=100)
        make_profile("alice", last_activated_at=old)

        inactive = set_profile_active("alice", False)
        assert inactive.status == ProfileStatus.INACTIVE
        assert inactive.is_active is False

        active = set_profile_active("alice", True)
        assert active.status == ProfileStatus.ACTIVE
        assert active.last_activated_at > old

    def test_missing_profile(self):
        with pytest.raises(ValidationError) as exc_info:
            set_profile_active("nobody", True)
        assert exc_info.value.code == ErrorCode.PROFILE_REQUIRED


def _attach(section, listing_id):
    return ListingAttachment(section=section, listing_id=listing_id)


class TestProfileListings:
    @pytest.fixture(autouse=True)
    def listings(self, make_profile, make_user, make_listing):
        make_profile("alice")
        make_user("bob")
        make_listing("market", "bike", "alice", price=100)
        make_listing("market", "lamp", "alice", created_at=utcnow() - timedelta(days=1))
        make_listing("housing", "flat", "alice", price_per_month=700)
        make_listing("jobs", "old-job", "alice", status="archived")
        make_listing("jobs", "bobs-job", "bob")

    def test_available_are_own_active_listings(self):
        listings = get_profile_listings("alice")

        assert listings.profile_id == "profile-alice"
        assert [p.id for p in listings.available[ListingSection.MARKET]] == ["bike", "lamp"]
        assert listings.available[ListingSection.MARKET][0].price_label == "100 RUB"
        assert [p.id for p in listings.available[ListingSection.HOUSING]] == ["flat"]
        assert listings.available[ListingSection.JOBS] == []
        assert listings.attached == []

    def test_available_limit_from_settings(self, monkeypatch):
        monkeypatch.setattr(settings, "PROFILE_LISTINGS_LIMIT", 1)

        assert len(get_profile_listings("alice").available[ListingSection.MARKET]) == 1

    def test_set_keeps_only_own_active_listings(self):
        attached = set_profile_listings(
            "alice",
            [
                _attach("housing", "flat"),
                _attach("market", "bike"),
                _attach("market", "bike"),
                _attach("jobs", "old-job"),
                _attach("jobs", "bobs-job"),
                _attach("market", "missing"),
            ],
        )

        assert [(item.section, item.listing_id) for item in attached] == [
            (ListingSection.MARKET, "bike"),
            (ListingSection.HOUSING, "flat"),
        ]
        assert count_rows("dating_profile_listings", profile_id="profile-alice") == 2
        assert get_profile_listings("alice").attached == attached

    def test_set_replaces_previous_selection(self):
        set_profile_listings("alice", [_attach("market", "bike"), _attach("housing", "flat")])

        attached = set_profile_listings("alice", [_attach("market", "lamp")])

        assert [item.listing_id for item in attached] == ["lamp"]
        assert count_rows("dating_profile_listings") == 1

    def test_empty_selection_clears(self):
        set_profile_listings("alice", [_attach("market", "bike")])

        assert set_profile_listings("alice", []) == []
        assert count_rows("dating_profile_listings") == 0

    def test_missing_profile(self):
        with pytest.raises(NotFoundError) as exc_info:
            get_profile_listings("bob")
        assert exc_info.value.code == ErrorCode.PROFILE_NOT_FOUND

        with pytest.raises(NotFoundError) as exc_info:
            set_profile_listings("bob", [_attach("jobs", "bobs-job")])
        assert exc_info.value.code == ErrorCode.PROFILE_NOT_FOUND
