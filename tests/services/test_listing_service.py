from datetime import timedelta
from unittest.mock import patch

import pytest

from miniapp.config import settings
from miniapp.models.listing import ListingSection
from miniapp.services.listing_service import (
    build_preview,
    get_listing,
    get_user_listings,
    parse_section,
    reveal_listing_contact,
)
from miniapp.utils.database import QueryResult, execute_query, utcnow
from miniapp.utils.errors import ErrorCode, NotFoundError, ValidationError
from tests.conftest import count_rows, fetch_one


@pytest.fixture
def listings(make_user, make_listing):
    make_user("seller", username="seller_tg")
    make_user("buyer")
    make_listing("market", "bike", "seller", price=100)
    make_listing("jobs", "dev", "seller", salary_from=1000, salary_to=2000, currency="USD")


class TestLookups:
    def test_parse_section(self):
        assert parse_section("housing") == ListingSection.HOUSING
        with pytest.raises(ValidationError) as exc_info:
            parse_section("cars")
        assert exc_info.value.code == ErrorCode.INVALID_INPUT

    def test_get_listing(self, listings):
        assert get_listing(ListingSection.MARKET, "bike").price == 100
        assert get_listing(ListingSection.HOUSING, "bike") is None

    def test_user_listings_active_newest_first(self, listings, make_listing):
        now = utcnow()
        make_listing("market", "old-lamp", "seller", created_at=now - timedelta(days=2))
        make_listing("market", "gone", "seller", status="archived")
        make_listing("market", "not-mine", "buyer")

        ids = [listing.id for listing in get_user_listings("seller", ListingSection.MARKET)]

        assert ids == ["bike", "old-lamp"]
        assert len(get_user_listings("seller", ListingSection.MARKET, limit=1)) == 1

    def test_build_preview(self, listings):
        preview = build_preview(ListingSection.JOBS, get_listing(ListingSection.JOBS, "dev"))

        assert preview.section == ListingSection.JOBS
        assert preview.title == "Listing dev"
        assert preview.price_label == "1000 - 2000 USD"


class TestRevealListingContact:
    def test_first_purchase(self, listings):
        reveal = reveal_listing_contact("buyer", "market", "bike")

        assert reveal.already_purchased is False
        assert reveal.price_cents == 5000
        assert reveal.currency == "RUB"
        assert reveal.telegram_username == "seller_tg"
        purchase = fetch_one("listing_contact_purchases", buyer_user_id="buyer")
        assert purchase["section"] == "market"
        assert purchase["listing_id"] == "bike"

    def test_second_call_reuses_purchase(self, listings):
        reveal_listing_contact("buyer", "market", "bike")

        again = reveal_listing_contact("buyer", ListingSection.MARKET, "bike")

        assert again.already_purchased is True
        assert again.telegram_username == "seller_tg"
        assert count_rows("listing_contact_purchases") == 1

    def test_price_from_settings(self, listings, monkeypatch):
        monkeypatch.setattr(settings, "CONTACT_PRICE_CENTS", 990)

        assert reveal_listing_contact("buyer", "jobs", "dev").price_cents == 990

    def test_stored_price_wins_over_settings(self, listings, monkeypatch):
        reveal_listing_contact("buyer", "market", "bike")
        monkeypatch.setattr(settings, "CONTACT_PRICE_CENTS", 990)

        assert reveal_listing_contact("buyer", "market", "bike").price_cents == 5000

    def test_own_listing(self, listings):
        with pytest.raises(ValidationError) as exc_info:
            reveal_listing_contact("seller", "market", "bike")
        assert exc_info.value.code == ErrorCode.CANNOT_PURCHASE_OWN_LISTING
        assert count_rows("listing_contact_purchases") == 0

    def test_missing_listing(self, listings):
        with pytest.raises(NotFoundError) as exc_info:
            reveal_listing_contact("buyer", "housing", "bike")
        assert exc_info.value.code == ErrorCode.LISTING_NOT_FOUND

    def test_archived_listing(self, listings, make_listing):
        make_listing("market", "sold", "seller", status="archived")

        with pytest.raises(NotFoundError) as exc_info:
            reveal_listing_contact("buyer", "market", "sold")
        assert exc_info.value.code == ErrorCode.LISTING_NOT_FOUND

    def test_owner_account_missing(self, listings, make_listing):
        make_listing("market", "orphan", "ghost")

        with pytest.raises(NotFoundError) as exc_info:
            reveal_listing_contact("buyer", "market", "orphan")
        assert exc_info.value.code == ErrorCode.USER_NOT_FOUND

    def test_unknown_section(self, listings):
        with pytest.raises(ValidationError) as exc_info:
            reveal_listing_contact("buyer", "cars", "bike")
        assert exc_info.value.code == ErrorCode.INVALID_INPUT

    def test_concurrent_purchase_reads_stored_row(self, listings):
        existing = {
            "buyer_user_id": "buyer",
            "section": "market",
            "listing_id": "bike",
            "price_cents": 5000,
            "currency": "RUB",
        }

        def lookup_misses_once(*args, **kwargs):
            if kwargs.get("table") == "listing_contact_purchases" and kwargs.get("query_type") == "select":
                if not lookup_misses_once.missed:
                    lookup_misses_once.missed = True
                    # The other request lands between our lookup and our insert
                    execute_query(table="listing_contact_purchases", query_type="insert", data=existing)
                    return QueryResult()
            return execute_query(*args, **kwargs)

        lookup_misses_once.missed = False

        with patch("miniapp.services.listing_service.execute_query", side_effect=lookup_misses_once):
            reveal = reveal_listing_contact("buyer", "market", "bike")

        assert reveal.already_purchased is True
        assert count_rows("listing_contact_purchases") == 1
