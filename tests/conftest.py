"""pytest configuration and fixtures."""

import os

# Settings are read at import time, so the environment is set before any miniapp import
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "test"
os.environ["MODERATOR_USERNAMES"] = "Mod_One, @mod_two"
os.environ["REPORT_THRESHOLD"] = "3"
os.environ.pop("SENTRY_DSN", None)

from typing import Any, Callable, Dict, Optional  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from miniapp.models.listing import LISTING_SECTION_TABLES, ListingSection  # noqa: E402
from miniapp.utils.database import Base, Database, execute_query  # noqa: E402

MODERATOR_HEADERS = {"X-User-Id": "mod-1", "X-Telegram-Username": "mod_one"}


@pytest.fixture(autouse=True)
def db_engine():
    """Fresh in-memory SQLite database for every test."""
    engine = create_engine("sqlite://", poolclass=StaticPool, connect_args={"check_same_thread": False})
    Database.set_engine(engine)
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()
    Database.set_engine(None)


@pytest.fixture
def make_user() -> Callable[..., Dict[str, Any]]:
    def _make_user(user_id: str, username: Optional[str] = None, status: str = "active", **extra: Any):
        data = {"id": user_id, "telegram_username": username or user_id, "status": status, **extra}
        return execute_query(table="users", query_type="insert", data=data).first()

    return _make_user


@pytest.fixture
def make_profile(make_user) -> Callable[..., Dict[str, Any]]:
    """Create a user (if needed) and an active dating profile for it."""

    def _make_profile(user_id: str, create_user: bool = True, **overrides: Any):
        if create_user:
            make_user(user_id)
        data = {
            "id": f"profile-{user_id}",
            "user_id": user_id,
            "nickname": f"nick-{user_id}",
            "looking_for": "someone nice",
            "offering": "good company",
            "purposes": ["romantic"],
            "photo_urls": [],
            "has_photo": False,
            "status": "active",
            "is_active": True,
            **overrides,
        }
        return execute_query(table="dating_profiles", query_type="insert", data=data).first()

    return _make_profile


@pytest.fixture
def make_listing() -> Callable[..., Dict[str, Any]]:
    def _make_listing(section: str, listing_id: str, owner_id: str, status: str = "active", **extra: Any):
        data = {"id": listing_id, "user_id": owner_id, "title": f"Listing {listing_id}", "status": status, **extra}
        table = LISTING_SECTION_TABLES[ListingSection(section)]
        return execute_query(table=table, query_type="insert", data=data).first()

    return _make_listing


def fetch_one(table: str, **filters: Any) -> Optional[Dict[str, Any]]:
    """Read a single row straight from storage."""
    return execute_query(table=table, query_type="select", filters=filters, limit=1).first()


def count_rows(table: str, **filters: Any) -> int:
    return execute_query(table=table, query_type="count", filters=filters).count
