"""Database connection utilities for the Mini App backend using PostgreSQL."""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

import sentry_sdk
from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    and_,
    create_engine,
    or_,
)
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import DeclarativeBase, Mapped, Query, Session, mapped_column, sessionmaker

from miniapp.config import settings
from miniapp.utils.errors import DatabaseError, DuplicateRecordError
from miniapp.utils.logging import get_logger

logger = get_logger(__name__)


def utcnow() -> datetime:
    """Get current UTC time (naive) to replace datetime.utcnow()."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_id() -> str:
    """Generate a primary key."""
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    """Base class for SQLAlchemy models."""

    pass


class UserDB(Base):
    """Platform account. Dating profiles and listings hang off it."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(50), primary_key=True, default=new_id)
    telegram_username: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, index=True)
    nickname: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    status: Mapped[str] = mapped_column(String(20), default="active", index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


class DatingProfileDB(Base):
    """Dating profile database model. One per user."""

    __tablename__ = "dating_profiles"

    id: Mapped[str] = mapped_column(String(50), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(String(50), ForeignKey("users.id"), unique=True)
    nickname: Mapped[str] = mapped_column(String(100))
    looking_for: Mapped[str] = mapped_column(Text)
    offering: Mapped[str] = mapped_column(Text)
    comment: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    purposes: Mapped[List[str]] = mapped_column(JSON, default=list)
    photo_urls: Mapped[List[str]] = mapped_column(JSON, default=list)
    has_photo: Mapped[bool] = mapped_column(Boolean, default=False)
    link_market: Mapped[bool] = mapped_column(Boolean, default=False)
    link_housing: Mapped[bool] = mapped_column(Boolean, default=False)
    link_jobs: Mapped[bool] = mapped_column(Boolean, default=False)
    is_verified: Mapped[bool] = mapped_column(Boolean, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    status: Mapped[str] = mapped_column(String(20), default="active", index=True)
    last_activated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)


class DatingSwipeDB(Base):
    """Directed like/dislike edge. Later swipes overwrite earlier ones."""

    __tablename__ = "dating_swipes"
    __table_args__ = (UniqueConstraint("from_user_id", "to_profile_id", name="uq_dating_swipes_pair"),)

    id: Mapped[str] = mapped_column(String(50), primary_key=True, default=new_id)
    from_user_id: Mapped[str] = mapped_column(String(50), ForeignKey("users.id"), index=True)
    to_profile_id: Mapped[str] = mapped_column(String(50), ForeignKey("dating_profiles.id"), index=True)
    decision: Mapped[str] = mapped_column(String(10))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)


class DatingMatchDB(Base):
    """Mutual like between two users, stored once with user1_id < user2_id."""

    __tablename__ = "dating_matches"
    __table_args__ = (
        UniqueConstraint("user1_id", "user2_id", name="uq_dating_matches_pair"),
        CheckConstraint("user1_id < user2_id", name="ck_dating_matches_canonical_order"),
    )

    id: Mapped[str] = mapped_column(String(50), primary_key=True, default=new_id)
    user1_id: Mapped[str] = mapped_column(String(50), ForeignKey("users.id"), index=True)
    user2_id: Mapped[str] = mapped_column(String(50), ForeignKey("users.id"), index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    last_activity_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


class DatingReportDB(Base):
    """Report filed by one user against another."""

    __tablename__ = "dating_reports"
    __table_args__ = (UniqueConstraint("reporter_user_id", "reported_user_id", name="uq_dating_reports_pair"),)

    id: Mapped[str] = mapped_column(String(50), primary_key=True, default=new_id)
    reporter_user_id: Mapped[str] = mapped_column(String(50), ForeignKey("users.id"), index=True)
    reported_user_id: Mapped[str] = mapped_column(String(50), ForeignKey("users.id"), index=True)
    reason: Mapped[str] = mapped_column(String(50))
    comment: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(20), default="new", index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, index=True)
    resolved_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    resolved_by_user_id: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    moderator_note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class ListingReportDB(Base):
    """Report filed against a listing in one of the classifieds sections."""

    __tablename__ = "listing_reports"
    __table_args__ = (
        UniqueConstraint("section", "listing_id", "reporter_user_id", name="uq_listing_reports_reporter"),
    )

    id: Mapped[str] = mapped_column(String(50), primary_key=True, default=new_id)
    section: Mapped[str] = mapped_column(String(20), index=True)
    listing_id: Mapped[str] = mapped_column(String(50), index=True)
    reporter_user_id: Mapped[str] = mapped_column(String(50), ForeignKey("users.id"))
    owner_user_id: Mapped[Optional[str]] = mapped_column(String(50), ForeignKey("users.id"), nullable=True)
    reason: Mapped[str] = mapped_column(String(50))
    comment: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(20), default="new", index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, index=True)
    resolved_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    resolved_by_user_id: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    moderator_note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class ListingColumns:
    """Columns shared by the three section listing tables."""

    id: Mapped[str] = mapped_column(String(50), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(String(50), ForeignKey("users.id"), index=True)
    title: Mapped[str] = mapped_column(String(200))
    city: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    currency: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    status: Mapped[str] = mapped_column(String(20), default="active", index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)


class MarketListingDB(ListingColumns, Base):
    """Marketplace listing."""

    __tablename__ = "market_listings"

    price: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)


class HousingListingDB(ListingColumns, Base):
    """Housing listing."""

    __tablename__ = "housing_listings"

    price_per_month: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)


class JobListingDB(ListingColumns, Base):
    """Job listing."""

    __tablename__ = "job_listings"

    salary_from: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    salary_to: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)


class ListingContactPurchaseDB(Base):
    """A buyer's paid access to a listing owner's Telegram contact."""

    __tablename__ = "listing_contact_purchases"
    __table_args__ = (
        UniqueConstraint("buyer_user_id", "section", "listing_id", name="uq_listing_contact_purchases_buyer"),
    )

    id: Mapped[str] = mapped_column(String(50), primary_key=True, default=new_id)
    buyer_user_id: Mapped[str] = mapped_column(String(50), ForeignKey("users.id"), index=True)
    section: Mapped[str] = mapped_column(String(20))
    listing_id: Mapped[str] = mapped_column(String(50))
    price_cents: Mapped[int] = mapped_column(Integer)
    currency: Mapped[str] = mapped_column(String(10))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


class DatingProfileListingDB(Base):
    """Listing shown on a dating profile. Only the owner's active listings qualify."""

    __tablename__ = "dating_profile_listings"
    __table_args__ = (
        UniqueConstraint("profile_id", "section", "listing_id", name="uq_dating_profile_listings_item"),
    )

    id: Mapped[str] = mapped_column(String(50), primary_key=True, default=new_id)
    profile_id: Mapped[str] = mapped_column(String(50), ForeignKey("dating_profiles.id"), index=True)
    section: Mapped[str] = mapped_column(String(20))
    listing_id: Mapped[str] = mapped_column(String(50))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


MODEL_MAP: Dict[str, Any] = {
    "users": UserDB,
    "dating_profiles": DatingProfileDB,
    "dating_swipes": DatingSwipeDB,
    "dating_matches": DatingMatchDB,
    "dating_reports": DatingReportDB,
    "listing_reports": ListingReportDB,
    "market_listings": MarketListingDB,
    "housing_listings": HousingListingDB,
    "job_listings": JobListingDB,
    "listing_contact_purchases": ListingContactPurchaseDB,
    "dating_profile_listings": DatingProfileListingDB,
}


class QueryResult:
    """Rows returned by `execute_query`, plus the matched/affected row count."""

    def __init__(self, data: Optional[List[Dict[str, Any]]] = None, count: Optional[int] = None) -> None:
        self.data = data or []
        self.count = len(self.data) if count is None else count

    def first(self) -> Optional[Dict[str, Any]]:
        """Return the first row or None (maybe-single lookup)."""
        return self.data[0] if self.data else None


class Database:
    """Singleton database connection manager."""

    _engine = None
    _session_factory = None

    @classmethod
    def get_engine(cls) -> Any:
        """Get or create the database engine."""
        if cls._engine is None:
            from miniapp.config import get_settings

            settings = get_settings()
            database_url = settings.DATABASE_URL

            if not database_url:
                raise DatabaseError("DATABASE_URL is not configured")

            # SQLAlchemy 1.4+ requires postgresql:// instead of postgres://
            if database_url.startswith("postgres://"):
                database_url = database_url.replace("postgres://", "postgresql://", 1)

            try:
                cls._engine = create_engine(database_url, pool_recycle=300, pool_pre_ping=True, echo=settings.DEBUG)
                logger.info("Database engine created")
            except Exception as e:
                safe_url = database_url
                if "@" in safe_url:
                    try:
                        part1, part2 = safe_url.rsplit("@", 1)
                        if ":" in part1:
                            scheme_user, _ = part1.rsplit(":", 1)
                            safe_url = f"{scheme_user}:***@{part2}"
                    except ValueError:
                        safe_url = "REDACTED_MALFORMED_URL"

                logger.error("Failed to create database engine", error=str(e), url=safe_url)
                raise DatabaseError("Failed to connect to database", details={"error": str(e), "url": safe_url}) from e
        return cls._engine

    @classmethod
    def set_engine(cls, engine: Any) -> None:
        """Replace the engine (and drop the cached session factory)."""
        cls._engine = engine
        cls._session_factory = None

    @classmethod
    def get_session_factory(cls) -> Any:
        """Get or create the session factory."""
        if cls._session_factory is None:
            cls._session_factory = sessionmaker(bind=cls.get_engine())
        return cls._session_factory

    @classmethod
    def get_session(cls) -> Session:
        """Get a new database session."""
        return cls.get_session_factory()()  # type: ignore

    @classmethod
    def create_tables(cls) -> None:
        """Create all database tables."""
        engine = cls.get_engine()
        Base.metadata.create_all(engine)
        logger.info("Database tables created")


def get_session() -> Session:
    """Get a database session."""
    return Database.get_session()


def init_database() -> None:
    """Initialize the database and create tables."""
    Database.create_tables()


def _column(model: Any, field_name: str) -> Any:
    column = model.__table__.columns.get(field_name)
    if column is None:
        raise ValueError(f"Unknown column {field_name!r} on {model.__tablename__}")
    return getattr(model, field_name)


def _apply_filters(query: Query, model: Any, filters: Dict[str, Any]) -> Query:
    """Apply equality, operator-suffixed (``field__op``) and ``$or`` filters."""
    for key, value in filters.items():
        if key == "$or":
            # Each dict is ANDed internally, the dicts are ORed together
            or_conditions = []
            for condition in value:
                and_conditions = [_column(model, k) == v for k, v in condition.items()]
                if and_conditions:
                    or_conditions.append(and_(*and_conditions) if len(and_conditions) > 1 else and_conditions[0])
            if or_conditions:
                query = query.filter(or_(*or_conditions))
        elif "__" in key:
            field_name, op = key.rsplit("__", 1)
            column = _column(model, field_name)
            if op == "neq":
                query = query.filter(column != value)
            elif op == "gte":
                query = query.filter(column >= value)
            elif op == "lte":
                query = query.filter(column <= value)
            elif op == "gt":
                query = query.filter(column > value)
            elif op == "lt":
                query = query.filter(column < value)
            elif op == "in":
                query = query.filter(column.in_(list(value)))
            elif op == "not_in":
                query = query.filter(column.not_in(list(value)))
            elif op == "like":
                query = query.filter(column.like(value))
            elif op == "ilike":
                query = query.filter(column.ilike(value))
            else:
                raise ValueError(f"Unknown filter operator: {op}")
        else:
            query = query.filter(_column(model, key) == value)
    return query


def _apply_order(query: Query, model: Any, order_by: Optional[str]) -> Query:
    """Apply an ``"col desc, other asc"`` ordering."""
    if not order_by:
        return query
    for clause in order_by.split(","):
        parts = clause.split()
        if not parts:
            continue
        col = _column(model, parts[0])
        direction = parts[1].lower() if len(parts) > 1 else "asc"
        query = query.order_by(col.desc() if direction == "desc" else col.asc())
    return query


def _dialect_insert(session: Session) -> Any:
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        return pg_insert
    if dialect == "sqlite":
        return sqlite_insert
    raise ValueError(f"Upsert is not supported for dialect {dialect}")


def _is_unique_violation(error: IntegrityError) -> bool:
    original = getattr(error, "orig", None)
    if getattr(original, "pgcode", None) == "23505":
        return True
    return "unique" in str(original or error).lower()


def execute_query(
    table: str,
    query_type: str,
    filters: Optional[Dict[str, Any]] = None,
    data: Optional[Dict[str, Any]] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
    order_by: Optional[str] = None,
    on_conflict: Optional[Sequence[str]] = None,
) -> QueryResult:
    """Execute a query on the database.

    Args:
        table: Table name
        query_type: Query type (select, count, insert, upsert, update, delete)
        filters: Query filters. ``field__op`` keys select an operator
            (neq, gt, gte, lt, lte, in, not_in, like, ilike); ``$or`` takes a
            list of equality dicts.
        data: Data for insert/upsert/update operations
        limit: Max number of records to return
        offset: Number of records to skip
        order_by: Fields to sort by (e.g. "has_photo desc, created_at desc")
        on_conflict: Conflict columns for upsert

    Returns:
        QueryResult: rows as dicts, and the matched (select/count) or
        affected (update/delete) row count. Updates apply the filters inside
        the UPDATE statement, so a filter such as ``status__neq`` makes the
        write conditional and ``count`` tells whether it took effect.

    Raises:
        DuplicateRecordError: A uniqueness constraint rejected the write.
        DatabaseError: Any other failure.
    """
    session = get_session()
    filters = filters or {}
    data = data or {}

    span = None
    try:
        model = MODEL_MAP.get(table)
        if model is None:
            raise ValueError(f"Unknown table: {table}")

        if settings.SENTRY_DSN:
            span = sentry_sdk.start_span(op="db.query", name=f"{query_type.upper()} {table}")
            span.set_data("table", table)
            span.set_data("query_type", query_type)
            if filters:
                span.set_data("filters", str(filters))

        if query_type == "select":
            query = _apply_order(_apply_filters(session.query(model), model, filters), model, order_by)
            if offset:
                query = query.offset(offset)
            if limit:
                query = query.limit(limit)
            rows = [_model_to_dict(r) for r in query.all()]
            if span:
                span.set_data("row_count", len(rows))
            return QueryResult(rows)

        elif query_type == "count":
            count = _apply_filters(session.query(model), model, filters).count()
            return QueryResult([], count)

        elif query_type == "insert":
            instance = model(**data)
            session.add(instance)
            session.commit()
            return QueryResult([_model_to_dict(instance)])

        elif query_type == "upsert":
            if not on_conflict:
                raise ValueError("Upsert requires on_conflict columns")
            stmt = _dialect_insert(session)(model).values(**data)
            update_columns = {k: stmt.excluded[k] for k in data if k not in on_conflict and k != "id"}
            if "updated_at" in model.__table__.columns and "updated_at" not in data:
                update_columns["updated_at"] = utcnow()
            if update_columns:
                stmt = stmt.on_conflict_do_update(index_elements=list(on_conflict), set_=update_columns)
            else:
                stmt = stmt.on_conflict_do_nothing(index_elements=list(on_conflict))
            session.execute(stmt)
            session.commit()

            key_filters = {column: data[column] for column in on_conflict}
            rows = [_model_to_dict(r) for r in _apply_filters(session.query(model), model, key_filters).all()]
            return QueryResult(rows)

        elif query_type == "update":
            ids = [row_id for (row_id,) in _apply_filters(session.query(model.id), model, filters).all()]
            if not ids:
                logger.debug("No records matched update", table=table, filters=filters)
                if span:
                    span.set_status("not_found")
                return QueryResult([], 0)

            # Filters are re-applied in the UPDATE itself so conditional writes stay conditional
            query = _apply_filters(session.query(model).filter(model.id.in_(ids)), model, filters)
            updated_count = query.update(data, synchronize_session=False)
            session.commit()
            logger.debug("Update count", count=updated_count, table=table)

            rows = []
            if updated_count:
                rows = [_model_to_dict(r) for r in session.query(model).filter(model.id.in_(ids)).all()]
            if span:
                span.set_data("updated_count", updated_count)
            return QueryResult(rows, updated_count)

        elif query_type == "delete":
            deleted_count = _apply_filters(session.query(model), model, filters).delete(synchronize_session=False)
            session.commit()
            return QueryResult([], deleted_count)

        else:
            raise ValueError(f"Invalid query type: {query_type}")

    except IntegrityError as e:
        session.rollback()
        if span:
            span.set_status("already_exists")
        if _is_unique_violation(e):
            logger.warning(f"Unique constraint rejected {query_type} on {table}", filters=filters, data=data)
            raise DuplicateRecordError(
                f"Duplicate record: {query_type} on {table}",
                details={"error": str(e.orig), "filters": filters, "data": data},
            ) from e
        logger.error(f"Integrity error during {query_type} on {table}", error=str(e), filters=filters, data=data)
        raise DatabaseError(
            f"Database operation failed: {query_type} on {table}",
            details={"error": str(e), "filters": filters, "data": data},
        ) from e

    except Exception as e:
        if span:
            span.set_status("internal_error")
        session.rollback()
        logger.error(
            f"Failed to execute {query_type} query on {table}",
            error=str(e),
            filters=filters,
            data=data,
        )
        raise DatabaseError(
            f"Database operation failed: {query_type} on {table}",
            details={"error": str(e), "filters": filters, "data": data},
        ) from e

    finally:
        session.close()
        if span:
            span.finish()


def _model_to_dict(model: Any) -> Dict[str, Any]:
    """Convert a SQLAlchemy model to a dictionary."""
    return {c.name: getattr(model, c.name) for c in model.__table__.columns}
