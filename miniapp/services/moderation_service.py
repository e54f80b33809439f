"""Moderation queues and statistics for the dating and listing report domains."""

import re
from collections import Counter
from datetime import timedelta
from typing import Dict, List, Optional, Tuple

from miniapp.config import settings
from miniapp.models.listing import (
    LISTING_SECTION_TABLES,
    Listing,
    ListingSection,
    ListingStatus,
    ListingSummary,
    build_price_label,
)
from miniapp.models.profile import ProfileStatus
from miniapp.models.report import (
    LISTING_REPORT_REASONS,
    DatingModerationItem,
    DatingModerationStats,
    DatingReportFilters,
    ListingModerationItem,
    ListingModerationStats,
    ListingReportFilters,
    ListingsWithReports,
    ReportStatus,
    ReportUser,
)
from miniapp.models.user import UserStatus
from miniapp.utils.database import execute_query, utcnow
from miniapp.utils.logging import get_logger

logger = get_logger(__name__)

UUID_LIKE = re.compile(r"^[0-9a-fA-F-]{32,36}$")

DATING_REPORTS_MAX_LIMIT = 200
LISTING_REPORTS_MAX_LIMIT = 150
DEFAULT_REPORTS_LIMIT = 100
USERNAME_SEARCH_LIMIT = 20


def is_moderator(telegram_username: Optional[str]) -> bool:
    """Check a Telegram username against the configured moderator list."""
    if not telegram_username:
        return False
    normalized = telegram_username.strip().lstrip("@").lower()
    return normalized in settings.get_moderator_usernames()


def _clamp_limit(limit: Optional[int], maximum: int) -> int:
    requested = DEFAULT_REPORTS_LIMIT if limit is None else limit
    return min(max(requested, 1), maximum)


def _users_by_id(user_ids: List[str]) -> Dict[str, dict]:
    if not user_ids:
        return {}
    result = execute_query(table="users", query_type="select", filters={"id__in": user_ids})
    return {row["id"]: row for row in result.data}


def _report_user(row: Optional[dict], total_reports: Optional[int] = None) -> Optional[ReportUser]:
    if not row:
        return None
    return ReportUser(
        id=row["id"],
        telegram_username=row.get("telegram_username"),
        status=row.get("status"),
        is_banned=row.get("status") == UserStatus.BANNED.value,
        total_reports=total_reports,
    )


def resolve_target_user_ids(search: str) -> List[str]:
    """
    Turn a moderator's search string into candidate user ids.

    A leading ``@`` is ignored. Strings that look like a UUID are kept as an
    id; the string is also matched as a case-insensitive username substring.
    """
    query = search.strip().lstrip("@")
    if not query:
        return []

    ids: List[str] = []
    if UUID_LIKE.match(query):
        ids.append(query)

    result = execute_query(
        table="users",
        query_type="select",
        filters={"telegram_username__ilike": f"%{query}%"},
        limit=USERNAME_SEARCH_LIMIT,
    )
    for row in result.data:
        if row.get("id") and row["id"] not in ids:
            ids.append(row["id"])
    return ids


def fetch_dating_reports(filters: DatingReportFilters) -> Tuple[List[DatingModerationItem], List[str]]:
    """
    Load the dating report queue.

    Args:
        filters (DatingReportFilters): Status, reason and target search; the
            limit is clamped to ``[1, 200]``.

    Returns:
        Tuple[List[DatingModerationItem], List[str]]: Newest reports first,
        and the distinct reasons seen in the report table (for filter menus).
    """
    reason_rows = execute_query(table="dating_reports", query_type="select", limit=200).data
    reasons = sorted({row["reason"] for row in reason_rows if row.get("reason")})

    query_filters: Dict[str, object] = {}
    if filters.status:
        query_filters["status"] = filters.status.value
    if filters.reason:
        query_filters["reason"] = filters.reason.value

    if filters.target_query:
        target_ids = resolve_target_user_ids(filters.target_query)
        if not target_ids:
            return [], reasons
        query_filters["reported_user_id__in"] = target_ids

    result = execute_query(
        table="dating_reports",
        query_type="select",
        filters=query_filters,
        order_by="created_at desc",
        limit=_clamp_limit(filters.limit, DATING_REPORTS_MAX_LIMIT),
    )
    rows = result.data

    reported_ids = sorted({row["reported_user_id"] for row in rows if row.get("reported_user_id")})
    counts: Counter = Counter()
    if reported_ids:
        count_rows = execute_query(
            table="dating_reports",
            query_type="select",
            filters={"reported_user_id__in": reported_ids},
        ).data
        counts.update(row["reported_user_id"] for row in count_rows)

    user_ids = sorted(set(reported_ids) | {row["reporter_user_id"] for row in rows if row.get("reporter_user_id")})
    users = _users_by_id(user_ids)

    items = []
    for row in rows:
        reporter = users.get(row.get("reporter_user_id"))
        target = users.get(row.get("reported_user_id"))
        items.append(
            DatingModerationItem(
                id=row["id"],
                reason=row["reason"],
                comment=row.get("comment"),
                created_at=row.get("created_at"),
                status=row["status"],
                resolved_at=row.get("resolved_at"),
                resolved_by_user_id=row.get("resolved_by_user_id"),
                moderator_note=row.get("moderator_note"),
                reporter=ReportUser(id=reporter["id"], telegram_username=reporter.get("telegram_username"))
                if reporter
                else None,
                target=_report_user(target, counts.get(target["id"], 0) if target else None),
            )
        )

    logger.debug("Dating reports loaded", count=len(items))
    return items, reasons


def get_dating_stats() -> DatingModerationStats:
    """
    Summarize the dating moderation state.

    Banned profiles are active profiles whose owning account is banned.
    """
    now = utcnow()
    active_filters = {"status": ProfileStatus.ACTIVE.value, "is_active": True}

    active_profiles = execute_query(table="dating_profiles", query_type="count", filters=active_filters).count

    banned_user_ids = [
        row["id"]
        for row in execute_query(
            table="users", query_type="select", filters={"status": UserStatus.BANNED.value}
        ).data
    ]
    banned_profiles = 0
    if banned_user_ids:
        banned_profiles = execute_query(
            table="dating_profiles",
            query_type="count",
            filters={**active_filters, "user_id__in": banned_user_ids},
        ).count

    return DatingModerationStats(
        active_profiles=active_profiles,
        banned_profiles=banned_profiles,
        new_reports=execute_query(
            table="dating_reports", query_type="count", filters={"status": ReportStatus.NEW.value}
        ).count,
        reports_24h=execute_query(
            table="dating_reports", query_type="count", filters={"created_at__gte": now - timedelta(hours=24)}
        ).count,
        reports_7d=execute_query(
            table="dating_reports", query_type="count", filters={"created_at__gte": now - timedelta(days=7)}
        ).count,
    )


def fetch_listing_summaries(section: ListingSection, listing_ids: List[str]) -> Dict[str, ListingSummary]:
    """Load title, city, price label and status for listings of one section."""
    if not listing_ids:
        return {}

    result = execute_query(
        table=LISTING_SECTION_TABLES[section],
        query_type="select",
        filters={"id__in": listing_ids},
    )

    summaries = {}
    for row in result.data:
        listing = Listing.model_validate(row)
        summaries[listing.id] = ListingSummary(
            id=listing.id,
            title=listing.title,
            city=listing.city,
            price_label=build_price_label(section, listing),
            status=listing.status.value,
        )
    return summaries


def count_reports_for_listings(section: ListingSection, listing_ids: List[str]) -> Dict[str, int]:
    """Count all reports (any status) per listing of one section."""
    if not listing_ids:
        return {}

    result = execute_query(
        table="listing_reports",
        query_type="select",
        filters={"section": section.value, "listing_id__in": listing_ids},
    )
    return dict(Counter(row["listing_id"] for row in result.data if row.get("listing_id")))


def fetch_listing_reports(filters: ListingReportFilters) -> Tuple[List[ListingModerationItem], List[str]]:
    """
    Load the listing report queue.

    Args:
        filters (ListingReportFilters): Status and section; the limit is
            clamped to ``[1, 150]``.

    Returns:
        Tuple[List[ListingModerationItem], List[str]]: Newest reports first,
        each with its listing summary and total report count, and the full
        list of listing report reasons.
    """
    query_filters: Dict[str, object] = {}
    if filters.status:
        query_filters["status"] = filters.status.value
    if filters.section:
        query_filters["section"] = filters.section.value

    rows = execute_query(
        table="listing_reports",
        query_type="select",
        filters=query_filters,
        order_by="created_at desc",
        limit=_clamp_limit(filters.limit, LISTING_REPORTS_MAX_LIMIT),
    ).data

    ids_by_section: Dict[ListingSection, List[str]] = {}
    for row in rows:
        section_ids = ids_by_section.setdefault(ListingSection(row["section"]), [])
        if row["listing_id"] not in section_ids:
            section_ids.append(row["listing_id"])

    summaries: Dict[str, ListingSummary] = {}
    counts: Dict[str, int] = {}
    for section, ids in ids_by_section.items():
        for listing_id, summary in fetch_listing_summaries(section, ids).items():
            summaries[f"{section.value}:{listing_id}"] = summary
        for listing_id, count in count_reports_for_listings(section, ids).items():
            counts[f"{section.value}:{listing_id}"] = count

    user_ids = sorted(
        {row[key] for row in rows for key in ("reporter_user_id", "owner_user_id") if row.get(key)}
    )
    users = _users_by_id(user_ids)

    items = []
    for row in rows:
        key = f"{row['section']}:{row['listing_id']}"
        reporter = users.get(row.get("reporter_user_id"))
        items.append(
            ListingModerationItem(
                id=row["id"],
                section=row["section"],
                listing_id=row["listing_id"],
                reason=row["reason"],
                comment=row.get("comment"),
                status=row["status"],
                created_at=row.get("created_at"),
                resolved_at=row.get("resolved_at"),
                moderator_note=row.get("moderator_note"),
                reporter=ReportUser(id=reporter["id"], telegram_username=reporter.get("telegram_username"))
                if reporter
                else None,
                owner=_report_user(users.get(row.get("owner_user_id"))),
                listing=summaries.get(key),
                total_reports=counts.get(key, 0),
            )
        )

    logger.debug("Listing reports loaded", count=len(items))
    return items, list(LISTING_REPORT_REASONS)


def get_listing_stats() -> ListingModerationStats:
    """Count new reports per section and split reported listings into active/archived."""
    new_reports = {}
    with_reports = ListingsWithReports()

    for section in ListingSection:
        new_reports[section.value] = execute_query(
            table="listing_reports",
            query_type="count",
            filters={"section": section.value, "status": ReportStatus.NEW.value},
        ).count

        report_rows = execute_query(
            table="listing_reports",
            query_type="select",
            filters={"section": section.value},
            limit=2000,
        ).data
        listing_ids = sorted({row["listing_id"] for row in report_rows if row.get("listing_id")})
        if not listing_ids:
            continue

        listings = execute_query(
            table=LISTING_SECTION_TABLES[section],
            query_type="select",
            filters={"id__in": listing_ids},
        ).data
        for listing in listings:
            if listing.get("status") == ListingStatus.ARCHIVED.value:
                with_reports.archived += 1
            else:
                with_reports.active += 1

    return ListingModerationStats(new_reports=new_reports, listings_with_reports=with_reports)
