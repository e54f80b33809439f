"""Report and escalation service for the Mini App backend.

Reports are filed against a target: a user (dating reports) or a listing in
one of the classifieds sections (listing reports). Both domains share one
algorithm: reject self-reports and duplicates, store the report, count the
target's open reports and demote the target once the count reaches
``REPORT_THRESHOLD``. The demotion is a conditional write
("only if not already demoted"), so concurrent escalations change the
target once and only the first one reports it.

Report and escalation are not wrapped in a transaction. If the escalation
fails after the insert, the report stays and a moderator has to act.
"""

from typing import Any, Dict, List, Optional, Union

import sentry_sdk

from miniapp.config import settings
from miniapp.models.listing import LISTING_SECTION_TABLES, ListingSection, ListingStatus
from miniapp.models.report import (
    DATING_REPORT_REASONS,
    LISTING_REPORT_REASONS,
    DatingReport,
    ListingReport,
    ReportKind,
    ReportOutcome,
    ReportStatus,
)
from miniapp.models.user import UserStatus
from miniapp.utils.database import execute_query, utcnow
from miniapp.utils.errors import (
    ConflictError,
    DatabaseError,
    DuplicateRecordError,
    ErrorCode,
    NotFoundError,
    ValidationError,
)
from miniapp.utils.logging import get_logger, log_error

logger = get_logger(__name__)

REPORT_TABLES: Dict[ReportKind, str] = {
    ReportKind.DATING: "dating_reports",
    ReportKind.LISTING: "listing_reports",
}


class ReportTarget:
    """
    Something reports can be filed against.

    Subclasses bind the target's own table and the report table that points
    at it; the escalation algorithm only talks to this interface.
    """

    kind: ReportKind
    table: str
    demoted_status: str
    allowed_statuses: List[str]
    reasons: List[str]
    not_found_code: ErrorCode

    def __init__(self, target_id: str) -> None:
        self.target_id = target_id
        self._row: Optional[Dict[str, Any]] = None

    def load(self) -> Optional[Dict[str, Any]]:
        """Fetch the target row (cached for the lifetime of this object)."""
        if self._row is None:
            result = execute_query(table=self.table, query_type="select", filters={"id": self.target_id}, limit=1)
            self._row = result.first()
        return self._row

    def exists(self) -> bool:
        return self.load() is not None

    def current_status(self) -> Optional[str]:
        row = self.load()
        return row.get("status") if row else None

    def set_status(self, status: str, only_if_not: Optional[str] = None) -> bool:
        """
        Write the target's status.

        Args:
            status (str): New status.
            only_if_not (Optional[str]): Skip the write when the stored status
                already equals this value. Evaluated by the UPDATE itself.

        Returns:
            bool: True if a row was changed.
        """
        filters: Dict[str, Any] = {"id": self.target_id}
        if only_if_not is not None:
            filters["status__neq"] = only_if_not

        result = execute_query(table=self.table, query_type="update", filters=filters, data={"status": status})
        self._row = result.first() or self._row
        return result.count > 0

    def report_filters(self) -> Dict[str, Any]:
        """Columns identifying this target in its report table."""
        raise NotImplementedError

    def report_row(self, reporter_id: str, reason: str, comment: Optional[str]) -> Dict[str, Any]:
        return {
            **self.report_filters(),
            "reporter_user_id": reporter_id,
            "reason": reason,
            "comment": comment,
            "status": ReportStatus.NEW.value,
        }

    def check_reportable(self, reporter_id: str) -> None:
        """Raise if ``reporter_id`` may not report this target."""
        raise NotImplementedError

    def auto_note(self, status: str) -> str:
        """Moderator note used when a manual status change resolves a report."""
        raise NotImplementedError

    @property
    def report_table(self) -> str:
        return REPORT_TABLES[self.kind]

    def describe(self) -> Dict[str, Any]:
        return {"target_kind": self.kind.value, "target_id": self.target_id}


class UserTarget(ReportTarget):
    """A user, reported from the dating section. Demotion is a ban."""

    kind = ReportKind.DATING
    table = "users"
    demoted_status = UserStatus.BANNED.value
    allowed_statuses = [UserStatus.ACTIVE.value, UserStatus.BANNED.value]
    reasons = DATING_REPORT_REASONS
    not_found_code = ErrorCode.USER_NOT_FOUND

    def report_filters(self) -> Dict[str, Any]:
        return {"reported_user_id": self.target_id}

    def check_reportable(self, reporter_id: str) -> None:
        if self.target_id == reporter_id:
            raise ValidationError("Cannot report yourself", ErrorCode.CANNOT_REPORT_SELF)
        if not self.exists():
            raise NotFoundError(f"User not found: {self.target_id}", ErrorCode.USER_NOT_FOUND)

    def auto_note(self, status: str) -> str:
        return "banned manually" if status == UserStatus.BANNED.value else "ban lifted manually"


class ListingTarget(ReportTarget):
    """A listing in one of the sections. Demotion is archiving."""

    kind = ReportKind.LISTING
    demoted_status = ListingStatus.ARCHIVED.value
    allowed_statuses = [ListingStatus.ACTIVE.value, ListingStatus.ARCHIVED.value]
    reasons = LISTING_REPORT_REASONS
    not_found_code = ErrorCode.LISTING_NOT_FOUND

    def __init__(self, section: Union[ListingSection, str], listing_id: str) -> None:
        try:
            self.section = ListingSection(section)
        except ValueError as e:
            raise ValidationError(f"Unknown listing section: {section}", ErrorCode.INVALID_INPUT) from e
        super().__init__(listing_id)

    @property
    def table(self) -> str:  # type: ignore[override]
        return LISTING_SECTION_TABLES[self.section]

    def owner_id(self) -> Optional[str]:
        row = self.load()
        return row.get("user_id") if row else None

    def report_filters(self) -> Dict[str, Any]:
        return {"section": self.section.value, "listing_id": self.target_id}

    def report_row(self, reporter_id: str, reason: str, comment: Optional[str]) -> Dict[str, Any]:
        row = super().report_row(reporter_id, reason, comment)
        row["owner_user_id"] = self.owner_id()
        return row

    def check_reportable(self, reporter_id: str) -> None:
        if not self.exists():
            raise NotFoundError(
                f"Listing not found: {self.section.value}/{self.target_id}", ErrorCode.LISTING_NOT_FOUND_OR_ARCHIVED
            )
        if self.owner_id() == reporter_id:
            raise ValidationError("Cannot report your own listing", ErrorCode.CANNOT_REPORT_OWN_LISTING)
        if self.current_status() == ListingStatus.ARCHIVED.value:
            raise ValidationError("Listing is archived", ErrorCode.LISTING_NOT_FOUND_OR_ARCHIVED)

    def auto_note(self, status: str) -> str:
        return "archived manually" if status == ListingStatus.ARCHIVED.value else "archive lifted manually"

    def describe(self) -> Dict[str, Any]:
        return {**super().describe(), "section": self.section.value}


def submit_report(reporter_id: str, target: ReportTarget, reason: str, comment: Optional[str] = None) -> ReportOutcome:
    """
    File a report and demote the target once it has enough open reports.

    Args:
        reporter_id (str): The reporting user.
        target (ReportTarget): User or listing being reported.
        reason (str): One of the target domain's report reasons.
        comment (Optional[str]): Free-text comment.

    Returns:
        ReportOutcome: Whether this report triggered the demotion, and the
        number of open reports on the target.

    Raises:
        ValidationError: INVALID_REASON, CANNOT_REPORT_SELF,
            CANNOT_REPORT_OWN_LISTING or LISTING_NOT_FOUND_OR_ARCHIVED.
        NotFoundError: USER_NOT_FOUND or LISTING_NOT_FOUND_OR_ARCHIVED.
        ConflictError: ALREADY_REPORTED, also when a resolved report exists.
        DatabaseError: Any storage failure. Steps already committed stay.
    """
    reason = str(getattr(reason, "value", reason) or "").strip()
    comment = (comment or "").strip() or None
    context = {"reporter_id": reporter_id, **target.describe()}

    with sentry_sdk.start_span(op="report.submit", name=f"{target.kind.value}:{target.target_id}") as span:
        if reason not in target.reasons:
            raise ValidationError(f"Invalid report reason: {reason}", ErrorCode.INVALID_REASON)

        target.check_reportable(reporter_id)

        existing = execute_query(
            table=target.report_table,
            query_type="select",
            filters={**target.report_filters(), "reporter_user_id": reporter_id},
            limit=1,
        )
        if existing.data:
            logger.info("Duplicate report rejected", **context)
            raise ConflictError("You have already reported this target", ErrorCode.ALREADY_REPORTED)

        try:
            execute_query(
                table=target.report_table,
                query_type="insert",
                data=target.report_row(reporter_id, reason, comment),
            )
        except DuplicateRecordError as e:
            logger.info("Concurrent duplicate report rejected", **context)
            raise ConflictError("You have already reported this target", ErrorCode.ALREADY_REPORTED) from e

        try:
            total_reports = execute_query(
                table=target.report_table,
                query_type="count",
                filters={**target.report_filters(), "status": ReportStatus.NEW.value},
            ).count

            escalated = False
            if total_reports >= settings.REPORT_THRESHOLD:
                escalated = target.set_status(target.demoted_status, only_if_not=target.demoted_status)
        except DatabaseError as e:
            log_error(logger, e, "Report stored but escalation check failed", extra=context)
            raise

        span.set_data("total_reports", total_reports)
        span.set_data("escalated", escalated)

        if escalated:
            logger.warning(
                "Target demoted after reports", status=target.demoted_status, total_reports=total_reports, **context
            )
        else:
            logger.info("Report submitted", reason=reason, total_reports=total_reports, **context)

        return ReportOutcome(escalated=escalated, total_reports=total_reports)


def submit_dating_report(
    reporter_id: str, target_user_id: str, reason: str, comment: Optional[str] = None
) -> ReportOutcome:
    """Report a user from the dating section."""
    return submit_report(reporter_id, UserTarget(target_user_id), reason, comment)


def submit_listing_report(
    reporter_id: str, section: Union[ListingSection, str], listing_id: str, reason: str, comment: Optional[str] = None
) -> ReportOutcome:
    """Report a listing."""
    return submit_report(reporter_id, ListingTarget(section, listing_id), reason, comment)


def resolve_report(
    moderator_id: str, kind: Union[ReportKind, str], report_id: str, note: Optional[str] = None
) -> Union[DatingReport, ListingReport]:
    """
    Mark a report resolved.

    Resolution never reverses a ban or an archive, and a resolved report
    still blocks its reporter from reporting the same target again.

    Raises:
        NotFoundError: REPORT_NOT_FOUND.
    """
    kind = ReportKind(kind)
    result = execute_query(
        table=REPORT_TABLES[kind],
        query_type="update",
        filters={"id": report_id},
        data={
            "status": ReportStatus.RESOLVED.value,
            "resolved_at": utcnow(),
            "resolved_by_user_id": moderator_id,
            "moderator_note": (note or "").strip() or None,
        },
    )

    row = result.first()
    if not row:
        logger.warning("Report to resolve not found", kind=kind.value, report_id=report_id)
        raise NotFoundError(f"Report not found: {report_id}", ErrorCode.REPORT_NOT_FOUND)

    logger.info("Report resolved", kind=kind.value, report_id=report_id, moderator_id=moderator_id)
    if kind == ReportKind.DATING:
        return DatingReport.model_validate(row)
    return ListingReport.model_validate(row)


def set_target_status(
    moderator_id: str,
    target: ReportTarget,
    status: str,
    report_id: Optional[str] = None,
    note: Optional[str] = None,
) -> None:
    """
    Ban/unban a user or archive/unarchive a listing, regardless of report counts.

    With ``report_id`` the related report is resolved too, using ``note`` or
    an auto-generated note.

    Raises:
        ValidationError: INVALID_STATUS.
        NotFoundError: USER_NOT_FOUND or LISTING_NOT_FOUND.
    """
    status = str(getattr(status, "value", status))
    if status not in target.allowed_statuses:
        raise ValidationError(f"Invalid status for {target.kind.value} target: {status}", ErrorCode.INVALID_STATUS)

    if not target.set_status(status):
        raise NotFoundError(f"Target not found: {target.target_id}", target.not_found_code)

    logger.info("Target status set by moderator", status=status, moderator_id=moderator_id, **target.describe())

    if report_id:
        try:
            resolve_report(moderator_id, target.kind, report_id, (note or "").strip() or target.auto_note(status))
        except NotFoundError:
            logger.warning("Report linked to status change not found", report_id=report_id, **target.describe())
