"""Moderator routes for the dating and listing report queues."""

from enum import Enum
from typing import Any, Dict, Optional, Type, TypeVar

from fastapi import APIRouter, Depends, Query

from miniapp.api.deps import require_moderator
from miniapp.api.schemas import DatingModerationAction, ListingModerationAction
from miniapp.models.listing import ListingSection, ListingStatus
from miniapp.models.report import (
    DatingReportFilters,
    DatingReportReason,
    ListingReportFilters,
    ReportKind,
    ReportStatus,
)
from miniapp.models.user import CurrentUser, UserStatus
from miniapp.services import moderation_service, report_service
from miniapp.services.report_service import ListingTarget, UserTarget
from miniapp.utils.errors import ErrorCode, ValidationError

router = APIRouter(prefix="/api/moderation", tags=["moderation"])

E = TypeVar("E", bound=Enum)


def _enum_or_none(enum_cls: Type[E], value: Optional[str]) -> Optional[E]:
    """Unknown filter values are ignored rather than rejected."""
    if not value:
        return None
    try:
        return enum_cls(value)
    except ValueError:
        return None


def _required(value: Optional[str], name: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValidationError(f"{name} is required", ErrorCode.INVALID_INPUT)
    return value


@router.get("/dating")
def dating_queue(
    status: Optional[str] = Query(default=None),
    reason: Optional[str] = Query(default=None),
    target: Optional[str] = Query(default=None),
    limit: Optional[int] = Query(default=None),
    moderator: CurrentUser = Depends(require_moderator),
) -> Dict[str, Any]:
    filters = DatingReportFilters(
        status=_enum_or_none(ReportStatus, status),
        reason=_enum_or_none(DatingReportReason, reason),
        target_query=target,
        limit=limit,
    )
    items, reasons = moderation_service.fetch_dating_reports(filters)
    stats = moderation_service.get_dating_stats()
    return {
        "ok": True,
        "reports": [item.model_dump(mode="json") for item in items],
        "reasons": reasons,
        "stats": stats.model_dump(mode="json"),
    }


@router.post("/dating")
def dating_action(body: DatingModerationAction, moderator: CurrentUser = Depends(require_moderator)) -> Dict[str, Any]:
    if body.action == "resolveReport":
        report_service.resolve_report(
            moderator.user_id, ReportKind.DATING, _required(body.report_id, "reportId"), body.moderator_note
        )
        return {"ok": True}

    status = UserStatus.BANNED if body.action == "banUser" else UserStatus.ACTIVE
    report_service.set_target_status(
        moderator.user_id,
        UserTarget(_required(body.target_user_id, "targetUserId")),
        status.value,
        report_id=(body.report_id or "").strip() or None,
        note=body.moderator_note,
    )
    return {"ok": True}


@router.get("/listings")
def listing_queue(
    status: Optional[str] = Query(default=None),
    section: Optional[str] = Query(default=None),
    limit: Optional[int] = Query(default=None),
    moderator: CurrentUser = Depends(require_moderator),
) -> Dict[str, Any]:
    filters = ListingReportFilters(
        status=_enum_or_none(ReportStatus, status),
        section=_enum_or_none(ListingSection, section),
        limit=limit,
    )
    items, reasons = moderation_service.fetch_listing_reports(filters)
    stats = moderation_service.get_listing_stats()
    return {
        "ok": True,
        "reports": [item.model_dump(mode="json") for item in items],
        "reasons": reasons,
        "stats": stats.model_dump(mode="json"),
    }


@router.post("/listings")
def listing_action(
    body: ListingModerationAction, moderator: CurrentUser = Depends(require_moderator)
) -> Dict[str, Any]:
    report_id = (body.report_id or "").strip() or None

    if body.action == "resolveReport":
        report_service.resolve_report(
            moderator.user_id, ReportKind.LISTING, _required(body.report_id, "reportId"), body.moderator_note
        )
        return {"ok": True}

    if body.action in ("archiveListing", "unarchiveListing"):
        target = ListingTarget(_required(body.section, "section"), _required(body.listing_id, "listingId"))
        status = ListingStatus.ARCHIVED if body.action == "archiveListing" else ListingStatus.ACTIVE
        report_service.set_target_status(
            moderator.user_id, target, status.value, report_id=report_id, note=body.moderator_note
        )
        return {"ok": True}

    # Banning a listing owner resolves the listing report, not a dating one
    owner = UserTarget(_required(body.owner_user_id, "ownerUserId"))
    status = UserStatus.BANNED if body.action == "banUser" else UserStatus.ACTIVE
    report_service.set_target_status(moderator.user_id, owner, status.value)
    if report_id:
        note = (body.moderator_note or "").strip() or owner.auto_note(status.value)
        report_service.resolve_report(moderator.user_id, ReportKind.LISTING, report_id, note)
    return {"ok": True}
