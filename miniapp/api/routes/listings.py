"""Listing routes shared by the market, housing and jobs sections: reports and contact reveal."""

from typing import Any, Dict

from fastapi import APIRouter, Depends

from miniapp.api.deps import get_current_user
from miniapp.api.schemas import ListingContactRequest, ListingReportRequest
from miniapp.models.user import CurrentUser
from miniapp.services import listing_service, report_service

router = APIRouter(prefix="/api/listings", tags=["listings"])


@router.post("/report")
def report_listing(body: ListingReportRequest, current_user: CurrentUser = Depends(get_current_user)) -> Dict[str, Any]:
    comment = body.comment if isinstance(body.comment, str) else None
    outcome = report_service.submit_listing_report(
        current_user.user_id, body.section, body.listing_id, body.reason, comment
    )
    return {"ok": True, "autoArchived": outcome.escalated, "totalReports": outcome.total_reports}


@router.post("/contact")
def reveal_contact(
    body: ListingContactRequest, current_user: CurrentUser = Depends(get_current_user)
) -> Dict[str, Any]:
    reveal = listing_service.reveal_listing_contact(current_user.user_id, body.section, body.listing_id)
    return {
        "ok": True,
        "alreadyPurchased": reveal.already_purchased,
        "priceCents": reveal.price_cents,
        "currency": reveal.currency,
        "contact": {"telegramUsername": reveal.telegram_username},
    }
