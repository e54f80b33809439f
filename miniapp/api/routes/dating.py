"""Dating section routes: profile, profile listings, feed, swipes, matches and user reports."""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, Query
from pydantic import ValidationError as PydanticValidationError

from miniapp.api.deps import get_current_user
from miniapp.api.schemas import DatingReportRequest, ProfileActiveRequest, ProfileListingItem, SwipeRequest
from miniapp.models.listing import ListingAttachment
from miniapp.models.profile import ProfileInput
from miniapp.models.user import CurrentUser
from miniapp.services import matching_service, profile_service, report_service

router = APIRouter(prefix="/api/dating", tags=["dating"])


def _attachment_json(item: ListingAttachment) -> Dict[str, str]:
    return {"listingType": item.section.value, "listingId": item.listing_id}


@router.get("/profile")
def get_profile(current_user: CurrentUser = Depends(get_current_user)) -> Dict[str, Any]:
    profile = profile_service.get_profile(current_user.user_id)
    return {"ok": True, "profile": profile.model_dump(mode="json") if profile else None}


@router.put("/profile")
def save_profile(body: ProfileInput, current_user: CurrentUser = Depends(get_current_user)) -> Dict[str, Any]:
    profile = profile_service.save_profile(current_user.user_id, body)
    return {"ok": True, "profile": profile.model_dump(mode="json")}


@router.post("/profile/active")
def set_profile_active(
    body: ProfileActiveRequest, current_user: CurrentUser = Depends(get_current_user)
) -> Dict[str, Any]:
    profile = profile_service.set_profile_active(current_user.user_id, body.active)
    return {"ok": True, "profile": profile.model_dump(mode="json")}


@router.get("/profile/listings")
def get_profile_listings(current_user: CurrentUser = Depends(get_current_user)) -> Dict[str, Any]:
    listings = profile_service.get_profile_listings(current_user.user_id)
    return {
        "ok": True,
        "profileId": listings.profile_id,
        "available": {
            section.value: [preview.model_dump(mode="json") for preview in previews]
            for section, previews in listings.available.items()
        },
        "attached": [_attachment_json(item) for item in listings.attached],
    }


@router.put("/profile/listings")
def set_profile_listings(
    body: Any = Body(default=None), current_user: CurrentUser = Depends(get_current_user)
) -> Dict[str, Any]:
    attachments = []
    # Anything but a list clears the attachments; malformed items are skipped
    for raw in body if isinstance(body, list) else []:
        try:
            attachments.append(ProfileListingItem.model_validate(raw).to_attachment())
        except PydanticValidationError:
            continue
    attached = profile_service.set_profile_listings(current_user.user_id, attachments)
    return {"ok": True, "attached": [_attachment_json(item) for item in attached]}


@router.get("/feed")
def get_feed(
    limit: Optional[int] = Query(default=None),
    purposes: Optional[List[str]] = Query(default=None),
    current_user: CurrentUser = Depends(get_current_user),
) -> Dict[str, Any]:
    profiles = matching_service.get_feed(current_user.user_id, limit=limit, purposes=purposes)
    return {"ok": True, "items": [p.model_dump(mode="json") for p in profiles]}


@router.post("/swipe")
def swipe(body: SwipeRequest, current_user: CurrentUser = Depends(get_current_user)) -> Dict[str, Any]:
    result = matching_service.record_swipe(current_user.user_id, body.to_profile_id, body.decision)
    return {"ok": True, "matchCreated": result.match_created}


@router.get("/matches")
def get_matches(current_user: CurrentUser = Depends(get_current_user)) -> Dict[str, Any]:
    matches = matching_service.get_user_matches(current_user.user_id)
    return {"ok": True, "items": [m.model_dump(mode="json") for m in matches]}


@router.post("/report")
def report_user(body: DatingReportRequest, current_user: CurrentUser = Depends(get_current_user)) -> Dict[str, Any]:
    outcome = report_service.submit_dating_report(
        current_user.user_id, body.target_user_id, body.reason, body.comment
    )
    return {
        "ok": True,
        "bannedAfterThisReport": outcome.escalated,
        "totalReportsForUser": outcome.total_reports,
    }
