import uuid
from typing import Optional
from fastapi import APIRouter, Depends
from sqlmodel import Session, select

from app.db.db import get_session
from app.models.claim import Claim, ClaimStatus
from app.models.item import ItemStatus, ItemType
from app.models.user import User
from app.schemas.claim_schemas import ClaimCreateRequest, ClaimRejectRequest, ContactRequest, claim_out
from app.schemas.item_schemas import ItemReportRequest, ItemUpdateRequest, item_out
from app.services import analytics, claims, items, policy
from app.utils.auth_helper import get_viewer, require_active_user, require_verified_user


router = APIRouter()

ITEM_DETAIL_CLAIMS = 5


@router.get("")
def list_items(
    q: Optional[str] = None,
    category: Optional[str] = None,
    type: Optional[str] = None,
    status: Optional[str] = None,
    session: Session = Depends(get_session),
):
    results = items.search_items(session, q=q, category=category, item_type=type, status=status)

    return {
        "success": True,
        "items": [item_out(item) for item in results],
        "count": len(results),
    }


@router.get("/stats")
def get_home_stats(session: Session = Depends(get_session)):
    return {"success": True, "stats": analytics.home_stats(session)}


@router.post("/report-lost")
def report_lost_item(
    payload: ItemReportRequest,
    session: Session = Depends(get_session),
    user: User = Depends(require_active_user),
):
    item = items.report_item(session, user, ItemType.lost, payload)

    return {
        "success": True,
        "message": "Lost item reported successfully!",
        "item": item_out(item),
    }


@router.post("/report-found")
def report_found_item(
    payload: ItemReportRequest,
    session: Session = Depends(get_session),
    user: User = Depends(require_active_user),
):
    item = items.report_item(session, user, ItemType.found, payload)

    return {
        "success": True,
        "message": "Found item reported successfully! Thank you for helping.",
        "item": item_out(item),
    }


@router.get("/{item_id}")
def get_item(
    item_id: uuid.UUID,
    session: Session = Depends(get_session),
    viewer: Optional[User] = Depends(get_viewer),
):
    item = items.get_item(session, item_id)

    reporter = session.get(User, item.user_id) if item.user_id else None

    response = {
        "success": True,
        "item": item_out(item),
        "reporter": {
            "public_id": reporter.public_id if reporter else None,
            "name": reporter.name if reporter else item.reporter_name,
        },
        "similar_items": [item_out(i) for i in items.similar_items(session, item)],
        "is_owner": bool(viewer and policy.is_item_owner(viewer, item)),
    }

    # claim history is only shown to the reporter and admins
    if viewer and (policy.is_item_owner(viewer, item) or viewer.is_admin):
        response["claims"] = [
            claim_out(claim, claimant=claimant)
            for claim, claimant in claims.claims_for_item(session, item.id, limit=ITEM_DETAIL_CLAIMS)
        ]

    if viewer:
        own_claim = session.exec(
            select(Claim)
            .where(Claim.item_id == item.id)
            .where(Claim.claimant_id == viewer.id)
            .order_by(Claim.created_at.desc())
        ).first()

        response["my_claim_status"] = own_claim.status.value if own_claim else None
        response["can_claim"] = (
            not policy.is_item_owner(viewer, item)
            and item.status == ItemStatus.available
            and not (own_claim and own_claim.status == ClaimStatus.pending)
        )

    return response


@router.patch("/{item_id}")
def update_item(
    item_id: uuid.UUID,
    payload: ItemUpdateRequest,
    session: Session = Depends(get_session),
    user: User = Depends(require_active_user),
):
    item = items.update_item(session, item_id, user, payload.model_dump(exclude_unset=True))

    return {"success": True, "message": "Item updated successfully", "item": item_out(item)}


@router.delete("/{item_id}")
def delete_item(
    item_id: uuid.UUID,
    session: Session = Depends(get_session),
    user: User = Depends(require_active_user),
):
    name = items.delete_item_as(session, item_id, user)

    return {"success": True, "message": f'Item "{name}" deleted successfully'}


# Claims nested under an item

@router.post("/{item_id}/claim")
def claim_item(
    item_id: uuid.UUID,
    payload: ClaimCreateRequest,
    session: Session = Depends(get_session),
    user: User = Depends(require_active_user),
):
    claim = claims.submit_claim(
        session,
        item_id,
        user,
        payload.message,
        proof_description=payload.proof_description,
        contact_email=payload.contact_email,
        contact_phone=payload.contact_phone,
    )

    return {
        "success": True,
        "message": "Your claim has been submitted! The item owner will be notified.",
        "claim": claim_out(claim),
    }


@router.get("/{item_id}/claims")
def get_item_claims(
    item_id: uuid.UUID,
    session: Session = Depends(get_session),
    user: User = Depends(require_verified_user),
):
    item = items.get_item(session, item_id)
    policy.ensure_can_view_claims(user, item)

    rows = claims.claims_for_item(session, item.id)

    return {
        "success": True,
        "item": item_out(item),
        "claims": [claim_out(claim, claimant=claimant) for claim, claimant in rows],
    }


@router.post("/{item_id}/claims/{claim_id}/approve")
def approve_item_claim(
    item_id: uuid.UUID,
    claim_id: uuid.UUID,
    session: Session = Depends(get_session),
    user: User = Depends(require_active_user),
):
    claim = claims.approve_claim(session, claim_id, user, item_id=item_id)

    return {
        "success": True,
        "message": "Claim approved! The item has been marked as returned.",
        "claim": claim_out(claim),
    }


@router.post("/{item_id}/claims/{claim_id}/reject")
def reject_item_claim(
    item_id: uuid.UUID,
    claim_id: uuid.UUID,
    payload: Optional[ClaimRejectRequest] = None,
    session: Session = Depends(get_session),
    user: User = Depends(require_active_user),
):
    reason = payload.reason if payload else None
    claim = claims.reject_claim(session, claim_id, user, reason=reason, item_id=item_id)

    return {"success": True, "message": "Claim rejected.", "claim": claim_out(claim)}


@router.post("/{item_id}/claims/{claim_id}/contact")
def contact_item_claimant(
    item_id: uuid.UUID,
    claim_id: uuid.UUID,
    payload: ContactRequest,
    session: Session = Depends(get_session),
    user: User = Depends(require_active_user),
):
    claim, email_sent = claims.contact_claimant(session, claim_id, user, payload.message, item_id=item_id)

    message = "Message sent to claimant." if email_sent else "Message saved, but the email could not be delivered."

    return {"success": True, "message": message, "email_sent": email_sent, "claim": claim_out(claim)}


@router.post("/{item_id}/claims/{claim_id}/return")
def mark_item_returned(
    item_id: uuid.UUID,
    claim_id: uuid.UUID,
    session: Session = Depends(get_session),
    user: User = Depends(require_active_user),
):
    claim = claims.mark_returned(session, claim_id, user, item_id=item_id)

    return {"success": True, "message": "Item marked as returned.", "claim": claim_out(claim)}
