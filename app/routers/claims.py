import uuid
from typing import Optional
from fastapi import APIRouter, Depends
from sqlmodel import Session

from app.db.db import get_session
from app.models.claim import Claim, ClaimStatus
from app.models.item import Item
from app.models.user import User
from app.schemas.base import dump
from app.schemas.claim_schemas import ClaimCreateRequest, ClaimRejectRequest, ContactRequest, claim_out
from app.schemas.user_schemas import user_summary
from app.services import claims, policy
from app.utils.auth_helper import require_active_user, require_verified_user
from app.utils.errors import Forbidden, NotFound


router = APIRouter()


@router.post("/{item_id}/claim")
def claim_found_item(
    item_id: uuid.UUID,
    payload: ClaimCreateRequest,
    session: Session = Depends(get_session),
    user: User = Depends(require_active_user),
):
    """Claim flow for found items only; lost items are refused."""
    claim = claims.submit_claim(
        session,
        item_id,
        user,
        payload.message,
        proof_description=payload.proof_description,
        contact_email=payload.contact_email,
        contact_phone=payload.contact_phone,
        found_only=True,
    )

    return {
        "success": True,
        "message": "Claim submitted successfully! The finder will be notified.",
        "claim": claim_out(claim),
    }


@router.get("/my-claims")
def get_claims_on_my_items(
    session: Session = Depends(get_session),
    user: User = Depends(require_verified_user),
):
    rows = claims.claims_received(session, user)

    return {
        "success": True,
        "claims": [claim_out(claim, claimant=claimant, item=item) for claim, item, claimant in rows],
    }


@router.get("/my-submitted-claims")
def get_my_submitted_claims(
    session: Session = Depends(get_session),
    user: User = Depends(require_verified_user),
):
    rows = claims.claims_submitted(session, user)

    return {
        "success": True,
        "claims": [claim_out(claim, item=item) for claim, item in rows],
    }


@router.get("/{claim_id}")
def get_claim(
    claim_id: uuid.UUID,
    session: Session = Depends(get_session),
    user: User = Depends(require_verified_user),
):
    claim = session.get(Claim, claim_id)
    if not claim:
        raise NotFound("Claim not found")

    item = session.get(Item, claim.item_id)
    is_claimant = claim.claimant_id == user.id

    if not (is_claimant or policy.is_item_owner(user, item) or user.is_admin):
        raise Forbidden("You are not allowed to view this claim")

    claimant = session.get(User, claim.claimant_id)

    response = {
        "success": True,
        "claim": claim_out(claim, claimant=claimant, item=item),
        "contact_history": [
            dump(contact) for contact in claims.get_contact_history(session, claim.id)
        ],
    }

    # the claimant sees how to reach the reporter once approved
    if is_claimant and claim.status == ClaimStatus.approved:
        reporter: Optional[User] = session.get(User, item.user_id) if item.user_id else None
        response["finder_contact"] = {
            **(user_summary(reporter) or {"name": item.reporter_name}),
            "contact_email": item.contact_email,
            "contact_phone": item.contact_phone,
        }

    return response


@router.post("/{claim_id}/approve")
def approve_claim(
    claim_id: uuid.UUID,
    session: Session = Depends(get_session),
    user: User = Depends(require_active_user),
):
    claim = claims.approve_claim(session, claim_id, user)

    return {"success": True, "message": "Claim approved successfully!", "claim": claim_out(claim)}


@router.post("/{claim_id}/reject")
def reject_claim(
    claim_id: uuid.UUID,
    payload: Optional[ClaimRejectRequest] = None,
    session: Session = Depends(get_session),
    user: User = Depends(require_active_user),
):
    reason = payload.reason if payload else None
    claim = claims.reject_claim(session, claim_id, user, reason=reason)

    return {"success": True, "message": "Claim rejected.", "claim": claim_out(claim)}


@router.post("/{claim_id}/contact")
def contact_claimant(
    claim_id: uuid.UUID,
    payload: ContactRequest,
    session: Session = Depends(get_session),
    user: User = Depends(require_active_user),
):
    claim, email_sent = claims.contact_claimant(session, claim_id, user, payload.message)

    message = "Message sent to claimant." if email_sent else "Message saved, but the email could not be delivered."

    return {"success": True, "message": message, "email_sent": email_sent, "claim": claim_out(claim)}
