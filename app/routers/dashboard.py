from fastapi import APIRouter, Depends
from sqlmodel import Session, func, select

from app.db.db import get_session
from app.models.claim import Claim, ClaimStatus
from app.models.item import Item, ItemStatus, ItemType
from app.models.user import User
from app.schemas.claim_schemas import claim_out
from app.schemas.item_schemas import item_out
from app.schemas.user_schemas import user_out
from app.services import claims, notifications
from app.utils.auth_helper import require_verified_user


router = APIRouter()

RECENT_LIMIT = 5


def _count(session: Session, query) -> int:
    return session.exec(query).one()


@router.get("")
def get_dashboard(
    session: Session = Depends(get_session),
    user: User = Depends(require_verified_user),
):
    my_items = select(func.count(Item.id)).where(Item.user_id == user.id)

    stats = {
        "lost_items": _count(session, my_items.where(Item.type == ItemType.lost)),
        "found_items": _count(session, my_items.where(Item.type == ItemType.found)),
        "returned_items": _count(session, my_items.where(Item.status == ItemStatus.returned)),
        "pending_claims_received": _count(
            session,
            select(func.count(Claim.id))
            .where(Claim.owner_id == user.id)
            .where(Claim.status == ClaimStatus.pending),
        ),
        "claims_submitted": _count(
            session, select(func.count(Claim.id)).where(Claim.claimant_id == user.id)
        ),
        "unread_notifications": notifications.unread_count(session, user.id),
    }

    recent_items = session.exec(
        select(Item)
        .where(Item.user_id == user.id)
        .order_by(Item.created_at.desc())
        .limit(RECENT_LIMIT)
    ).all()

    recent_claims = claims.claims_submitted(session, user)[:RECENT_LIMIT]

    return {
        "success": True,
        "user": user_out(user),
        "stats": stats,
        "recent_items": [item_out(item) for item in recent_items],
        "recent_claims": [claim_out(claim, item=item) for claim, item in recent_claims],
    }


@router.get("/my-items")
def get_my_items(
    session: Session = Depends(get_session),
    user: User = Depends(require_verified_user),
):
    items = session.exec(
        select(Item)
        .where(Item.user_id == user.id)
        .order_by(Item.created_at.desc())
    ).all()

    # Separate by type
    lost_items = [item_out(item) for item in items if item.type == ItemType.lost]
    found_items = [item_out(item) for item in items if item.type == ItemType.found]

    return {
        "success": True,
        "lost_items": lost_items,
        "found_items": found_items,
    }


@router.get("/my-claims")
def get_my_claims(
    session: Session = Depends(get_session),
    user: User = Depends(require_verified_user),
):
    submitted = claims.claims_submitted(session, user)
    received = claims.claims_received(session, user)

    return {
        "success": True,
        "submitted_claims": [claim_out(claim, item=item) for claim, item in submitted],
        "received_claims": [
            claim_out(claim, claimant=claimant, item=item) for claim, item, claimant in received
        ],
    }
