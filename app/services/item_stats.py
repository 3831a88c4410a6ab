"""
Item Status Projector.

The claim counters and "most recent claim" fields on an Item are a cache of
its claims. They are rebuilt in full from the claims table every time, so
running the projection twice, or out of order with another writer, converges
to the same values. Nothing reads these fields for authorization.
"""
import logging
from datetime import datetime, timezone
import uuid
from sqlmodel import Session, select

from app.models.claim import Claim, ClaimStatus
from app.models.item import Item
from app.models.user import User
from app.utils.errors import DependencyFailure

logger = logging.getLogger(__name__)

RECENT_MESSAGE_LENGTH = 50


def summarize_message(message: str) -> str:
    if not message:
        return ""

    if len(message) <= RECENT_MESSAGE_LENGTH:
        return message

    return message[:RECENT_MESSAGE_LENGTH] + "..."


def compute_item_stats(session: Session, item_id: uuid.UUID) -> dict:
    claims = session.exec(
        select(Claim)
        .where(Claim.item_id == item_id)
        .order_by(Claim.created_at.desc())
    ).all()

    stats = {
        "total_claims": len(claims),
        "pending_claims": sum(1 for c in claims if c.status == ClaimStatus.pending),
        "approved_claims": sum(1 for c in claims if c.status == ClaimStatus.approved),
        "recent_claimant_name": None,
        "recent_claimed_at": None,
        "recent_claim_status": None,
        "recent_claim_message": None,
    }

    if claims:
        recent = claims[0]
        claimant = session.get(User, recent.claimant_id)

        stats.update(
            recent_claimant_name=claimant.name if claimant else "Unknown",
            recent_claimed_at=recent.created_at,
            recent_claim_status=ClaimStatus(recent.status).value,
            recent_claim_message=summarize_message(recent.message),
        )

    return stats


def refresh_item_stats(session: Session, item_id: uuid.UUID) -> dict:
    """Recompute and persist the cached claim stats of one item."""
    item = session.get(Item, item_id)
    if not item:
        return {}

    stats = compute_item_stats(session, item_id)

    for field, value in stats.items():
        setattr(item, field, value)

    item.stats_updated_at = datetime.now(timezone.utc)

    session.add(item)
    session.commit()

    logger.debug("Updated stats for item %s: %s", item_id, stats)

    return stats


def refresh_item_stats_safely(session: Session, item_id: uuid.UUID) -> bool:
    """
    Run the projection after a claim write. Failures are logged and swallowed;
    the next claim write on the same item triggers a new full recomputation.
    """
    try:
        refresh_item_stats(session, item_id)
    except Exception as e:
        session.rollback()
        failure = DependencyFailure(f"Could not update stats for item {item_id}: {e}")
        logger.warning(failure.message)
        return False

    return True


def refresh_all_item_stats(session: Session) -> int:
    item_ids = session.exec(select(Item.id)).all()

    for item_id in item_ids:
        refresh_item_stats(session, item_id)

    logger.info("Rebuilt claim stats for %d items", len(item_ids))

    return len(item_ids)
