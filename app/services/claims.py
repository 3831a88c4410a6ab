"""
Claim lifecycle: submit, approve, reject, contact and mark-returned.

Every operation takes the acting user explicitly, runs the access policy,
applies the claim and item status changes in a single commit, then performs
the best-effort side effects (notifications, email, stats projection). A
failed side effect is logged and never undoes the committed transition.

Item status moves along::

    available -> claim_pending -> returned
                 claim_pending -> available   (last pending claim rejected)
"""
import logging
from datetime import datetime, timezone
from typing import List, Optional, Tuple
import uuid
from sqlmodel import Session, func, select

from app.models.claim import DEFAULT_PROOF, Claim, ClaimContact, ClaimStatus
from app.models.item import Item, ItemStatus, ItemType
from app.models.notification import NotificationType
from app.models.user import User
from app.services import policy
from app.services.item_stats import refresh_item_stats_safely
from app.services.notifications import notify_safely
from app.utils.email_service import send_claim_contact_email, send_claim_notification_email
from app.utils.errors import InvalidState, NotFound, ValidationError

logger = logging.getLogger(__name__)

OWNER_APPROVED_RESPONSE = "Claim approved by item owner"
ADMIN_APPROVED_RESPONSE = "Claim approved by admin"
RETURNED_RESPONSE = "Item has been returned to claimant"
DEFAULT_REJECT_RESPONSE = "Claim rejected by item owner."
SIBLING_APPROVED_RESPONSE = "Another claim was approved for this item."
SIBLING_RETURNED_RESPONSE = "Item has been returned to another claimant."
OWNER_CONTACT_MESSAGE = 'The owner of "{item}" sent you a message about your claim'
ADMIN_CONTACT_MESSAGE = 'An administrator sent you a message about your claim on "{item}"'


def _now():
    return datetime.now(timezone.utc)


def _get_item(session: Session, item_id: uuid.UUID) -> Item:
    item = session.get(Item, item_id)
    if not item:
        raise NotFound("Item not found")

    return item


def _get_claim_and_item(
    session: Session,
    claim_id: uuid.UUID,
    item_id: Optional[uuid.UUID] = None,
) -> Tuple[Claim, Item]:
    claim = session.get(Claim, claim_id)
    if not claim:
        raise NotFound("Claim not found")

    # nested routes name the item too; the claim must belong to it
    if item_id is not None and claim.item_id != item_id:
        raise NotFound("Claim not found for this item")

    item = _get_item(session, claim.item_id)

    return claim, item


def _send_safely(send, **kwargs) -> bool:
    try:
        return bool(send(**kwargs))
    except Exception as e:
        logger.error("Email side effect %s failed: %s", send.__name__, e)
        return False


def _count_pending(session: Session, item_id: uuid.UUID) -> int:
    return session.exec(
        select(func.count(Claim.id))
        .where(Claim.item_id == item_id)
        .where(Claim.status == ClaimStatus.pending)
    ).one()


def release_item_if_idle(session: Session, item: Item) -> bool:
    """Put a claim_pending item back to available once no pending claim is left."""
    if item.status != ItemStatus.claim_pending:
        return False

    if _count_pending(session, item.id) > 0:
        return False

    item.status = ItemStatus.available
    item.updated_at = _now()
    session.add(item)

    return True


# Submit

def submit_claim(
    session: Session,
    item_id: uuid.UUID,
    claimant: User,
    message: str,
    proof_description: Optional[str] = None,
    contact_email: Optional[str] = None,
    contact_phone: Optional[str] = None,
    found_only: bool = False,
) -> Claim:
    """
    Create a pending claim on an available item.

    ``found_only`` selects the found-item flow, which refuses claims on lost
    items. Both flows refuse self-claims and duplicate pending claims.
    """
    message = (message or "").strip()
    if not message:
        raise ValidationError("Claim message is required")

    item = _get_item(session, item_id)

    if found_only and item.type != ItemType.found:
        raise InvalidState("Claims can only be made on found items")

    policy.ensure_can_claim(claimant, item)

    if item.status != ItemStatus.available:
        raise InvalidState("This item is not available for claiming")

    existing = session.exec(
        select(Claim)
        .where(Claim.item_id == item.id)
        .where(Claim.claimant_id == claimant.id)
        .where(Claim.status == ClaimStatus.pending)
    ).first()

    if existing:
        raise InvalidState("You already have a pending claim for this item")

    claim = Claim(
        item_id=item.id,
        claimant_id=claimant.id,
        owner_id=item.user_id,
        message=message,
        proof_description=(proof_description or "").strip() or DEFAULT_PROOF,
        contact_email=(contact_email or "").strip() or claimant.email,
        contact_phone=(contact_phone or "").strip() or None,
    )
    session.add(claim)

    item.status = ItemStatus.claim_pending
    item.updated_at = _now()
    session.add(item)

    session.commit()
    session.refresh(claim)

    logger.info("Claim %s submitted by user %s on item %s", claim.id, claimant.id, item.id)

    _notify_owner_of_claim(session, claim, item, claimant)
    refresh_item_stats_safely(session, item.id)

    return claim


def _notify_owner_of_claim(session: Session, claim: Claim, item: Item, claimant: User):
    if item.user_id is None:
        return

    owner = session.get(User, item.user_id)
    if not owner:
        return

    item_type = ItemType(item.type).value

    notify_safely(
        session,
        owner.id,
        NotificationType.new_claim,
        f'Someone claimed your {item_type} item: "{item.name}"',
        item_id=item.id,
        claim_id=claim.id,
    )

    if owner.email_notifications:
        _send_safely(
            send_claim_notification_email,
            to=owner.email,
            owner_name=owner.name or "Item Owner",
            item_name=item.name,
            item_type=item_type,
            claimant_name=claimant.name,
            claim_message=claim.message,
            item_id=item.id,
        )


# Approve / return

def approve_claim(
    session: Session,
    claim_id: uuid.UUID,
    actor: User,
    item_id: Optional[uuid.UUID] = None,
) -> Claim:
    claim, item = _get_claim_and_item(session, claim_id, item_id)

    policy.ensure_can_manage_claim(actor, item)

    if claim.status != ClaimStatus.pending:
        raise InvalidState("This claim has already been resolved")

    response = OWNER_APPROVED_RESPONSE if policy.is_item_owner(actor, item) else ADMIN_APPROVED_RESPONSE

    _resolve_as_returned(
        session,
        claim,
        item,
        actor,
        response=response,
        sibling_response=SIBLING_APPROVED_RESPONSE,
        notice=f'Your claim for "{item.name}" has been approved! Contact the owner to arrange pickup.',
    )

    return claim


def mark_returned(
    session: Session,
    claim_id: uuid.UUID,
    actor: User,
    item_id: Optional[uuid.UUID] = None,
) -> Claim:
    """
    Record that the item went back to this claimant. Works on a pending claim,
    or on an approved claim whose item never reached ``returned``.
    """
    claim, item = _get_claim_and_item(session, claim_id, item_id)

    policy.ensure_can_manage_claim(actor, item)

    if claim.status == ClaimStatus.rejected:
        raise InvalidState("This claim has been rejected")

    if item.status == ItemStatus.returned:
        raise InvalidState("This item has already been returned")

    _resolve_as_returned(
        session,
        claim,
        item,
        actor,
        response=RETURNED_RESPONSE,
        sibling_response=SIBLING_RETURNED_RESPONSE,
        notice=f'Your claim for "{item.name}" has been approved! The item has been marked as returned.',
    )

    return claim


def _resolve_as_returned(
    session: Session,
    claim: Claim,
    item: Item,
    actor: User,
    response: str,
    sibling_response: str,
    notice: str,
):
    other_approved = session.exec(
        select(Claim)
        .where(Claim.item_id == item.id)
        .where(Claim.id != claim.id)
        .where(Claim.status == ClaimStatus.approved)
    ).first()

    if other_approved:
        raise InvalidState("Another claim on this item has already been approved")

    now = _now()

    claim.status = ClaimStatus.approved
    claim.admin_response = response
    claim.resolved_at = now
    claim.resolved_by = actor.id
    claim.updated_at = now
    session.add(claim)

    siblings = session.exec(
        select(Claim)
        .where(Claim.item_id == item.id)
        .where(Claim.id != claim.id)
        .where(Claim.status == ClaimStatus.pending)
    ).all()

    for sibling in siblings:
        sibling.status = ClaimStatus.rejected
        sibling.admin_response = sibling_response
        sibling.resolved_at = now
        sibling.resolved_by = actor.id
        sibling.updated_at = now
        session.add(sibling)

    item.status = ItemStatus.returned
    item.claimed_by = claim.claimant_id
    item.resolved_date = now
    item.updated_at = now
    session.add(item)

    rejected = [(s.id, s.claimant_id) for s in siblings]
    claim_id, claimant_id, item_id, item_name = claim.id, claim.claimant_id, item.id, item.name

    session.commit()

    logger.info(
        "Claim %s approved by user %s; item %s returned, %d other pending claim(s) rejected",
        claim_id, actor.id, item_id, len(rejected),
    )

    notify_safely(
        session,
        claimant_id,
        NotificationType.claim_approved,
        notice,
        item_id=item_id,
        claim_id=claim_id,
    )

    for sibling_id, sibling_claimant_id in rejected:
        notify_safely(
            session,
            sibling_claimant_id,
            NotificationType.claim_rejected,
            f'Your claim for "{item_name}" was closed: {sibling_response}',
            item_id=item_id,
            claim_id=sibling_id,
        )

    refresh_item_stats_safely(session, item_id)


# Reject

def reject_claim(
    session: Session,
    claim_id: uuid.UUID,
    actor: User,
    reason: Optional[str] = None,
    item_id: Optional[uuid.UUID] = None,
) -> Claim:
    claim, item = _get_claim_and_item(session, claim_id, item_id)

    policy.ensure_can_manage_claim(actor, item)

    if claim.status != ClaimStatus.pending:
        raise InvalidState("This claim has already been resolved")

    reason = (reason or "").strip() or None
    now = _now()

    claim.status = ClaimStatus.rejected
    claim.admin_response = reason or DEFAULT_REJECT_RESPONSE
    claim.resolved_at = now
    claim.resolved_by = actor.id
    claim.updated_at = now
    session.add(claim)
    session.flush()

    released = release_item_if_idle(session, item)

    claimant_id, item_id, item_name = claim.claimant_id, item.id, item.name

    session.commit()
    session.refresh(claim)

    logger.info(
        "Claim %s rejected by user %s%s",
        claim.id, actor.id, "; item back to available" if released else "",
    )

    message = f'Your claim for "{item_name}" has been rejected.'
    if reason:
        message += f" Reason: {reason}"

    notify_safely(
        session,
        claimant_id,
        NotificationType.claim_rejected,
        message,
        item_id=item_id,
        claim_id=claim.id,
    )

    refresh_item_stats_safely(session, item_id)

    return claim


# Contact

def contact_claimant(
    session: Session,
    claim_id: uuid.UUID,
    actor: User,
    message: str,
    item_id: Optional[uuid.UUID] = None,
) -> Tuple[Claim, bool]:
    """
    Email the claimant and append the message to the claim's contact history.
    The history row is written whether or not the email went out; the second
    return value reports the delivery outcome.
    """
    message = (message or "").strip()
    if not message:
        raise ValidationError("Message is required")

    claim, item = _get_claim_and_item(session, claim_id, item_id)

    policy.ensure_can_manage_claim(actor, item)

    claimant = session.get(User, claim.claimant_id)
    if not claimant:
        raise NotFound("Claimant not found")

    email_sent = _send_safely(
        send_claim_contact_email,
        to=claim.contact_email or claimant.email,
        sender_email=actor.email,
        item_name=item.name,
        owner_name=actor.name,
        message=message,
        item_id=item.id,
    )

    session.add(ClaimContact(
        claim_id=claim.id,
        message=message,
        sent_by=actor.id,
        email_sent=email_sent,
    ))

    claim.updated_at = _now()
    session.add(claim)

    template = OWNER_CONTACT_MESSAGE if policy.is_item_owner(actor, item) else ADMIN_CONTACT_MESSAGE
    note = template.format(item=item.name)

    session.commit()
    session.refresh(claim)

    logger.info("User %s contacted claimant of claim %s (email sent: %s)", actor.id, claim.id, email_sent)

    notify_safely(
        session,
        claimant.id,
        NotificationType.message_received,
        note,
        item_id=claim.item_id,
        claim_id=claim.id,
    )

    return claim, email_sent


# Queries

def get_contact_history(session: Session, claim_id: uuid.UUID) -> List[ClaimContact]:
    return list(session.exec(
        select(ClaimContact)
        .where(ClaimContact.claim_id == claim_id)
        .order_by(ClaimContact.sent_at, ClaimContact.id)
    ).all())


def claims_for_item(session: Session, item_id: uuid.UUID, limit: Optional[int] = None):
    query = (
        select(Claim, User)
        .join(User, Claim.claimant_id == User.id)
        .where(Claim.item_id == item_id)
        .order_by(Claim.created_at.desc())
    )

    if limit:
        query = query.limit(limit)

    return session.exec(query).all()


def claims_received(session: Session, owner: User):
    """Claims on items the user reported."""
    return session.exec(
        select(Claim, Item, User)
        .join(Item, Claim.item_id == Item.id)
        .join(User, Claim.claimant_id == User.id)
        .where(Claim.owner_id == owner.id)
        .order_by(Claim.created_at.desc())
    ).all()


def claims_submitted(session: Session, claimant: User):
    return session.exec(
        select(Claim, Item)
        .join(Item, Claim.item_id == Item.id)
        .where(Claim.claimant_id == claimant.id)
        .order_by(Claim.created_at.desc())
    ).all()


def delete_claims(session: Session, claims: List[Claim]):
    """Delete claims with their contact history. Does not commit."""
    for claim in claims:
        contacts = session.exec(
            select(ClaimContact).where(ClaimContact.claim_id == claim.id)
        ).all()

        for contact in contacts:
            session.delete(contact)

        session.delete(claim)
