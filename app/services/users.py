"""Admin-side user management that touches more than the user row."""
import logging
from datetime import datetime, timezone
from typing import Optional
from sqlalchemy import delete, update
from sqlmodel import Session, select

from app.models.admin_action import AdminAction
from app.models.category import Category
from app.models.claim import Claim, ClaimContact
from app.models.item import Item, ItemStatus
from app.models.notification import Notification
from app.models.user import RoleType, User
from app.services import policy
from app.services.claims import delete_claims, release_item_if_idle
from app.services.item_stats import refresh_item_stats_safely
from app.utils.errors import NotFound, ValidationError

logger = logging.getLogger(__name__)


def get_user(session: Session, user_id: int) -> User:
    user = session.get(User, user_id)
    if not user:
        raise NotFound("User not found")

    return user


def change_role(session: Session, admin: User, user_id: int, role: str) -> User:
    if role not in [r.value for r in RoleType]:
        raise ValidationError("Invalid role")

    user = get_user(session, user_id)
    policy.ensure_not_self(admin, user, "change the role of")

    user.role = RoleType(role)
    user.updated_at = datetime.now(timezone.utc)
    session.add(user)
    session.commit()
    session.refresh(user)

    return user


def suspend_user(session: Session, admin: User, user_id: int, reason: Optional[str]) -> User:
    user = get_user(session, user_id)
    policy.ensure_not_self(admin, user, "suspend")

    user.is_suspended = True
    user.suspension_reason = reason or "Suspended by admin"
    user.suspended_at = datetime.now(timezone.utc)
    user.suspended_by = admin.id
    session.add(user)
    session.commit()
    session.refresh(user)

    return user


def unsuspend_user(session: Session, user_id: int) -> User:
    user = get_user(session, user_id)

    user.is_suspended = False
    user.suspension_reason = None
    user.suspended_at = None
    user.suspended_by = None
    session.add(user)
    session.commit()
    session.refresh(user)

    return user


def ban_user(session: Session, admin: User, user_id: int, reason: Optional[str]) -> User:
    user = get_user(session, user_id)
    policy.ensure_not_self(admin, user, "ban")

    user.is_banned = True
    user.ban_reason = reason or "Banned by admin"
    user.banned_at = datetime.now(timezone.utc)
    user.banned_by = admin.id
    session.add(user)
    session.commit()
    session.refresh(user)

    return user


def unban_user(session: Session, user_id: int) -> User:
    user = get_user(session, user_id)

    user.is_banned = False
    user.ban_reason = None
    user.banned_at = None
    user.banned_by = None
    session.add(user)
    session.commit()
    session.refresh(user)

    return user


def delete_user(session: Session, admin: User, user_id: int) -> dict:
    """
    Delete an account while keeping the items it reported. Those items lose
    their reporter and move to ``owner_deleted``; the user's own claims are
    removed, and every other reference to the user is cleared.
    """
    user = get_user(session, user_id)
    policy.ensure_not_self(admin, user, "delete")

    preserved = session.exec(
        update(Item)
        .where(Item.user_id == user.id)
        .values(user_id=None, status=ItemStatus.owner_deleted)
        .execution_options(synchronize_session="fetch")
    ).rowcount

    own_claims = session.exec(select(Claim).where(Claim.claimant_id == user.id)).all()
    affected_items = {claim.item_id for claim in own_claims}
    delete_claims(session, own_claims)

    session.exec(
        update(Claim).where(Claim.owner_id == user.id).values(owner_id=None)
        .execution_options(synchronize_session="fetch")
    )
    session.exec(
        update(Claim).where(Claim.resolved_by == user.id).values(resolved_by=None)
        .execution_options(synchronize_session="fetch")
    )
    session.exec(
        update(ClaimContact).where(ClaimContact.sent_by == user.id).values(sent_by=None)
        .execution_options(synchronize_session="fetch")
    )
    session.exec(
        update(Item).where(Item.claimed_by == user.id).values(claimed_by=None)
        .execution_options(synchronize_session="fetch")
    )
    session.exec(
        update(Category).where(Category.created_by == user.id).values(created_by=None)
        .execution_options(synchronize_session="fetch")
    )
    session.exec(
        update(User).where(User.suspended_by == user.id).values(suspended_by=None)
        .execution_options(synchronize_session="fetch")
    )
    session.exec(
        update(User).where(User.banned_by == user.id).values(banned_by=None)
        .execution_options(synchronize_session="fetch")
    )
    session.exec(delete(Notification).where(Notification.user_id == user.id))
    session.exec(delete(AdminAction).where(AdminAction.performed_by == user.id))
    session.flush()

    for item_id in affected_items:
        item = session.get(Item, item_id)
        if item:
            release_item_if_idle(session, item)

    session.delete(user)
    session.commit()

    logger.info(
        "User %s deleted by admin %s; %d item(s) preserved, %d claim(s) removed",
        user_id, admin.id, preserved, len(own_claims),
    )

    for item_id in affected_items:
        refresh_item_stats_safely(session, item_id)

    return {"items_preserved": preserved, "claims_removed": len(own_claims)}
