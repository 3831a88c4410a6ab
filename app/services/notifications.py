"""
Per-user notification inbox.

Entries are appended newest-first and each user keeps at most
``MAX_NOTIFICATIONS`` of them; appending beyond that evicts the oldest.
"""
import logging
from typing import List, Optional
import uuid
from sqlalchemy import delete
from sqlmodel import Session, func, select

from app.models.notification import Notification, NotificationType
from app.utils.errors import NotFound

logger = logging.getLogger(__name__)

MAX_NOTIFICATIONS = 50

TITLES = {
    NotificationType.new_claim: "New claim received",
    NotificationType.claim_approved: "Your claim has been approved",
    NotificationType.claim_rejected: "Your claim has been rejected",
    NotificationType.message_received: "New message about your claim",
}


def push_notification(
    session: Session,
    user_id: int,
    kind: NotificationType,
    message: str,
    item_id: Optional[uuid.UUID] = None,
    claim_id: Optional[uuid.UUID] = None,
    title: Optional[str] = None,
) -> Notification:
    """Append a notification and trim the user's inbox. Does not commit."""
    notification = Notification(
        user_id=user_id,
        type=kind,
        title=title or TITLES[kind],
        message=message,
        item_id=item_id,
        claim_id=claim_id,
    )

    session.add(notification)
    session.flush()

    _trim(session, user_id)

    return notification


def _trim(session: Session, user_id: int):
    keep_ids = select(Notification.id).where(
        Notification.user_id == user_id
    ).order_by(Notification.id.desc()).limit(MAX_NOTIFICATIONS)

    session.exec(
        delete(Notification)
        .where(Notification.user_id == user_id)
        .where(Notification.id.not_in(keep_ids))
        .execution_options(synchronize_session="fetch")
    )


def list_notifications(
    session: Session,
    user_id: int,
    limit: int = MAX_NOTIFICATIONS,
    unread_only: bool = False,
) -> List[Notification]:
    query = (
        select(Notification)
        .where(Notification.user_id == user_id)
        .order_by(Notification.id.desc())
        .limit(limit)
    )

    if unread_only:
        query = query.where(Notification.is_read == False)  # noqa: E712

    return list(session.exec(query).all())


def unread_count(session: Session, user_id: int) -> int:
    return session.exec(
        select(func.count(Notification.id))
        .where(Notification.user_id == user_id)
        .where(Notification.is_read == False)  # noqa: E712
    ).one()


def mark_read(session: Session, user_id: int, notification_id: int) -> Notification:
    notif = session.exec(
        select(Notification)
        .where(Notification.id == notification_id)
        .where(Notification.user_id == user_id)
    ).first()

    if not notif:
        raise NotFound("Notification not found")

    notif.is_read = True
    session.add(notif)
    session.commit()

    return notif


def mark_all_read(session: Session, user_id: int) -> int:
    notifications = session.exec(
        select(Notification)
        .where(Notification.user_id == user_id)
        .where(Notification.is_read == False)  # noqa: E712
    ).all()

    for notif in notifications:
        notif.is_read = True
        session.add(notif)

    session.commit()

    return len(notifications)


def clear_all(session: Session, user_id: int) -> None:
    session.exec(delete(Notification).where(Notification.user_id == user_id))
    session.commit()


def notify_safely(session: Session, user_id: Optional[int], kind: NotificationType, message: str, **refs) -> bool:
    """
    Best-effort notification used after a lifecycle transition has been
    committed. A failure is logged and rolled back; it never propagates.
    """
    if user_id is None:
        return False

    try:
        push_notification(session, user_id, kind, message, **refs)
        session.commit()
    except Exception as e:
        session.rollback()
        logger.warning("Could not send %s notification to user %s: %s", kind.value, user_id, e)
        return False

    return True
