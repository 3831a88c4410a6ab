import logging
from typing import Optional
import uuid
from sqlalchemy import delete
from sqlmodel import Session, select

from app.models.admin_action import AdminAction
from app.models.item import Item
from app.models.user import User

logger = logging.getLogger(__name__)

MAX_ADMIN_ACTIONS = 100


def record_admin_action(
    session: Session,
    admin: User,
    action: str,
    details: Optional[str] = None,
    target_user: Optional[int] = None,
    target_item: Optional[uuid.UUID] = None,
) -> bool:
    """Best-effort audit entry; the admin's list keeps the newest 100."""
    try:
        session.add(AdminAction(
            performed_by=admin.id,
            action=action,
            details=details,
            target_user=target_user,
            target_item=target_item,
        ))
        session.flush()

        keep_ids = select(AdminAction.id).where(
            AdminAction.performed_by == admin.id
        ).order_by(AdminAction.id.desc()).limit(MAX_ADMIN_ACTIONS)

        session.exec(
            delete(AdminAction)
            .where(AdminAction.performed_by == admin.id)
            .where(AdminAction.id.not_in(keep_ids))
            .execution_options(synchronize_session="fetch")
        )
        session.commit()
    except Exception as e:
        session.rollback()
        logger.error("Error tracking admin action %s: %s", action, e)
        return False

    return True


def activity_log(session: Session, limit: int = 50):
    actions = session.exec(
        select(AdminAction, User)
        .join(User, AdminAction.performed_by == User.id)
        .order_by(AdminAction.id.desc())
        .limit(limit)
    ).all()

    log = []
    for action, admin in actions:
        target_user = session.get(User, action.target_user) if action.target_user else None
        target_item = session.get(Item, action.target_item) if action.target_item else None

        log.append({
            "action": action.action,
            "details": action.details,
            "performed_at": action.performed_at,
            "admin_name": admin.name,
            "target_user_name": target_user.name if target_user else None,
            "target_item_name": target_item.name if target_item else None,
        })

    return log
