from fastapi import APIRouter, Depends
from sqlmodel import Session

from app.db.db import get_session
from app.models.user import User
from app.schemas.base import dump
from app.services import notifications
from app.utils.auth_helper import require_active_user, require_verified_user


router = APIRouter()


@router.get("")
def get_my_notifications(
    limit: int = notifications.MAX_NOTIFICATIONS,
    unread_only: bool = False,
    session: Session = Depends(get_session),
    user: User = Depends(require_verified_user),
):
    items = notifications.list_notifications(session, user.id, limit=limit, unread_only=unread_only)

    return {
        "success": True,
        "notifications": [dump(n) for n in items],
        "unread_count": notifications.unread_count(session, user.id),
    }


@router.get("/count")
def get_unread_notifications_count(
    session: Session = Depends(get_session),
    user: User = Depends(require_verified_user),
):
    return {"success": True, "count": notifications.unread_count(session, user.id)}


@router.put("/read")
def mark_all_notifications_read(
    session: Session = Depends(get_session),
    user: User = Depends(require_active_user),
):
    updated = notifications.mark_all_read(session, user.id)

    return {"success": True, "updated": updated}


@router.put("/{notification_id}/read")
def mark_notification_read(
    notification_id: int,
    session: Session = Depends(get_session),
    user: User = Depends(require_active_user),
):
    notifications.mark_read(session, user.id, notification_id)

    return {"success": True}


@router.delete("")
def clear_notifications(
    session: Session = Depends(get_session),
    user: User = Depends(require_active_user),
):
    notifications.clear_all(session, user.id)

    return {"success": True, "message": "Notifications cleared"}
