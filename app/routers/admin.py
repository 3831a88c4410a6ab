import logging
import math
import uuid
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlmodel import Session, func, or_, select

from app.db.db import get_session
from app.models.claim import Claim, ClaimStatus
from app.models.item import Item, ItemStatus, ItemType
from app.models.user import RoleType, User
from app.schemas.base import dump
from app.schemas.admin_schemas import (
    BulkDeleteRequest,
    CategoryRequest,
    ClaimRejectAdminRequest,
    ModerateUserRequest,
    OverviewStats,
    RoleChangeRequest,
    UserDetail,
    UserListResponse,
    UserStats,
)
from app.schemas.claim_schemas import claim_out
from app.schemas.item_schemas import item_out
from app.schemas.user_schemas import user_out, user_summary
from app.services import audit, categories, claims, items, users
from app.services.item_stats import refresh_all_item_stats
from app.utils.auth_helper import require_admin
from app.utils.errors import ValidationError

logger = logging.getLogger(__name__)

router = APIRouter()

USERS_PER_PAGE = 20
ITEMS_PER_PAGE = 20


@router.get("/stats", response_model=OverviewStats)
def get_overview_stats(
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    """Headline numbers for the admin dashboard"""
    return OverviewStats(
        total_items=session.exec(select(func.count(Item.id))).one(),
        pending_claims=session.exec(
            select(func.count(Claim.id)).where(Claim.status == ClaimStatus.pending)
        ).one(),
        total_users=session.exec(select(func.count(User.id))).one(),
        resolved_items=session.exec(
            select(func.count(Item.id)).where(Item.status == ItemStatus.returned)
        ).one(),
    )


# Items

@router.get("/items")
def get_all_items(
    q: Optional[str] = None,
    type: Optional[str] = None,
    status: Optional[str] = None,
    category: Optional[str] = None,
    page: int = Query(1, ge=1),
    per_page: int = Query(ITEMS_PER_PAGE, ge=1, le=100),
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    results = items.search_items(session, q=q, category=category, item_type=type, status=status)
    total = len(results)
    start = (page - 1) * per_page

    return {
        "success": True,
        "items": [item_out(item) for item in results[start:start + per_page]],
        "total_items": total,
        "current_page": page,
        "total_pages": max(1, math.ceil(total / per_page)),
    }


@router.get("/items/{item_id}")
def get_item_detail(
    item_id: uuid.UUID,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    item = items.get_item(session, item_id)
    reporter = session.get(User, item.user_id) if item.user_id else None

    return {
        "success": True,
        "item": item_out(item),
        "reporter": user_summary(reporter),
        "claims": [
            claim_out(claim, claimant=claimant)
            for claim, claimant in claims.claims_for_item(session, item.id)
        ],
    }


@router.delete("/items/{item_id}")
def delete_item(
    item_id: uuid.UUID,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    item = items.get_item(session, item_id)
    name = items.delete_item(session, item)

    audit.record_admin_action(session, admin, "delete_item", details=f'Deleted item "{name}"')

    return {"success": True, "message": f'Item "{name}" deleted successfully'}


@router.post("/items/bulk-delete")
def bulk_delete_items(
    payload: BulkDeleteRequest,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    if not payload.item_ids:
        raise ValidationError("No items selected")

    try:
        ids = [uuid.UUID(i) for i in payload.item_ids]
    except ValueError:
        raise ValidationError("Invalid item id")

    deleted = 0
    for item_id in ids:
        item = session.get(Item, item_id)
        if item:
            items.delete_item(session, item)
            deleted += 1

    audit.record_admin_action(session, admin, "bulk_delete_items", details=f"Deleted {deleted} item(s)")

    return {"success": True, "message": f"Deleted {deleted} item(s)", "deleted": deleted}


# Claims

@router.get("/claims")
def get_claims_by_status(
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    rows = session.exec(
        select(Claim, Item, User)
        .join(Item, Claim.item_id == Item.id)
        .join(User, Claim.claimant_id == User.id)
        .order_by(Claim.created_at.desc())
    ).all()

    grouped = {status.value: [] for status in ClaimStatus}
    for claim, item, claimant in rows:
        grouped[claim.status.value].append(claim_out(claim, claimant=claimant, item=item))

    return {
        "success": True,
        "pending_claims": grouped["pending"],
        "approved_claims": grouped["approved"],
        "rejected_claims": grouped["rejected"],
    }


@router.post("/claims/{claim_id}/approve")
def approve_claim(
    claim_id: uuid.UUID,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    claim = claims.approve_claim(session, claim_id, admin)

    audit.record_admin_action(
        session, admin, "approve_claim",
        details=f"Approved claim {claim_id}", target_item=claim.item_id,
    )

    return {"success": True, "message": "Claim approved successfully", "claim": claim_out(claim)}


@router.post("/claims/{claim_id}/reject")
def reject_claim(
    claim_id: uuid.UUID,
    payload: Optional[ClaimRejectAdminRequest] = None,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    reason = payload.reason if payload else None
    claim = claims.reject_claim(session, claim_id, admin, reason=reason)

    audit.record_admin_action(
        session, admin, "reject_claim",
        details=f"Rejected claim {claim_id}", target_item=claim.item_id,
    )

    return {"success": True, "message": "Claim rejected", "claim": claim_out(claim)}


# Users

def _user_stats(session: Session) -> UserStats:
    def count(*conditions):
        return session.exec(select(func.count(User.id)).where(*conditions)).one()

    return UserStats(
        total_users=session.exec(select(func.count(User.id))).one(),
        student_count=count(User.role == RoleType.student),
        admin_count=count(User.role == RoleType.admin),
        suspended_count=count(User.is_suspended == True),  # noqa: E712
        banned_count=count(User.is_banned == True),  # noqa: E712
    )


def _user_detail(user: User, items_count: int) -> UserDetail:
    return UserDetail(**user_out(user) | {"role": user.role.value, "items_count": items_count})


@router.get("/users", response_model=UserListResponse)
def get_users(
    search: Optional[str] = None,
    role: Optional[str] = None,
    status: Optional[str] = None,
    page: int = Query(1, ge=1),
    per_page: int = Query(USERS_PER_PAGE, ge=1, le=100),
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    query = select(User)

    if search and search.strip():
        term = f"%{search.strip().lower()}%"
        query = query.where(or_(
            func.lower(User.name).like(term),
            func.lower(User.email).like(term),
            func.lower(User.university_id).like(term),
        ))

    if role:
        if role not in [r.value for r in RoleType]:
            raise ValidationError("Invalid role filter")
        query = query.where(User.role == RoleType(role))

    if status == "active":
        query = query.where(User.is_suspended == False, User.is_banned == False)  # noqa: E712
    elif status == "suspended":
        query = query.where(User.is_suspended == True)  # noqa: E712
    elif status == "banned":
        query = query.where(User.is_banned == True)  # noqa: E712
    elif status:
        raise ValidationError("Invalid status filter")

    total = session.exec(select(func.count()).select_from(query.subquery())).one()

    page_users = session.exec(
        query.order_by(User.created_at.desc()).offset((page - 1) * per_page).limit(per_page)
    ).all()

    counts = dict(session.exec(
        select(Item.user_id, func.count(Item.id))
        .where(Item.user_id.in_([u.id for u in page_users]))
        .group_by(Item.user_id)
    ).all())

    return UserListResponse(
        users=[_user_detail(u, counts.get(u.id, 0)) for u in page_users],
        user_stats=_user_stats(session),
        current_page=page,
        total_pages=max(1, math.ceil(total / per_page)),
        total_users=total,
    )


@router.post("/users/{user_id}/role")
def change_user_role(
    user_id: int,
    payload: RoleChangeRequest,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    user = users.change_role(session, admin, user_id, payload.role)

    audit.record_admin_action(
        session, admin, "change_role",
        details=f"Changed role of {user.email} to {user.role.value}", target_user=user.id,
    )

    return {"success": True, "message": f"User role updated to {user.role.value}", "user": user_out(user)}


@router.delete("/users/{user_id}")
def delete_user(
    user_id: int,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    email = users.get_user(session, user_id).email
    summary = users.delete_user(session, admin, user_id)

    audit.record_admin_action(
        session, admin, "delete_user",
        details=f"Deleted user {email}; {summary['items_preserved']} item(s) preserved",
    )

    return {
        "success": True,
        "message": f"User {email} deleted. Their items were preserved.",
        **summary,
    }


@router.post("/users/{user_id}/suspend")
def suspend_user(
    user_id: int,
    payload: Optional[ModerateUserRequest] = None,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    user = users.suspend_user(session, admin, user_id, payload.reason if payload else None)

    audit.record_admin_action(
        session, admin, "suspend_user", details=user.suspension_reason, target_user=user.id,
    )

    return {"success": True, "message": f"User {user.email} suspended", "user": user_out(user)}


@router.post("/users/{user_id}/unsuspend")
def unsuspend_user(
    user_id: int,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    user = users.unsuspend_user(session, user_id)

    audit.record_admin_action(session, admin, "unsuspend_user", target_user=user.id)

    return {"success": True, "message": f"User {user.email} unsuspended", "user": user_out(user)}


@router.post("/users/{user_id}/ban")
def ban_user(
    user_id: int,
    payload: Optional[ModerateUserRequest] = None,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    user = users.ban_user(session, admin, user_id, payload.reason if payload else None)

    audit.record_admin_action(session, admin, "ban_user", details=user.ban_reason, target_user=user.id)

    return {"success": True, "message": f"User {user.email} banned", "user": user_out(user)}


@router.post("/users/{user_id}/unban")
def unban_user(
    user_id: int,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    user = users.unban_user(session, user_id)

    audit.record_admin_action(session, admin, "unban_user", target_user=user.id)

    return {"success": True, "message": f"User {user.email} unbanned", "user": user_out(user)}


@router.get("/users/{user_id}/history")
def get_user_history(
    user_id: int,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    user = users.get_user(session, user_id)

    user_items = session.exec(
        select(Item).where(Item.user_id == user.id).order_by(Item.created_at.desc())
    ).all()
    user_claims = claims.claims_submitted(session, user)

    claim_statuses = [claim.status for claim, _ in user_claims]

    return {
        "success": True,
        "user": user_out(user),
        "items": [item_out(item) for item in user_items],
        "claims": [claim_out(claim, item=item) for claim, item in user_claims],
        "stats": {
            "total_items": len(user_items),
            "lost_items": sum(1 for i in user_items if i.type == ItemType.lost),
            "found_items": sum(1 for i in user_items if i.type == ItemType.found),
            "returned_items": sum(1 for i in user_items if i.status == ItemStatus.returned),
            "total_claims": len(claim_statuses),
            "approved_claims": claim_statuses.count(ClaimStatus.approved),
            "pending_claims": claim_statuses.count(ClaimStatus.pending),
            "rejected_claims": claim_statuses.count(ClaimStatus.rejected),
        },
    }


# Categories

@router.get("/categories")
def get_categories(
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    return {
        "success": True,
        "categories": [dump(c) for c in categories.list_categories(session, active_only=False)],
    }


@router.post("/categories/initialize")
def initialize_categories(
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    created, skipped = categories.initialize_defaults(session, admin)

    audit.record_admin_action(
        session, admin, "initialize_categories",
        details=f"{created} created, {skipped} already present",
    )

    return {
        "success": True,
        "message": f"Initialized {created} default categories ({skipped} already existed)",
        "created": created,
        "skipped": skipped,
    }


@router.post("/categories")
def create_category(
    payload: CategoryRequest,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    category = categories.create_category(session, admin, payload.name, payload.description, payload.icon)

    audit.record_admin_action(session, admin, "create_category", details=f'Created category "{category.name}"')

    return {
        "success": True,
        "message": f'Category "{category.name}" created successfully',
        "category": dump(category),
    }


@router.put("/categories/{category_id}")
def update_category(
    category_id: int,
    payload: CategoryRequest,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    category, old_name = categories.update_category(
        session, category_id, payload.name, payload.description, payload.icon
    )

    details = f'Updated category "{category.name}"'
    if old_name != category.name:
        details = f'Renamed category "{old_name}" to "{category.name}"'

    audit.record_admin_action(session, admin, "update_category", details=details)

    return {"success": True, "message": details, "category": dump(category)}


@router.delete("/categories/{category_id}")
def delete_category(
    category_id: int,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    name = categories.delete_category(session, category_id)

    audit.record_admin_action(session, admin, "delete_category", details=f'Deleted category "{name}"')

    return {"success": True, "message": f'Category "{name}" deleted successfully'}


# Activity / maintenance

@router.get("/activity")
def get_activity_log(
    limit: int = Query(50, ge=1, le=200),
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    return {"success": True, "actions": audit.activity_log(session, limit=limit)}


@router.post("/maintenance/refresh-stats")
def refresh_stats(
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    refreshed = refresh_all_item_stats(session)

    logger.info("Admin %s refreshed stats on %d items", admin.id, refreshed)
    audit.record_admin_action(session, admin, "refresh_stats", details=f"Refreshed {refreshed} item(s)")

    return {"success": True, "message": f"Refreshed stats on {refreshed} item(s)", "refreshed": refreshed}
