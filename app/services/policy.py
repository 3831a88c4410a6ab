"""
Access policy: which actor may invoke which action.

Every check raises ``Forbidden`` (or ``InvalidState`` for self-claims) and
returns nothing on success, so callers simply run the check before mutating.
"""
from app.models.item import Item
from app.models.user import User
from app.utils.errors import Forbidden, InvalidState


def ensure_verified(user: User):
    """Unverified accounts may not use any authenticated route, reads included."""
    if not user.is_verified:
        raise Forbidden("Account is not verified")


def ensure_can_act(user: User):
    """Account-state gate applied before any mutating action."""
    if user.is_banned:
        raise Forbidden("Account is banned")

    if user.is_suspended:
        raise Forbidden("Account is suspended")

    ensure_verified(user)


def is_item_owner(user: User, item: Item) -> bool:
    return item.user_id is not None and item.user_id == user.id


def ensure_can_claim(user: User, item: Item):
    ensure_can_act(user)

    if is_item_owner(user, item):
        raise InvalidState("You cannot claim your own item")


def ensure_can_manage_claim(user: User, item: Item):
    """Approve, reject, contact and return are open to the reporter and admins."""
    ensure_can_act(user)

    if not (is_item_owner(user, item) or user.is_admin):
        raise Forbidden("Not authorized to manage claims on this item")


def ensure_can_view_claims(user: User, item: Item):
    if not (is_item_owner(user, item) or user.is_admin):
        raise Forbidden("You can only view claims for your own items")


def ensure_admin(user: User):
    ensure_can_act(user)

    if not user.is_admin:
        raise Forbidden("Admin access required")


def ensure_not_self(admin: User, target: User, action: str):
    if admin.id == target.id:
        raise Forbidden(f"Cannot {action} your own account")
