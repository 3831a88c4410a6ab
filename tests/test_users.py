import pytest
from sqlmodel import select

from app.models.claim import Claim, ClaimStatus
from app.models.item import ItemStatus
from app.models.notification import Notification
from app.models.user import RoleType, User
from app.services import claims, users
from app.services.audit import MAX_ADMIN_ACTIONS, activity_log, record_admin_action
from app.utils.errors import Forbidden, NotFound, ValidationError


def test_delete_user_preserves_items(session, admin, item, owner, claimant):
    claim = claims.submit_claim(session, item.id, claimant, "mine")
    claim_id, owner_id = claim.id, owner.id

    summary = users.delete_user(session, admin, owner_id)

    assert summary == {"items_preserved": 1, "claims_removed": 0}
    assert session.get(User, owner_id) is None
    assert item.user_id is None
    assert item.status == ItemStatus.owner_deleted

    kept = session.get(Claim, claim_id)
    assert kept.owner_id is None
    assert kept.status == ClaimStatus.pending


def test_delete_user_removes_their_claims_and_frees_items(session, admin, item, claimant):
    claims.submit_claim(session, item.id, claimant, "mine")
    claimant_id = claimant.id

    summary = users.delete_user(session, admin, claimant_id)

    assert summary["claims_removed"] == 1
    assert session.exec(select(Claim)).all() == []
    assert session.exec(select(Notification).where(Notification.user_id == claimant_id)).all() == []
    assert item.status == ItemStatus.available
    assert item.total_claims == 0


def test_admin_cannot_delete_self(session, admin):
    with pytest.raises(Forbidden):
        users.delete_user(session, admin, admin.id)


def test_delete_missing_user(session, admin):
    with pytest.raises(NotFound):
        users.delete_user(session, admin, 9999)


def test_suspend_and_unsuspend(session, admin, claimant):
    user = users.suspend_user(session, admin, claimant.id, "spam")

    assert user.is_suspended is True
    assert user.suspension_reason == "spam"
    assert user.suspended_by == admin.id

    user = users.unsuspend_user(session, claimant.id)
    assert user.is_suspended is False
    assert user.suspension_reason is None


def test_ban_defaults_reason(session, admin, claimant):
    user = users.ban_user(session, admin, claimant.id, None)

    assert user.is_banned is True
    assert user.ban_reason == "Banned by admin"

    assert users.unban_user(session, claimant.id).is_banned is False


def test_admin_cannot_ban_self(session, admin):
    with pytest.raises(Forbidden):
        users.ban_user(session, admin, admin.id, "oops")


def test_change_role(session, admin, claimant):
    assert users.change_role(session, admin, claimant.id, "admin").role == RoleType.admin

    with pytest.raises(ValidationError):
        users.change_role(session, admin, claimant.id, "superuser")


def test_admin_log_is_bounded(session, admin):
    for i in range(MAX_ADMIN_ACTIONS + 5):
        record_admin_action(session, admin, "test_action", details=f"entry {i}")

    log = activity_log(session, limit=500)

    assert len(log) == MAX_ADMIN_ACTIONS
    assert log[0]["details"] == f"entry {MAX_ADMIN_ACTIONS + 4}"
    assert log[0]["admin_name"] == admin.name
