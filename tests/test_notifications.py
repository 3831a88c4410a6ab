import pytest

from app.models.notification import NotificationType
from app.services import notifications
from app.utils.errors import NotFound


def push(session, user, message, kind=NotificationType.new_claim):
    notifications.push_notification(session, user.id, kind, message)
    session.commit()


def test_inbox_keeps_newest_fifty(session, owner):
    for i in range(51):
        push(session, owner, f"message {i}")

    inbox = notifications.list_notifications(session, owner.id)

    assert len(inbox) == notifications.MAX_NOTIFICATIONS
    assert inbox[0].message == "message 50"
    assert inbox[-1].message == "message 1"


def test_trim_is_per_user(session, owner, claimant):
    push(session, claimant, "keep me")
    for i in range(55):
        push(session, owner, f"message {i}")

    assert [n.message for n in notifications.list_notifications(session, claimant.id)] == ["keep me"]


def test_default_title_follows_kind(session, owner):
    push(session, owner, "approved", NotificationType.claim_approved)

    note = notifications.list_notifications(session, owner.id)[0]
    assert note.title == notifications.TITLES[NotificationType.claim_approved]


def test_mark_read_and_counts(session, owner):
    push(session, owner, "one")
    push(session, owner, "two")
    assert notifications.unread_count(session, owner.id) == 2

    newest = notifications.list_notifications(session, owner.id)[0]
    notifications.mark_read(session, owner.id, newest.id)
    assert notifications.unread_count(session, owner.id) == 1
    assert [n.message for n in notifications.list_notifications(session, owner.id, unread_only=True)] == ["one"]

    assert notifications.mark_all_read(session, owner.id) == 1
    assert notifications.unread_count(session, owner.id) == 0


def test_mark_read_of_someone_elses_notification(session, owner, claimant):
    push(session, owner, "private")
    note = notifications.list_notifications(session, owner.id)[0]

    with pytest.raises(NotFound):
        notifications.mark_read(session, claimant.id, note.id)


def test_clear_all(session, owner, claimant):
    push(session, owner, "one")
    push(session, claimant, "other")

    notifications.clear_all(session, owner.id)

    assert notifications.list_notifications(session, owner.id) == []
    assert len(notifications.list_notifications(session, claimant.id)) == 1


def test_notify_safely_ignores_missing_user(session):
    assert notifications.notify_safely(session, None, NotificationType.new_claim, "nobody") is False
