from app.models.notification import NotificationType
from app.services import notifications


def test_dashboard_counts(client, item, make_item, owner, claimant, headers):
    from app.models.item import ItemType

    make_item(owner, name="Lost phone", item_type=ItemType.lost)
    client.post(f"/items/{item.id}/claim", json={"message": "mine"}, headers=headers(claimant))

    stats = client.get("/dashboard", headers=headers(owner)).json()["stats"]
    assert stats["found_items"] == 1
    assert stats["lost_items"] == 1
    assert stats["pending_claims_received"] == 1
    assert stats["unread_notifications"] == 1

    mine = client.get("/dashboard/my-items", headers=headers(owner)).json()
    assert [i["name"] for i in mine["lost_items"]] == ["Lost phone"]

    claims = client.get("/dashboard/my-claims", headers=headers(claimant)).json()
    assert len(claims["submitted_claims"]) == 1
    assert claims["received_claims"] == []


def test_notification_routes(client, item, owner, claimant, headers):
    client.post(f"/items/{item.id}/claim", json={"message": "mine"}, headers=headers(claimant))

    assert client.get("/api/notifications/count", headers=headers(owner)).json()["count"] == 1

    [note] = client.get("/api/notifications", headers=headers(owner)).json()["notifications"]
    assert client.put(f"/api/notifications/{note['id']}/read", headers=headers(owner)).status_code == 200
    assert client.get("/api/notifications/count", headers=headers(owner)).json()["count"] == 0

    # another user's notification id is not found for the claimant
    assert client.put(f"/api/notifications/{note['id']}/read", headers=headers(claimant)).status_code == 404

    assert client.put("/api/notifications/read", headers=headers(owner)).json()["updated"] == 0

    client.delete("/api/notifications", headers=headers(owner))
    assert client.get("/api/notifications", headers=headers(owner)).json()["notifications"] == []


def test_notifications_require_login(client):
    assert client.get("/api/notifications").status_code in (401, 403)


def test_public_categories(client, session, admin):
    from app.services import categories

    categories.initialize_defaults(session, admin)

    names = [c["name"] for c in client.get("/categories").json()["categories"]]
    assert "Electronics" in names
    assert names == sorted(names)


def test_suspended_user_cannot_change_notifications(client, session, make_user, headers):
    suspended = make_user(is_suspended=True)
    notifications.push_notification(session, suspended.id, NotificationType.new_claim, "New claim")
    session.commit()

    assert client.put("/api/notifications/read", headers=headers(suspended)).status_code == 403
    assert client.delete("/api/notifications", headers=headers(suspended)).status_code == 403

    [note] = notifications.list_notifications(session, suspended.id)
    response = client.put(f"/api/notifications/{note.id}/read", headers=headers(suspended))
    assert response.status_code == 403
    assert response.json()["message"] == "Account is suspended"

    # reading the inbox is still allowed
    assert client.get("/api/notifications/count", headers=headers(suspended)).json()["count"] == 1


def test_unverified_user_cannot_read_dashboard(client, make_user, headers):
    unverified = make_user(is_verified=False)

    for path in ("/dashboard", "/dashboard/my-items", "/api/notifications", "/claims/my-submitted-claims", "/auth/me"):
        response = client.get(path, headers=headers(unverified))
        assert response.status_code == 403
        assert response.json()["message"] == "Account is not verified"
