import csv
import io

from app.models.item import ItemStatus


def test_admin_routes_require_admin(client, claimant, headers):
    for path in ("/admin/stats", "/admin/users", "/analytics/dashboard-stats", "/export/items.csv"):
        response = client.get(path, headers=headers(claimant))
        assert response.status_code == 403
        assert response.json()["message"] == "Admin access required"


def test_overview_stats(client, item, admin, headers):
    stats = client.get("/admin/stats", headers=headers(admin)).json()

    assert stats["total_items"] == 1
    assert stats["total_users"] == 2


def test_admin_claim_moderation(client, item, admin, claimant, headers):
    claim_id = client.post(
        f"/items/{item.id}/claim", json={"message": "mine"}, headers=headers(claimant)
    ).json()["claim"]["id"]

    grouped = client.get("/admin/claims", headers=headers(admin)).json()
    assert [c["id"] for c in grouped["pending_claims"]] == [claim_id]

    response = client.post(f"/admin/claims/{claim_id}/approve", headers=headers(admin))
    assert response.status_code == 200
    assert response.json()["claim"]["admin_response"] == "Claim approved by admin"

    log = client.get("/admin/activity", headers=headers(admin)).json()["actions"]
    assert log[0]["action"] == "approve_claim"
    assert log[0]["target_item_name"] == item.name


def test_admin_item_management(client, make_item, owner, admin, headers):
    first = make_item(owner, name="Umbrella")
    second = make_item(owner, name="Notebook")

    listing = client.get("/admin/items", params={"per_page": 1}, headers=headers(admin)).json()
    assert listing["total_items"] == 2
    assert listing["total_pages"] == 2

    detail = client.get(f"/admin/items/{first.id}", headers=headers(admin)).json()
    assert detail["reporter"]["name"] == owner.name

    response = client.post(
        "/admin/items/bulk-delete",
        json={"item_ids": [str(first.id), str(second.id)]},
        headers=headers(admin),
    )
    assert response.json()["deleted"] == 2

    response = client.post("/admin/items/bulk-delete", json={"item_ids": ["nope"]}, headers=headers(admin))
    assert response.status_code == 400


def test_user_management(client, session, admin, claimant, headers):
    users = client.get("/admin/users", params={"search": "carl"}, headers=headers(admin)).json()
    assert [u["name"] for u in users["users"]] == [claimant.name]
    assert users["user_stats"]["admin_count"] == 1

    response = client.post(
        f"/admin/users/{claimant.id}/suspend", json={"reason": "spam"}, headers=headers(admin)
    )
    assert response.json()["user"]["is_suspended"] is True

    suspended = client.get("/admin/users", params={"status": "suspended"}, headers=headers(admin)).json()
    assert suspended["total_users"] == 1

    # suspended accounts are blocked from mutating actions
    response = client.post("/items/report-lost", json={}, headers=headers(claimant))
    assert response.status_code == 403

    client.post(f"/admin/users/{claimant.id}/unsuspend", headers=headers(admin))
    client.post(f"/admin/users/{claimant.id}/ban", headers=headers(admin))
    session.refresh(claimant)
    assert claimant.is_banned is True

    response = client.post(f"/admin/users/{admin.id}/ban", headers=headers(admin))
    assert response.status_code == 403
    assert response.json()["message"] == "Cannot ban your own account"


def test_role_change_and_history(client, item, admin, owner, headers):
    response = client.post(f"/admin/users/{owner.id}/role", json={"role": "admin"}, headers=headers(admin))
    assert response.json()["user"]["role"] == "admin"

    history = client.get(f"/admin/users/{owner.id}/history", headers=headers(admin)).json()
    assert history["stats"]["total_items"] == 1
    assert history["stats"]["found_items"] == 1


def test_delete_user_keeps_items(client, session, item, admin, owner, headers):
    response = client.delete(f"/admin/users/{owner.id}", headers=headers(admin))

    assert response.status_code == 200
    assert response.json()["items_preserved"] == 1

    session.refresh(item)
    assert item.status == ItemStatus.owner_deleted
    assert item.user_id is None


def test_category_admin(client, admin, headers):
    response = client.post("/admin/categories/initialize", headers=headers(admin))
    assert response.json()["created"] == 8

    created = client.post(
        "/admin/categories", json={"name": "Umbrellas", "description": "Rain gear"}, headers=headers(admin)
    ).json()["category"]

    response = client.post(
        "/admin/categories", json={"name": "umbrellas", "description": "dup"}, headers=headers(admin)
    )
    assert response.status_code == 409

    response = client.put(
        f"/admin/categories/{created['id']}",
        json={"name": "Rain Gear", "description": "Umbrellas and raincoats", "icon": "☔"},
        headers=headers(admin),
    )
    assert response.json()["category"]["icon"] == "☔"

    assert client.delete(f"/admin/categories/{created['id']}", headers=headers(admin)).status_code == 200
    assert len(client.get("/admin/categories", headers=headers(admin)).json()["categories"]) == 8


def test_refresh_stats(client, item, admin, headers):
    response = client.post("/admin/maintenance/refresh-stats", headers=headers(admin))

    assert response.json()["refreshed"] == 1


def test_analytics_routes(client, item, admin, headers):
    for path in (
        "/analytics/dashboard-stats",
        "/analytics/category-analytics",
        "/analytics/user-activity",
        "/analytics/time-analytics/weekly",
        "/analytics/search-analytics",
        "/analytics/embedded-health",
    ):
        response = client.get(path, headers=headers(admin))
        assert response.status_code == 200, path
        assert response.json()["success"] is True


def test_csv_exports(client, item, admin, headers):
    response = client.get("/export/items.csv", headers=headers(admin))

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "attachment; filename=items.csv" in response.headers["content-disposition"]

    rows = list(csv.reader(io.StringIO(response.text)))
    assert rows[0][:3] == ["Item ID", "Name", "Type"]
    assert rows[1][1] == item.name
    assert rows[1][2] == "found"

    users = list(csv.reader(io.StringIO(client.get("/export/users.csv", headers=headers(admin)).text)))
    assert len(users) == 3

    claims = list(csv.reader(io.StringIO(client.get("/export/claims.csv", headers=headers(admin)).text)))
    assert len(claims) == 1


def test_csv_export_yields_one_chunk_per_row(make_item, owner):
    from app.routers.export import ITEM_COLUMNS, iter_csv

    rows = [make_item(owner, name="Keys, silver"), make_item(owner, name="Umbrella")]

    chunks = list(iter_csv(rows, ITEM_COLUMNS))

    assert len(chunks) == 3
    assert chunks[0].startswith("Item ID,Name,Type")
    assert list(csv.reader(io.StringIO(chunks[1])))[0][1] == "Keys, silver"
    assert chunks[2].endswith("\r\n")
