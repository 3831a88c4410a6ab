from conftest import PASSWORD


def register(client, **overrides):
    payload = {
        "name": "New Student",
        "email": "New.Student@Campus.edu",
        "password": "secret123",
        "confirm_password": "secret123",
        "university_id": "FA22-BSE-001",
    }
    payload.update(overrides)
    return client.post("/auth/register", json=payload)


def test_register_and_login(client):
    response = register(client)
    assert response.status_code == 200
    assert response.json()["user"]["email"] == "new.student@campus.edu"
    assert "password_hash" not in response.json()["user"]

    response = client.post("/auth/login", json={"email": "new.student@campus.edu", "password": "secret123"})
    assert response.status_code == 200
    token = response.json()["access_token"]

    me = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.json()["user"]["name"] == "New Student"


def test_register_rejects_duplicates(client):
    register(client)

    response = register(client, university_id="FA22-BSE-999")
    assert response.status_code == 409
    assert response.json() == {"success": False, "message": "Email already registered"}

    response = register(client, email="other@campus.edu")
    assert response.status_code == 409


def test_register_validates_passwords(client):
    response = register(client, confirm_password="different")

    assert response.status_code == 400
    assert response.json()["message"] == "Passwords do not match"


def test_login_with_wrong_password(client, claimant):
    response = client.post("/auth/login", json={"email": claimant.email, "password": "nope"})

    assert response.status_code == 401


def test_banned_user_cannot_log_in(client, make_user):
    banned = make_user(is_banned=True)

    response = client.post("/auth/login", json={"email": banned.email, "password": PASSWORD})

    assert response.status_code == 403
    assert response.json()["message"] == "Account is banned"


def test_me_requires_token(client):
    assert client.get("/auth/me").status_code in (401, 403)

    response = client.get("/auth/me", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401
