from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine
from werkzeug.security import generate_password_hash

from app.db.db import get_session
from app.main import app
from app.models import admin_action, category, claim, notification  # noqa: F401
from app.models.item import Item, ItemStatus, ItemType, build_search_tags
from app.models.user import RoleType, User
from app.utils.auth_helper import create_access_token

PASSWORD = "password123"


@pytest.fixture(autouse=True)
def no_smtp(monkeypatch):
    # keep tests off the network even if a local .env configures SMTP
    for key in ("SMTP_SERVER", "SMTP_PORT", "SMTP_USER", "SMTP_PASS"):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)

    with Session(engine) as session:
        yield session


@pytest.fixture
def client(session):
    def get_session_override():
        return session

    app.dependency_overrides[get_session] = get_session_override
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(session):
    counter = {"n": 0}

    def _make_user(name=None, role=RoleType.student, **fields):
        counter["n"] += 1
        n = counter["n"]

        user = User(
            name=name or f"User {n}",
            email=fields.pop("email", f"user{n}@campus.edu"),
            university_id=fields.pop("university_id", f"FA21-BCS-{n:03d}"),
            password_hash=generate_password_hash(PASSWORD),
            role=role,
            **fields,
        )
        session.add(user)
        session.commit()
        session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_item(session):
    def _make_item(owner, name="Blue backpack", item_type=ItemType.found, **fields):
        description = fields.pop("description", "Navy blue backpack with a laptop sleeve")

        item = Item(
            user_id=owner.id if owner else None,
            name=name,
            description=description,
            type=item_type,
            category=fields.pop("category", "Bags"),
            location=fields.pop("location", "Library second floor"),
            date=fields.pop("date", datetime(2024, 3, 1, tzinfo=timezone.utc)),
            status=fields.pop("status", ItemStatus.available),
            reporter_name=owner.name if owner else None,
            reporter_email=owner.email if owner else None,
            search_tags=build_search_tags(name, description),
            **fields,
        )
        session.add(item)
        session.commit()
        session.refresh(item)
        return item

    return _make_item


@pytest.fixture
def owner(make_user):
    return make_user("Olivia Owner")


@pytest.fixture
def claimant(make_user):
    return make_user("Carl Claimant")


@pytest.fixture
def other_claimant(make_user):
    return make_user("Dana Other")


@pytest.fixture
def admin(make_user):
    return make_user("Ada Admin", role=RoleType.admin)


@pytest.fixture
def item(make_item, owner):
    return make_item(owner)


def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token(user)}"}


@pytest.fixture
def headers():
    return auth_headers
