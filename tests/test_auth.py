from __future__ import annotations

import os
from typing import Iterator
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///./test_goingout.db")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("DISABLE_CLEANUP", "true")
os.environ.setdefault("EXPO_PUSH_ENABLED", "false")

from goingout.database import Base, SessionLocal, engine  # noqa: E402
from goingout.main import app  # noqa: E402
from goingout.models import User  # noqa: E402
from goingout.services import create_access_token, decode_access_token  # noqa: E402
from goingout.services.auth_service import hash_password, verify_password  # noqa: E402


@pytest.fixture(scope="module", autouse=True)
def _create_schema() -> Iterator[None]:
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def _clean_database() -> Iterator[None]:
    with SessionLocal() as session:
        for table in reversed(Base.metadata.sorted_tables):
            session.execute(table.delete())
        session.commit()
    yield


@pytest.fixture
def client() -> Iterator[TestClient]:
    app.dependency_overrides.clear()
    with TestClient(app) as test_client:
        yield test_client


def _register(client: TestClient, username: str = "Alice", password: str = "s3cret-pass", **extra):
    return client.post("/auth/register", json={"username": username, "password": password, **extra})


def test_password_hashing_round_trip():
    hashed = hash_password("s3cret-pass")
    assert hashed != "s3cret-pass"
    assert verify_password("s3cret-pass", hashed)
    assert not verify_password("wrong", hashed)
    assert not verify_password("anything", "not-a-bcrypt-hash")


def test_access_token_carries_the_user_id():
    user_id = uuid4()
    assert decode_access_token(create_access_token(user_id)) == user_id


def test_register_stores_lowercase_key_and_empty_arrays(client):
    response = _register(client, email="alice@goingout.app")
    assert response.status_code == 201, response.text
    body = response.json()
    assert body["username"] == "Alice"
    assert body["token_type"] == "bearer"

    with SessionLocal() as db:
        user = db.get(User, decode_access_token(body["access_token"]))
        assert user.username_lowercase == "alice"
        assert user.friends == []
        assert user.blocked == []
        assert user.name == "Alice"


def test_usernames_are_unique_case_insensitively(client):
    assert _register(client).status_code == 201
    duplicate = _register(client, username="ALICE")
    assert duplicate.status_code == 409
    assert duplicate.json()["detail"] == "Username already in use"


def test_login_and_me(client):
    _register(client)

    assert client.post("/auth/login", json={"username": "alice", "password": "nope"}).status_code == 401

    login = client.post("/auth/login", json={"username": "ALICE", "password": "s3cret-pass"})
    assert login.status_code == 200, login.text
    token = login.json()["access_token"]

    me = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200, me.text
    assert me.json()["username"] == "Alice"
    assert me.json()["friends"] == []


def test_protected_routes_require_a_token(client):
    assert client.get("/friends/").status_code == 401
    assert client.get("/auth/me", headers={"Authorization": "Bearer not-a-token"}).status_code == 401


def test_system_endpoints(client):
    assert client.get("/health").json() == {"status": "ok"}
    assert client.get("/api").status_code == 200
