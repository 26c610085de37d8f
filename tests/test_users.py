from __future__ import annotations

import os
from typing import Any, Callable, Iterator

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///./test_goingout.db")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("DISABLE_CLEANUP", "true")
os.environ.setdefault("EXPO_PUSH_ENABLED", "false")

from goingout.database import Base, SessionLocal, engine  # noqa: E402
from goingout.main import app  # noqa: E402
from goingout.models import User  # noqa: E402
from goingout.schemas import ProfileUpdateRequest  # noqa: E402
from goingout.services import (  # noqa: E402
    add_friend,
    block_user,
    get_current_user,
    get_friends,
    send_friend_request,
    update_profile,
)


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
def user_factory() -> Callable[..., User]:
    def _factory(username: str, **fields: Any) -> User:
        with SessionLocal() as session:
            user = User(
                username=username,
                username_lowercase=username.lower(),
                hashed_password="test-hash",
                friends=fields.pop("friends", []),
                blocked=fields.pop("blocked", []),
                **fields,
            )
            session.add(user)
            session.commit()
            session.refresh(user)
            return user
    return _factory


@pytest.fixture
def authed_client() -> Iterator[Callable[[User], TestClient]]:
    with TestClient(app) as client:
        def _with_user(user: User) -> TestClient:
            app.dependency_overrides[get_current_user] = lambda: user
            return client
        yield _with_user
    app.dependency_overrides.clear()


def test_search_ranks_exact_then_prefix_then_substring(authed_client, user_factory):
    viewer = user_factory("viewer")
    user_factory("annabel")
    user_factory("ann")
    user_factory("joanne")

    response = authed_client(viewer).get("/users/search", params={"query": "ANN"})
    assert response.status_code == 200, response.text
    assert [item["username"] for item in response.json()["results"]] == ["ann", "annabel", "joanne"]


def test_search_reports_relationship_status(authed_client, user_factory):
    viewer = user_factory("viewer", friends=["sam_friend"], blocked=["sam_blocked"])
    user_factory("sam_friend")
    user_factory("sam_blocked")
    outgoing = user_factory("sam_out")
    user_factory("sam_free")
    with SessionLocal() as db:
        send_friend_request(db, sender=viewer, recipient_username=outgoing.username)

    results = authed_client(viewer).get("/users/search", params={"query": "sam"}).json()["results"]
    statuses = {item["username"]: item["status"] for item in results}
    assert statuses == {
        "sam_blocked": "blocked",
        "sam_free": "available",
        "sam_friend": "friend",
        "sam_out": "outgoing",
    }


def test_profile_update_rewrites_lowercase_key(authed_client, user_factory):
    alice = user_factory("alice")
    user_factory("taken")
    client = authed_client(alice)

    assert client.patch("/users/me", json={"username": "TAKEN"}).status_code == 409

    updated = client.patch("/users/me", json={"username": "Alice_B", "bio": "  night owl  "})
    assert updated.status_code == 200, updated.text
    assert updated.json()["username"] == "Alice_B"
    assert updated.json()["bio"] == "night owl"
    with SessionLocal() as db:
        assert db.get(User, alice.id).username_lowercase == "alice_b"

    assert client.get("/users/alice_b").json()["username"] == "Alice_B"
    assert client.get("/users/ghost").status_code == 404


def test_rename_keeps_friendships_mutual(user_factory):
    alice = user_factory("alice")
    bob = user_factory("bob")
    with SessionLocal() as db:
        add_friend(db, user=alice, username="bob")
    with SessionLocal() as db:
        update_profile(db, user=bob, payload=ProfileUpdateRequest(username="Bobby"))

    with SessionLocal() as db:
        assert db.get(User, alice.id).friends == ["bobby"]
        assert [friend.username for friend in get_friends(db, user=alice)] == ["Bobby"]
        assert [friend.username for friend in get_friends(db, user=bob)] == ["alice"]


def test_rename_does_not_escape_a_block(user_factory):
    alice = user_factory("alice")
    mallory = user_factory("mallory")
    with SessionLocal() as db:
        block_user(db, blocker=alice, username="mallory")
    with SessionLocal() as db:
        update_profile(db, user=mallory, payload=ProfileUpdateRequest(username="mallory2"))

    with SessionLocal() as db:
        assert db.get(User, alice.id).blocked == ["mallory2"]
        with pytest.raises(HTTPException) as excinfo:
            send_friend_request(db, sender=mallory, recipient_username="alice")
        assert excinfo.value.status_code == 403


def test_push_token_registration(authed_client, user_factory):
    alice = user_factory("alice")
    client = authed_client(alice)

    assert client.put("/users/me/push-token", json={"token": "not-a-token"}).status_code == 422
    assert client.put("/users/me/push-token", json={"token": "ExponentPushToken[abc123]"}).status_code == 204
    with SessionLocal() as db:
        assert db.get(User, alice.id).push_token == "ExponentPushToken[abc123]"

    assert client.delete("/users/me/push-token").status_code == 204
    with SessionLocal() as db:
        assert db.get(User, alice.id).push_token is None
