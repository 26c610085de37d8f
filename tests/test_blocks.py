from __future__ import annotations

import os
from typing import Callable, Iterator

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
from goingout.services import add_friend, block_user, get_current_user, send_friend_request  # noqa: E402


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
def user_factory() -> Callable[[str], User]:
    def _factory(username: str) -> User:
        with SessionLocal() as session:
            user = User(
                username=username,
                username_lowercase=username.lower(),
                hashed_password="test-hash",
                friends=[],
                blocked=[],
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


def _arrays(user: User) -> tuple[list[str], list[str]]:
    with SessionLocal() as db:
        record = db.get(User, user.id)
        return list(record.friends), list(record.blocked)


def test_block_drops_friend_from_blocker_only(user_factory):
    alice = user_factory("alice")
    bob = user_factory("bob")
    with SessionLocal() as db:
        add_friend(db, user=alice, username="bob")

    with SessionLocal() as db:
        block_user(db, blocker=alice, username="Bob")

    assert _arrays(alice) == ([], ["bob"])
    assert _arrays(bob) == (["alice"], [])


def test_block_validation(user_factory):
    alice = user_factory("alice")

    with SessionLocal() as db, pytest.raises(HTTPException) as excinfo:
        block_user(db, blocker=alice, username="ALICE")
    assert excinfo.value.status_code == 400

    with SessionLocal() as db, pytest.raises(HTTPException) as excinfo:
        block_user(db, blocker=alice, username="ghost")
    assert excinfo.value.status_code == 404


def test_blocking_twice_keeps_a_single_entry(user_factory):
    alice = user_factory("alice")
    user_factory("bob")

    for _ in range(2):
        with SessionLocal() as db:
            block_user(db, blocker=alice, username="bob")
    assert _arrays(alice)[1] == ["bob"]


def test_blocked_user_cannot_send_requests(user_factory):
    alice = user_factory("alice")
    bob = user_factory("bob")
    with SessionLocal() as db:
        block_user(db, blocker=bob, username="alice")

    with SessionLocal() as db, pytest.raises(HTTPException) as excinfo:
        send_friend_request(db, sender=alice, recipient_username="bob")
    assert excinfo.value.status_code == 403

    with SessionLocal() as db, pytest.raises(HTTPException) as excinfo:
        send_friend_request(db, sender=bob, recipient_username="alice")
    assert excinfo.value.detail == "You have blocked this user"


def test_block_api(authed_client, user_factory):
    alice = user_factory("alice")
    user_factory("Bob")

    client = authed_client(alice)
    assert client.get("/blocks/bob").json() == {"username": "bob", "blocked": False}

    blocked = client.post("/blocks/bob")
    assert blocked.status_code == 200, blocked.text
    assert blocked.json()["blocked"] is True

    listed = client.get("/blocks/").json()["items"]
    assert [item["username"] for item in listed] == ["Bob"]

    assert client.delete("/blocks/bob").json() == {"username": "bob", "blocked": False}
    assert client.delete("/blocks/bob").status_code == 404
    assert client.get("/blocks/").json()["items"] == []
