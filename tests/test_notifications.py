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
from goingout.services import (  # noqa: E402
    create_notification,
    get_current_user,
    list_notifications,
)
from goingout.services.notification_service import NotificationType, notify_mentions  # noqa: E402


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
                friends=[],
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


def _notify(recipient: User, sender: User | None, message: str = "liked your post"):
    with SessionLocal() as db:
        return create_notification(
            db,
            recipient_id=recipient.id,
            sender=sender,
            type_=NotificationType.LIKE,
            message=message,
        )


def test_notification_snapshots_the_sender(user_factory):
    alice = user_factory("alice", name="Alice A.", avatar_url="https://cdn.example.org/alice.png")
    bob = user_factory("bob")

    notification = _notify(bob, alice)

    assert notification is not None
    assert notification.type == "like"
    assert notification.from_user_name == "Alice A."
    assert notification.from_user_username == "alice"
    assert notification.from_user_avatar == "https://cdn.example.org/alice.png"
    assert notification.read is False


def test_self_and_blocked_senders_are_suppressed(user_factory):
    alice = user_factory("alice")
    bob = user_factory("bob", blocked=["alice"])

    assert _notify(alice, alice) is None
    assert _notify(bob, alice) is None
    with SessionLocal() as db:
        assert list_notifications(db, bob.id) == []


def test_unknown_recipient_is_an_error(user_factory):
    alice = user_factory("alice")
    bob = user_factory("bob")
    with SessionLocal() as db:
        db.delete(db.get(User, bob.id))
        db.commit()

    with pytest.raises(HTTPException) as excinfo:
        _notify(bob, alice)
    assert excinfo.value.status_code == 404


def test_mentions_notify_each_existing_user_once(user_factory):
    alice = user_factory("alice")
    bob = user_factory("bob")
    carol = user_factory("carol")

    with SessionLocal() as db:
        delivered = notify_mentions(
            db,
            author=alice,
            text="@Bob @bob and @carol, not @ghost or @alice",
            message="mentioned you in a post",
        )

    assert sorted(item.recipient_id for item in delivered) == sorted([bob.id, carol.id])
    assert {item.type for item in delivered} == {"mention"}


def test_read_state_and_deletion_through_the_api(authed_client, user_factory):
    alice = user_factory("alice")
    bob = user_factory("bob")
    first = _notify(bob, alice, "liked your post")
    _notify(bob, alice, "commented on your post")

    client = authed_client(bob)
    assert client.get("/notifications/summary").json() == {"unread_count": 2}

    read = client.post(f"/notifications/{first.id}/read")
    assert read.status_code == 200, read.text
    assert read.json()["read"] is True
    assert client.get("/notifications/summary").json() == {"unread_count": 1}

    assert client.post("/notifications/mark-read").status_code == 204
    items = client.get("/notifications/").json()["items"]
    assert len(items) == 2
    assert all(item["read"] for item in items)

    assert client.delete(f"/notifications/{first.id}").status_code == 204
    assert len(client.get("/notifications/").json()["items"]) == 1


def test_other_users_notifications_are_not_found(authed_client, user_factory):
    alice = user_factory("alice")
    bob = user_factory("bob")
    notification = _notify(bob, alice)

    client = authed_client(alice)
    assert client.post(f"/notifications/{notification.id}/read").status_code == 404
    assert client.delete(f"/notifications/{notification.id}").status_code == 404
