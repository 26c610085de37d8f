from __future__ import annotations

import os
from typing import Callable, Iterator

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///./test_goingout.db")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("DISABLE_CLEANUP", "true")
os.environ.setdefault("EXPO_PUSH_ENABLED", "false")

from goingout.database import Base, SessionLocal, engine  # noqa: E402
from goingout.main import app  # noqa: E402
from goingout.models import FriendRequest, User  # noqa: E402
from goingout.schemas import PostCreate  # noqa: E402
from goingout.services import (  # noqa: E402
    accept_friend_request,
    create_access_token,
    create_post,
    send_friend_request,
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
def client() -> Iterator[TestClient]:
    app.dependency_overrides.clear()
    with TestClient(app) as test_client:
        yield test_client


def _next_of_type(websocket, message_type: str) -> dict:
    # Broadcasts such as friends.updated can arrive ahead of the reply.
    while True:
        message = websocket.receive_json()
        if message.get("type") == message_type:
            return message


def test_feed_socket_rejects_bad_tokens(client):
    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect("/ws/feed?token=invalid") as websocket:
            websocket.receive_text()


def test_feed_socket_answers_ping_and_refresh(client, user_factory):
    alice = user_factory("alice")
    with SessionLocal() as db:
        post = create_post(db, author=alice, payload=PostCreate(text="live", location="Downtown"))

    with client.websocket_connect(f"/ws/feed?token={create_access_token(alice.id)}") as websocket:
        websocket.send_text("ping")
        assert websocket.receive_json() == {"type": "pong"}

        websocket.send_json({"type": "hello"})
        assert websocket.receive_json() == {"type": "ready"}

        websocket.send_json({"type": "refresh"})
        assert websocket.receive_json() == {"type": "feed.snapshot", "post_ids": [str(post.id)]}


def test_friend_socket_syncs_on_connect(client, user_factory):
    alice = user_factory("alice")
    bob = user_factory("bob")
    with SessionLocal() as db:
        request_id = send_friend_request(db, sender=alice, recipient_username="bob").id
    with SessionLocal() as db:
        accept_friend_request(db, request_id=request_id, recipient=bob)

    with client.websocket_connect(f"/friends/ws?token={create_access_token(alice.id)}") as websocket:
        snapshot = _next_of_type(websocket, "friends.snapshot")
        assert [friend["username"] for friend in snapshot["friends"]] == ["bob"]
        assert snapshot["outgoing_requests"] == []

        websocket.send_text("ping")
        assert _next_of_type(websocket, "pong") == {"type": "pong"}

    with SessionLocal() as db:
        assert db.get(User, alice.id).friends == ["bob"]


def test_subscribed_sender_becomes_mutual_without_sync(client, user_factory):
    alice = user_factory("alice")
    bob = user_factory("bob")
    with SessionLocal() as db:
        request_id = send_friend_request(db, sender=alice, recipient_username="bob").id

    with client.websocket_connect(f"/friends/ws?token={create_access_token(alice.id)}") as websocket:
        _next_of_type(websocket, "friends.snapshot")
        with SessionLocal() as db:
            accept_friend_request(db, request_id=request_id, recipient=bob)

        with SessionLocal() as db:
            assert db.get(User, alice.id).friends == ["bob"]
            assert db.get(User, bob.id).friends == ["alice"]
            assert db.query(FriendRequest).count() == 0
