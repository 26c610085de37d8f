from __future__ import annotations

import os
from typing import Callable, Iterator
from uuid import UUID

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient
from sqlalchemy import select

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///./test_goingout.db")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("DISABLE_CLEANUP", "true")
os.environ.setdefault("EXPO_PUSH_ENABLED", "false")

from goingout.database import Base, SessionLocal, engine  # noqa: E402
from goingout.main import app  # noqa: E402
from goingout.models import Group, Notification, User  # noqa: E402
from goingout.services import get_current_user  # noqa: E402
from goingout.services.group_poll_service import apply_vote  # noqa: E402


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


def _invitations_for(user: User) -> list[Notification]:
    with SessionLocal() as db:
        stmt = select(Notification).where(
            Notification.recipient_id == user.id,
            Notification.type == "group_invitation",
        )
        return list(db.scalars(stmt))


def _create_group(client: TestClient, **payload) -> dict:
    response = client.post("/groups/", json={"name": "Friday crew", **payload})
    assert response.status_code == 201, response.text
    return response.json()


def test_creator_is_the_only_member_and_invitees_are_notified(authed_client, user_factory):
    alice = user_factory("alice")
    bob = user_factory("bob")

    group = _create_group(authed_client(alice), members=["bob", "BOB", "alice", "ghost"])

    assert group["member_count"] == 1
    assert [member["username"] for member in group["members"]] == ["alice"]
    assert group["is_active"] is True

    invitations = _invitations_for(bob)
    assert len(invitations) == 1
    assert invitations[0].message == 'invited you to join "Friday crew"'
    assert str(invitations[0].group_id) == group["id"]


def test_accepting_an_invitation_joins_and_consumes_it(authed_client, user_factory):
    alice = user_factory("alice")
    bob = user_factory("bob")
    group = _create_group(authed_client(alice), members=["bob"])
    invitation = _invitations_for(bob)[0]

    client = authed_client(bob)
    joined = client.post(f"/groups/invitations/{invitation.id}/accept")
    assert joined.status_code == 200, joined.text
    assert joined.json()["member_count"] == 2
    assert _invitations_for(bob) == []

    listed = client.get("/groups/")
    assert [item["id"] for item in listed.json()] == [group["id"]]


def test_declining_an_invitation_only_drops_it(authed_client, user_factory):
    alice = user_factory("alice")
    bob = user_factory("bob")
    group = _create_group(authed_client(alice), members=["bob"])
    invitation = _invitations_for(bob)[0]

    client = authed_client(bob)
    assert client.post(f"/groups/invitations/{invitation.id}/decline").status_code == 204
    assert _invitations_for(bob) == []
    assert client.get(f"/groups/{group['id']}").status_code == 403


def test_members_and_removal_rules(authed_client, user_factory):
    alice = user_factory("alice")
    bob = user_factory("bob")
    carol = user_factory("carol")
    group = _create_group(authed_client(alice))

    client = authed_client(alice)
    added = client.post(f"/groups/{group['id']}/members", json={"username": "bob"})
    assert added.status_code == 200, added.text
    assert added.json()["member_count"] == 2
    assert client.post(f"/groups/{group['id']}/members", json={"username": "bob"}).status_code == 409

    client = authed_client(carol)
    assert client.post(f"/groups/{group['id']}/members", json={"username": "carol"}).status_code == 403

    client = authed_client(bob)
    assert client.delete(f"/groups/{group['id']}/members/{alice.id}").status_code == 403
    left = client.delete(f"/groups/{group['id']}/members/{bob.id}")
    assert left.status_code == 200
    assert left.json()["member_count"] == 1


def test_group_chat_is_members_only(authed_client, user_factory):
    alice = user_factory("alice")
    bob = user_factory("bob")
    group = _create_group(authed_client(alice))

    client = authed_client(alice)
    first = client.post(f"/groups/{group['id']}/messages", json={"text": "who is in?"})
    assert first.status_code == 201, first.text
    client.post(f"/groups/{group['id']}/messages", json={"text": "leaving at 9"})
    assert client.post(f"/groups/{group['id']}/messages", json={"text": "   "}).status_code == 422

    messages = client.get(f"/groups/{group['id']}/messages").json()["items"]
    assert [message["text"] for message in messages] == ["who is in?", "leaving at 9"]
    assert messages[0]["type"] == "text"

    client = authed_client(bob)
    assert client.get(f"/groups/{group['id']}/messages").status_code == 403
    assert client.post(f"/groups/{group['id']}/messages", json={"text": "hi"}).status_code == 403


def test_poll_voting_moves_and_withdraws(authed_client, user_factory):
    alice = user_factory("alice")
    group = _create_group(authed_client(alice))
    client = authed_client(alice)

    assert client.post(f"/groups/{group['id']}/polls", json={"question": "Where?", "options": ["Bar", " "]}).status_code == 422

    created = client.post(f"/groups/{group['id']}/polls", json={"question": "Where?", "options": ["Bar", "Club"]})
    assert created.status_code == 201, created.text
    poll = created.json()
    assert [option["id"] for option in poll["options"]] == ["option_0", "option_1"]

    vote_url = f"/groups/{group['id']}/polls/{poll['id']}/vote"
    voted = client.post(vote_url, json={"option_id": "option_0"}).json()
    assert [option["votes"] for option in voted["options"]] == [1, 0]

    moved = client.post(vote_url, json={"option_id": "option_1"}).json()
    assert [option["votes"] for option in moved["options"]] == [0, 1]
    assert moved["total_votes"] == 1

    withdrawn = client.post(vote_url, json={"option_id": "option_1"}).json()
    assert withdrawn["total_votes"] == 0

    assert client.post(vote_url, json={"option_id": "option_9"}).status_code == 404

    messages = client.get(f"/groups/{group['id']}/messages").json()["items"]
    assert [message["type"] for message in messages] == ["poll"]


def test_apply_vote_counts_each_voter_once():
    options = [
        {"id": "option_0", "text": "Bar", "votes": 1, "voters": ["u1"]},
        {"id": "option_1", "text": "Club", "votes": 0, "voters": []},
    ]

    updated = apply_vote(options, voter_id="u2", option_id="option_0")
    assert updated[0]["voters"] == ["u1", "u2"]
    assert updated[0]["votes"] == 2

    with pytest.raises(HTTPException) as excinfo:
        apply_vote(options, voter_id="u2", option_id="missing")
    assert excinfo.value.status_code == 404


def test_shared_locations_are_overwritten_and_removed(authed_client, user_factory):
    alice = user_factory("alice")
    group = _create_group(authed_client(alice))
    client = authed_client(alice)
    url = f"/groups/{group['id']}/locations"

    assert client.put(url, json={"lat": 52.52, "lng": 13.40}).status_code == 200
    assert client.put(url, json={"lat": 52.53, "lng": 13.41}).status_code == 200
    locations = client.get(url).json()
    assert len(locations) == 1
    assert locations[0]["lat"] == pytest.approx(52.53)

    assert client.delete(url).status_code == 204
    assert client.get(url).json() == []


def test_album_accepts_links(authed_client, user_factory):
    alice = user_factory("alice")
    group = _create_group(authed_client(alice))
    client = authed_client(alice)

    added = client.post(f"/groups/{group['id']}/photos", json={"url": "https://cdn.example.org/p.jpg"})
    assert added.status_code == 201, added.text
    assert added.json()["media_type"] == "image"

    clip = client.post(
        f"/groups/{group['id']}/photos", json={"url": "https://cdn.example.org/c.mp4", "media_type": "video"}
    )
    assert clip.json()["media_type"] == "video"
    urls = {item["url"] for item in client.get(f"/groups/{group['id']}/photos").json()}
    assert urls == {"https://cdn.example.org/p.jpg", "https://cdn.example.org/c.mp4"}


def test_expired_groups_are_hidden_unless_requested(authed_client, user_factory):
    alice = user_factory("alice")
    client = authed_client(alice)
    _create_group(client, start_time="2020-01-01T20:00:00Z", end_time="2020-01-02T02:00:00Z")

    assert client.get("/groups/").json() == []
    assert len(client.get("/groups/", params={"include_expired": True}).json()) == 1


def test_only_the_creator_deletes_a_group(authed_client, user_factory):
    alice = user_factory("alice")
    bob = user_factory("bob")
    group = _create_group(authed_client(alice))

    client = authed_client(alice)
    client.post(f"/groups/{group['id']}/members", json={"username": "bob"})

    assert authed_client(bob).delete(f"/groups/{group['id']}").status_code == 403
    assert authed_client(alice).delete(f"/groups/{group['id']}").status_code == 204
    with SessionLocal() as db:
        assert db.get(Group, UUID(group["id"])) is None
