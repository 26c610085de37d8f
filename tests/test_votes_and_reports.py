from __future__ import annotations

import os
from datetime import timedelta
from typing import Callable, Iterator

import pytest
from fastapi.testclient import TestClient

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///./test_goingout.db")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("DISABLE_CLEANUP", "true")
os.environ.setdefault("EXPO_PUSH_ENABLED", "false")

from goingout.database import Base, SessionLocal, engine  # noqa: E402
from goingout.main import app  # noqa: E402
from goingout.models import User, Vote  # noqa: E402
from goingout.schemas import PostCreate  # noqa: E402
from goingout.services import create_post, get_current_user, get_vote_counts, vote_for_option  # noqa: E402
from goingout.services.vote_service import location_key, today  # noqa: E402


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


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("Downtown", "downtown"),
        ("  Old   Town ", "old town"),
        ("", ""),
    ],
)
def test_location_key(raw, expected):
    assert location_key(raw) == expected


def test_vote_create_move_and_withdraw(user_factory):
    alice = user_factory("alice")

    with SessionLocal() as db:
        assert vote_for_option(db, user=alice, location="Downtown", option="Bar") == ("created", "Bar")
    with SessionLocal() as db:
        assert vote_for_option(db, user=alice, location="downtown ", option="Club") == ("updated", "Club")
    with SessionLocal() as db:
        assert vote_for_option(db, user=alice, location="DOWNTOWN", option="Club") == ("removed", None)
    with SessionLocal() as db:
        assert db.query(Vote).count() == 0


def test_counts_only_include_today(user_factory):
    alice = user_factory("alice")
    bob = user_factory("bob")
    carol = user_factory("carol")

    with SessionLocal() as db:
        vote_for_option(db, user=alice, location="Downtown", option="Club")
        vote_for_option(db, user=bob, location="Downtown", option="Bar")
        vote_for_option(db, user=carol, location="Downtown", option="Bar")
        db.add(
            Vote(
                user_id=carol.id,
                location="Downtown",
                location_key="downtown",
                option="Club",
                vote_date=today() - timedelta(days=1),
            )
        )
        db.commit()

    with SessionLocal() as db:
        assert get_vote_counts(db, location="downtown") == [("Bar", 2), ("Club", 1)]


def test_vote_api(authed_client, user_factory):
    alice = user_factory("alice")
    client = authed_client(alice)

    cast_vote = client.post("/votes/", json={"location": "Downtown", "option": "Bar"})
    assert cast_vote.status_code == 200, cast_vote.text
    assert cast_vote.json() == {"action": "created", "option": "Bar"}

    counts = client.get("/votes/counts", params={"location": "Downtown"}).json()
    assert counts["counts"] == [{"option": "Bar", "count": 1}]
    assert counts["total"] == 1
    assert client.get("/votes/me", params={"location": "downtown"}).json()["option"] == "Bar"

    assert client.post("/votes/", json={"location": "Downtown", "option": "   "}).status_code == 422


def test_reporting_a_post_once(authed_client, user_factory):
    alice = user_factory("alice")
    bob = user_factory("bob")
    with SessionLocal() as db:
        post = create_post(db, author=alice, payload=PostCreate(text="spam", location="Downtown"))

    client = authed_client(bob)
    first = client.post(f"/reports/posts/{post.id}", json={"reason": "spam"})
    assert first.status_code == 201, first.text
    assert first.json()["type"] == "post"
    assert first.json()["status"] == "pending"

    again = client.post(f"/reports/posts/{post.id}", json={"reason": "still spam"})
    assert again.status_code == 409
    assert again.json()["detail"] == "You have already reported this post"


def test_reporting_users(authed_client, user_factory):
    alice = user_factory("alice")
    bob = user_factory("bob")
    client = authed_client(bob)

    assert client.post(f"/reports/users/{bob.id}", json={"reason": "me"}).status_code == 400
    reported = client.post(f"/reports/users/{alice.id}", json={"reason": "harassment", "details": " rude "})
    assert reported.status_code == 201, reported.text
    assert reported.json()["details"] == "rude"
    assert client.post(f"/reports/users/{alice.id}", json={"reason": "again"}).status_code == 409
