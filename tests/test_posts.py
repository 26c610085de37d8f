from __future__ import annotations

import os
from datetime import timedelta
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
from goingout.models import Post, User  # noqa: E402
from goingout.schemas import PostCreate  # noqa: E402
from goingout.services import (  # noqa: E402
    add_comment,
    create_post,
    delete_comment,
    delete_post,
    get_current_user,
    get_feed,
    get_posts_by_location,
    set_post_like_state,
)
from goingout.utils import utcnow  # noqa: E402


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


def _post(author: User, **fields: Any) -> Post:
    with SessionLocal() as db:
        return create_post(db, author=author, payload=PostCreate(**fields))


def _feed_ids(viewer: User, **filters: Any) -> list[str]:
    with SessionLocal() as db:
        return [str(post.id) for post in get_feed(db, viewer=viewer, **filters)]


def test_new_post_snapshots_author_and_expires(user_factory):
    alice = user_factory("alice", name="Alice A.")

    post = _post(alice, text="  out tonight  ", location="Downtown")

    assert post.username == "alice"
    assert post.name == "Alice A."
    assert post.text == "out tonight"
    assert post.likes == 0 and post.replies == 0
    assert post.expires_at is not None
    assert post.expires_at - post.created_at == timedelta(hours=24)


def test_post_without_text_or_image_is_rejected(user_factory):
    alice = user_factory("alice")

    with pytest.raises(HTTPException) as excinfo:
        _post(alice, text="   ")
    assert excinfo.value.status_code == 422

    post = _post(alice, text="", images=["https://cdn.example.org/a.jpg"])
    assert post.image == "https://cdn.example.org/a.jpg"


def test_missing_location_falls_back_to_unknown(user_factory):
    alice = user_factory("alice")
    assert _post(alice, text="hello").location == "Unknown Location"


def test_feed_filters_by_location_and_hides_expired(user_factory):
    alice = user_factory("alice")
    bob = user_factory("bob")

    downtown = _post(alice, text="downtown", location="Downtown")
    _post(alice, text="uptown", location="Uptown")
    stale = _post(alice, text="old news", location="Downtown")
    with SessionLocal() as db:
        record = db.get(Post, stale.id)
        record.expires_at = utcnow() - timedelta(minutes=1)
        db.commit()

    assert _feed_ids(bob, location="  downtown ") == [str(downtown.id)]

    with SessionLocal() as db:
        by_location = get_posts_by_location(db, viewer=bob, location="DOWNTOWN")
    assert [str(post.id) for post in by_location] == [str(downtown.id)]


def test_friends_only_posts_reach_the_author_and_their_friends(user_factory):
    alice = user_factory("alice")
    friend = user_factory("carol", friends=["alice"])
    stranger = user_factory("bob")

    private = _post(alice, text="friends only", location="Downtown", visibility="friends")

    assert _feed_ids(alice, location="Elsewhere") == [str(private.id)]
    assert _feed_ids(friend, location="Elsewhere") == [str(private.id)]
    assert _feed_ids(stranger, location="Downtown") == []


def test_feed_radius_filter(user_factory):
    alice = user_factory("alice")
    bob = user_factory("bob")

    near = _post(alice, text="near", lat=52.5200, lng=13.4050)
    _post(alice, text="far", lat=48.1351, lng=11.5820)

    assert _feed_ids(bob, lat=52.5205, lng=13.4049, radius_km=5) == [str(near.id)]


def test_blocked_authors_disappear_from_the_feed(user_factory):
    alice = user_factory("alice")
    bob = user_factory("bob", blocked=["alice"])
    carol = user_factory("carol")

    post = _post(alice, text="hello", location="Downtown")

    assert _feed_ids(bob, location="Downtown") == []
    assert _feed_ids(carol, location="Downtown") == [str(post.id)]

    with SessionLocal() as db, pytest.raises(HTTPException) as excinfo:
        set_post_like_state(db, post_id=post.id, user=bob, liked=True)
    assert excinfo.value.status_code == 403


def test_likes_are_idempotent(user_factory):
    alice = user_factory("alice")
    bob = user_factory("bob")
    post = _post(alice, text="like me", location="Downtown")

    for _ in range(2):
        with SessionLocal() as db:
            updated = set_post_like_state(db, post_id=post.id, user=bob, liked=True)
        assert updated.likes == 1

    with SessionLocal() as db:
        assert set_post_like_state(db, post_id=post.id, user=bob, liked=False).likes == 0
    with SessionLocal() as db:
        assert set_post_like_state(db, post_id=post.id, user=bob, liked=False).likes == 0


def test_comments_track_the_reply_counter(user_factory):
    alice = user_factory("alice")
    bob = user_factory("bob")
    post = _post(alice, text="comment here", location="Downtown")

    with SessionLocal() as db:
        comment = add_comment(db, post_id=post.id, author=bob, text=" nice ")
    assert comment.text == "nice"
    with SessionLocal() as db:
        assert db.get(Post, post.id).replies == 1

    with SessionLocal() as db, pytest.raises(HTTPException) as excinfo:
        delete_comment(db, post_id=post.id, comment_id=comment.id, user=alice)
    assert excinfo.value.status_code == 403

    with SessionLocal() as db:
        delete_comment(db, post_id=post.id, comment_id=comment.id, user=bob)
    with SessionLocal() as db:
        assert db.get(Post, post.id).replies == 0

    with SessionLocal() as db, pytest.raises(HTTPException) as excinfo:
        add_comment(db, post_id=post.id, author=bob, text="   ")
    assert excinfo.value.status_code == 422


def test_only_the_author_can_delete_a_post(user_factory):
    alice = user_factory("alice")
    bob = user_factory("bob")
    post = _post(alice, text="mine", location="Downtown")

    with SessionLocal() as db, pytest.raises(HTTPException) as excinfo:
        delete_post(db, post_id=post.id, user=bob)
    assert excinfo.value.status_code == 403

    with SessionLocal() as db:
        delete_post(db, post_id=post.id, user=alice)
    with SessionLocal() as db:
        assert db.get(Post, post.id) is None


def test_post_api_round_trip(authed_client, user_factory):
    alice = user_factory("alice")
    bob = user_factory("bob")

    client = authed_client(alice)
    created = client.post("/posts/", json={"text": "party @bob", "location": "Downtown"})
    assert created.status_code == 201, created.text
    post_id = created.json()["id"]
    assert created.json()["time_ago"].endswith("ago")

    client = authed_client(bob)
    liked = client.post(f"/posts/{post_id}/like")
    assert liked.status_code == 200, liked.text
    assert liked.json() == {"post_id": post_id, "likes": 1, "liked": True}

    feed = client.get("/posts/feed", params={"location": "downtown"})
    assert feed.status_code == 200, feed.text
    items = feed.json()["items"]
    assert [item["id"] for item in items] == [post_id]
    assert items[0]["liked_by_me"] is True

    commented = client.post(f"/posts/{post_id}/comments", json={"text": "on my way"})
    assert commented.status_code == 201, commented.text
    comments = client.get(f"/posts/{post_id}/comments")
    assert [item["text"] for item in comments.json()["items"]] == ["on my way"]

    assert client.delete(f"/posts/{post_id}").status_code == 403
