from __future__ import annotations

import os
from datetime import timedelta
from typing import Iterator

import pytest

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///./test_goingout.db")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("DISABLE_CLEANUP", "true")
os.environ.setdefault("EXPO_PUSH_ENABLED", "false")

from goingout.database import Base, SessionLocal, engine  # noqa: E402
from goingout.models import Notification, Post, User, Vote  # noqa: E402
from goingout.services.cleanup_service import CleanupSummary, perform_cleanup, run_cleanup  # noqa: E402
from goingout.services.migrations import should_run_migrations  # noqa: E402
from goingout.services.vote_service import today  # noqa: E402
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


def _seed() -> None:
    now = utcnow()
    with SessionLocal() as session:
        user = User(username="alice", username_lowercase="alice", hashed_password="test-hash", friends=[], blocked=[])
        session.add(user)
        session.flush()

        for text, expired_for in (("long gone", timedelta(days=3)), ("just expired", timedelta(hours=1))):
            session.add(
                Post(
                    user_id=user.id,
                    username="alice",
                    text=text,
                    location="Downtown",
                    images=[],
                    created_at=now - expired_for - timedelta(hours=24),
                    expires_at=now - expired_for,
                )
            )
        session.add(Post(user_id=user.id, username="alice", text="fresh", location="Downtown", images=[], expires_at=now + timedelta(hours=5)))

        old = now - timedelta(days=3)
        session.add(Notification(recipient_id=user.id, type="like", message="old read", read=True, created_at=old))
        session.add(Notification(recipient_id=user.id, type="like", message="old unread", read=False, created_at=old))
        session.add(Notification(recipient_id=user.id, type="like", message="new read", read=True, created_at=now))

        for day in (today() - timedelta(days=1), today()):
            session.add(Vote(user_id=user.id, location="Downtown", location_key="downtown", option="Bar", vote_date=day))
        session.commit()


def test_cleanup_removes_only_aged_rows():
    _seed()

    with SessionLocal() as session:
        summary = perform_cleanup(session, retention=timedelta(days=2))

    assert summary == CleanupSummary(posts=1, notifications=1, votes=1)
    assert summary.total == 3

    with SessionLocal() as session:
        assert sorted(post.text for post in session.query(Post)) == ["fresh", "just expired"]
        assert sorted(item.message for item in session.query(Notification)) == ["new read", "old unread"]
        assert [vote.vote_date for vote in session.query(Vote)] == [today()]


def test_run_cleanup_is_a_no_op_on_a_clean_database():
    assert run_cleanup(SessionLocal).total == 0


def test_retention_must_be_positive():
    with SessionLocal() as session, pytest.raises(ValueError):
        perform_cleanup(session, retention=timedelta(0))


def test_startup_migration_gate(monkeypatch):
    for name in ("PYTEST_CURRENT_TEST", "DISABLE_AUTO_MIGRATIONS", "AUTO_MIGRATE"):
        monkeypatch.delenv(name, raising=False)

    assert should_run_migrations("postgresql+psycopg2://db/goingout")
    assert not should_run_migrations("sqlite:///./local.db")

    monkeypatch.setenv("AUTO_MIGRATE", "yes")
    assert should_run_migrations("sqlite:///./local.db")

    monkeypatch.setenv("DISABLE_AUTO_MIGRATIONS", "1")
    assert not should_run_migrations("postgresql+psycopg2://db/goingout")
