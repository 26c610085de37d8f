from __future__ import annotations

import os
from typing import Iterator

import pytest

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///./test_goingout.db")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("DISABLE_CLEANUP", "true")
os.environ.setdefault("EXPO_PUSH_ENABLED", "false")

from goingout.database import Base, SessionLocal, engine  # noqa: E402
from goingout.models import User  # noqa: E402
from tools.migrate_usernames import backfill_usernames, main  # noqa: E402


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


def _seed(*accounts: tuple[str, str | None]) -> None:
    with SessionLocal() as session:
        for username, lowercase in accounts:
            session.add(
                User(username=username, username_lowercase=lowercase, hashed_password="test-hash", friends=[], blocked=[])
            )
        session.commit()


def _keys() -> dict[str, str | None]:
    with SessionLocal() as session:
        return {user.username: user.username_lowercase for user in session.query(User)}


def test_backfill_fills_missing_keys_and_reports_conflicts():
    _seed(("Alice", None), ("bob", "bob"), ("BOB", None))

    with SessionLocal() as session:
        report = backfill_usernames(session)

    assert (report.updated, report.skipped, report.errors) == (1, 1, 1)
    assert report.conflicts == ["BOB"]
    assert _keys() == {"Alice": "alice", "bob": "bob", "BOB": None}


def test_dry_run_writes_nothing():
    _seed(("Alice", None))

    with SessionLocal() as session:
        report = backfill_usernames(session, dry_run=True)

    assert report.updated == 1
    assert _keys() == {"Alice": None}


def test_main_exit_codes(capsys):
    _seed(("Alice", None))
    assert main(["--dry-run"]) == 0
    assert "[dry run] Updated: 1" in capsys.readouterr().out

    assert main([]) == 0
    assert _keys() == {"Alice": "alice"}

    _seed(("ALICE", None))
    assert main([]) == 1
    assert "conflict: ALICE" in capsys.readouterr().out
