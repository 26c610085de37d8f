"""Command-line backfill of ``users.username_lowercase`` for accounts created before it existed."""
from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass, field

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from goingout.database import SessionLocal
from goingout.models import User

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class MigrationReport:
    updated: int = 0
    skipped: int = 0
    errors: int = 0
    conflicts: list[str] = field(default_factory=list)


def backfill_usernames(db: Session, *, dry_run: bool = False) -> MigrationReport:
    """Fill in missing lowercase usernames.

    Accounts that already have one, or have no username, are skipped. Two
    accounts that would share a lowercase name are reported as errors and left
    untouched.
    """

    report = MigrationReport()
    users = list(db.scalars(select(User).order_by(User.created_at.asc())))
    taken = {user.username_lowercase for user in users if user.username_lowercase}

    for user in users:
        if user.username_lowercase or not (user.username or "").strip():
            report.skipped += 1
            continue
        key = user.username.strip().lower()
        if key in taken:
            report.errors += 1
            report.conflicts.append(user.username)
            logger.warning("Cannot backfill %s: lowercase name %r already in use", user.id, key)
            continue
        taken.add(key)
        report.updated += 1
        if not dry_run:
            user.username_lowercase = key

    if dry_run:
        db.rollback()
        return report

    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    return report


def _print_report(report: MigrationReport, *, dry_run: bool) -> None:
    prefix = "[dry run] " if dry_run else ""
    print(f"{prefix}Updated: {report.updated} | Skipped: {report.skipped} | Errors: {report.errors}")
    for username in report.conflicts:
        print(f"  conflict: {username}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Backfill lowercase usernames used for search and friend lists.")
    parser.add_argument("--dry-run", action="store_true", help="Report what would change without writing.")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    with SessionLocal() as db:
        try:
            report = backfill_usernames(db, dry_run=args.dry_run)
        except SQLAlchemyError as exc:
            print(f"Migration failed: {exc}", file=sys.stderr)
            return 2
    _print_report(report, dry_run=args.dry_run)
    return 1 if report.errors else 0


if __name__ == "__main__":
    raise SystemExit(main())
