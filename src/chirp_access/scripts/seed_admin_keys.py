# src/chirp_access/scripts/seed_admin_keys.py
"""Create tables if needed and insert admin keys that do not exist yet."""
from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from chirp_access.core.logging import configure_logging
from chirp_access.core.settings import settings
from chirp_access.db.session import build_engine, create_tables
from chirp_access.services.admin_keys import AdminKeyStore


def seed_admin_keys(db_url: str, codes: Sequence[str], *, create: bool = False) -> int:
    """Seed ``codes`` into the database at ``db_url``; return how many were new."""
    engine = build_engine(db_url)
    try:
        if create:
            create_tables(engine)
        session = sessionmaker(bind=engine, autoflush=False)()
        try:
            inserted = AdminKeyStore(session).seed(codes)
            session.commit()
        finally:
            session.close()
    finally:
        engine.dispose()
    return inserted


def main(argv: Sequence[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Seed one-time admin keys")
    parser.add_argument(
        "--code",
        action="append",
        dest="codes",
        default=None,
        help="Key code to seed (repeatable). Defaults to ADMIN_KEY_SEED.",
    )
    parser.add_argument(
        "--url",
        default=None,
        help="Override database URL (defaults to effective settings URL)",
    )
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create missing tables before seeding (development databases only).",
    )
    args = parser.parse_args(argv)

    configure_logging()
    codes = args.codes or settings.admin_key_seed
    try:
        inserted = seed_admin_keys(
            args.url or settings.effective_database_url,
            codes,
            create=args.create_tables,
        )
    except SQLAlchemyError as exc:
        print(f"[seed_admin_keys] ERROR: {exc}", file=sys.stderr)
        sys.exit(1)
    print(f"[seed_admin_keys] inserted {inserted} of {len(codes)} key(s)")


if __name__ == "__main__":
    main()
