"""Database session configuration."""

from __future__ import annotations

from collections.abc import Generator
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from chirp_access.core.settings import settings


class Base(DeclarativeBase):
    """Declarative base shared by all ORM models."""


# Ensure model modules are imported so that metadata is populated when create_all runs.
import chirp_access.models  # noqa: E402,F401


# Execution option marking a transaction that will write.
WRITE_LOCK_OPTION = "sqlite_write_lock"


def _serialize_sqlite_writers(engine: Engine) -> None:
    """Let SQLite writer transactions take the write lock up front.

    pysqlite opens transactions lazily, which lets two writers both read a row
    and then race to upgrade their locks. Transactions opened through
    :func:`claim_write_lock` emit ``BEGIN IMMEDIATE`` and queue behind the busy
    timeout; every other transaction is a plain deferred ``BEGIN`` so readers
    never contend for the write lock.
    """

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection: Any, connection_record: Any) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin(conn: Any) -> None:
        if conn.get_execution_options().get(WRITE_LOCK_OPTION):
            conn.exec_driver_sql("BEGIN IMMEDIATE")
        else:
            conn.exec_driver_sql("BEGIN")


def claim_write_lock(session: Session) -> bool:
    """Open the session's transaction as a writer.

    On SQLite this takes the database write lock before the first statement.
    Other backends rely on row locks and are unaffected. Does nothing when the
    session already has a transaction open.

    Returns:
        True if this call opened the transaction.
    """
    if session.in_transaction():
        return False
    session.connection(execution_options={WRITE_LOCK_OPTION: True})
    return True


def build_engine(url: str, **kwargs: Any) -> Engine:
    """Create an engine for ``url`` with the locking behaviour redemption relies on."""
    if url.startswith("sqlite"):
        connect_args = kwargs.pop("connect_args", {})
        connect_args.setdefault("check_same_thread", False)
        connect_args.setdefault("timeout", settings.sqlite_busy_timeout)
        engine = create_engine(url, connect_args=connect_args, **kwargs)
        _serialize_sqlite_writers(engine)
        return engine
    return create_engine(url, pool_pre_ping=True, **kwargs)


engine = build_engine(settings.effective_database_url, echo=settings.sql_debug)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Yield a database session for dependency injection."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables(bind: Engine | None = None) -> None:
    """Create all database tables."""
    Base.metadata.create_all(bind=bind or engine)


def drop_tables(bind: Engine | None = None) -> None:
    """Drop all database tables."""
    Base.metadata.drop_all(bind=bind or engine)
