# src/chirp_access/db/time.py
"""Timestamp helpers shared by models and services."""

from datetime import UTC, datetime


def utcnow() -> datetime:
    """Current time as an aware UTC datetime (column defaults and audit stamps)."""
    return datetime.now(UTC)
