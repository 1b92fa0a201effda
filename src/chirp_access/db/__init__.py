# src/chirp_access/db/__init__.py
"""Database configuration and utilities."""

from .session import SessionLocal, build_engine, claim_write_lock, get_db

__all__ = ["get_db", "build_engine", "claim_write_lock", "SessionLocal"]
