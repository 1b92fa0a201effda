# src/chirp_access/models/admin_key.py
"""SQLAlchemy model for one-time admin keys."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from chirp_access.db.session import Base
from chirp_access.db.time import utcnow


class AdminKey(Base):
    """Key that promotes its redeemer to administrator.

    Keys start unused and flip to used exactly once; there is no way back.
    ``key_code`` comparisons are case-sensitive.
    """

    __tablename__ = "admin_keys"
    __table_args__ = (Index("idx_admin_keys_code_used", "key_code", "is_used"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    key_code: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    is_used: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    used_by: Mapped[str | None] = mapped_column(Text, nullable=True)
    used_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
