# src/chirp_access/models/profile.py
"""SQLAlchemy model for user profiles."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from chirp_access.db.session import Base
from chirp_access.db.time import utcnow


class UserProfile(Base):
    """Public profile of a platform user.

    ``is_admin`` only ever moves from false to true, either through admin key
    redemption or an external seed.
    """

    __tablename__ = "user_profiles"
    __table_args__ = (Index("idx_user_profiles_user_admin", "user_id", "is_admin"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    username: Mapped[str] = mapped_column(Text, nullable=False)
    is_admin: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
