"""Data lookups available to policy predicates.

Predicates never query storage directly. They go through a
:class:`PolicyLookups` implementation so the same rules can run against a
database session or against data the caller already holds in memory.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.orm import Session

from chirp_access.core.elevated import ElevatedGrant, ElevatedPurpose, elevated, require_grant
from chirp_access.models import Post, UserProfile


def _read_admin_flag(session: Session, user_id: str, grant: ElevatedGrant) -> bool:
    require_grant(grant, ElevatedPurpose.ADMIN_LOOKUP)
    flag = session.execute(
        select(UserProfile.is_admin).where(UserProfile.user_id == user_id)
    ).scalar_one_or_none()
    return bool(flag)


def lookup_admin_flag(session: Session, user_id: str | None) -> bool:
    """Return ``Profile[user_id].is_admin``, defaulting to False.

    Runs with the admin-lookup grant so it can answer for any user, whatever
    the caller is otherwise allowed to read.
    """
    if not user_id:
        return False
    with elevated(ElevatedPurpose.ADMIN_LOOKUP) as grant:
        return _read_admin_flag(session, user_id, grant)


class PolicyLookups(Protocol):
    """Read-only questions a rule may ask about rows other than its own."""

    def is_admin(self, user_id: str) -> bool: ...

    def post_status(self, post_id: int) -> str | None: ...


class SessionLookups:
    """Lookups backed by a SQLAlchemy session."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def is_admin(self, user_id: str) -> bool:
        return lookup_admin_flag(self.session, user_id)

    def post_status(self, post_id: int) -> str | None:
        return self.session.execute(
            select(Post.status).where(Post.id == post_id)
        ).scalar_one_or_none()


class MappingLookups:
    """Lookups over in-memory data, for callers that already hold the rows."""

    def __init__(
        self,
        admins: Iterable[str] = (),
        post_statuses: Mapping[int, str] | None = None,
    ) -> None:
        self.admins = frozenset(admins)
        self.post_statuses = dict(post_statuses or {})

    def is_admin(self, user_id: str) -> bool:
        return user_id in self.admins

    def post_status(self, post_id: int) -> str | None:
        return self.post_statuses.get(post_id)
