"""Profile reads and writes behind the row-level policies."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from chirp_access.core.identity import IdentityContext, get_current_user_id
from chirp_access.db.session import claim_write_lock
from chirp_access.models import UserProfile
from chirp_access.policy import (
    AccessContext,
    Operation,
    PolicyEngine,
    Resource,
    SessionLookups,
    get_policy_engine,
    lookup_admin_flag,
)

__all__ = ["ProfileService", "is_admin"]


def is_admin(session: Session, identity: str | None = None) -> bool:
    """Return whether ``identity`` is an administrator.

    Defaults to the ambient identity of the current call when ``identity`` is
    not given. Unknown and anonymous users are never admins.
    """
    user_id = identity if identity is not None else get_current_user_id()
    return lookup_admin_flag(session, user_id)


class ProfileService:
    """Profile operations checked against the policy engine.

    Denials come back as ``None``, the same as a missing profile.
    """

    def __init__(self, session: Session, engine: PolicyEngine | None = None) -> None:
        self.session = session
        self.engine = engine if engine is not None else get_policy_engine()

    def access_context(self, identity: IdentityContext) -> AccessContext:
        return AccessContext(identity=identity, lookups=SessionLookups(self.session))

    def _load(self, user_id: str) -> UserProfile | None:
        return self.session.execute(
            select(UserProfile).where(UserProfile.user_id == user_id)
        ).scalar_one_or_none()

    def get_profile(self, identity: IdentityContext, user_id: str) -> UserProfile | None:
        """Return the profile of ``user_id`` if it exists and may be read."""
        profile = self._load(user_id)
        if profile is None:
            return None
        ctx = self.access_context(identity)
        if not self.engine.authorize(Resource.PROFILE, Operation.READ, ctx, profile):
            return None
        return profile

    def save_profile(
        self, identity: IdentityContext, user_id: str, username: str
    ) -> UserProfile | None:
        """Create or rename the profile of ``user_id``.

        Never touches ``is_admin``: promotion only happens through admin key
        redemption.
        """
        opened = claim_write_lock(self.session)
        ctx = self.access_context(identity)
        profile = self._load(user_id)
        if profile is None:
            candidate = {"user_id": user_id, "username": username}
            allowed = self.engine.authorize(Resource.PROFILE, Operation.CREATE, ctx, candidate)
        else:
            allowed = self.engine.authorize(Resource.PROFILE, Operation.UPDATE, ctx, profile)
        if not allowed:
            if opened:
                self.session.rollback()
            return None

        if profile is None:
            profile = UserProfile(user_id=user_id, username=username, is_admin=False)
            self.session.add(profile)
        else:
            profile.username = username

        self.session.commit()
        self.session.refresh(profile)
        return profile
