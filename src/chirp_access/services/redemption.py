"""Admin key redemption.

Redeeming a key is the only way a regular user becomes an administrator. A
key moves from unused to used exactly once, and in the same transaction the
redeemer's profile is created or promoted. Either both changes are committed
or neither is.
"""

from __future__ import annotations

import logging
from contextlib import AbstractContextManager, nullcontext
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from chirp_access.core.elevated import ElevatedGrant, ElevatedPurpose, elevated, require_grant
from chirp_access.core.security import mask_key_code
from chirp_access.core.settings import settings
from chirp_access.db.session import claim_write_lock
from chirp_access.db.time import utcnow
from chirp_access.models import UserProfile
from chirp_access.services.admin_keys import AdminKeyStore, dialect_insert

__all__ = ["RedemptionWorkflow", "redeem_admin_key"]

logger = logging.getLogger(__name__)


class RedemptionWorkflow:
    """Consumes admin keys and promotes their redeemers.

    On a session with no open transaction, ``redeem`` owns the transaction: it
    opens it with the write lock, commits on success and rolls back otherwise.
    When the caller already has a transaction open, ``redeem`` works inside a
    SAVEPOINT instead. Only the savepoint is rolled back on failure, and the
    caller's commit makes a successful redemption durable.
    """

    def __init__(self, session: Session, default_username: str | None = None) -> None:
        self.session = session
        self.keys = AdminKeyStore(session)
        self.default_username = default_username or settings.default_admin_username

    def redeem(self, key_code: str, user_id: str | None) -> bool:
        """Redeem ``key_code`` for ``user_id``.

        Returns:
            True if the key was unused and now belongs to ``user_id``, who is
            an admin. False if the key is unknown or already used, the caller
            is anonymous, or storage failed (in which case nothing changed).
        """
        user_id = (user_id or "").strip()
        if not key_code or not user_id:
            return False

        masked = mask_key_code(key_code)
        owned = not self.session.in_transaction()
        try:
            if owned:
                claim_write_lock(self.session)
            with self._scope(owned):
                with elevated(ElevatedPurpose.REDEEM_ADMIN_KEY) as grant:
                    claimed = self.keys.mark_used(key_code, user_id, grant)
                    if claimed:
                        self._promote(user_id, grant)
            if owned:
                if claimed:
                    self.session.commit()
                else:
                    self.session.rollback()
        except SQLAlchemyError as err:
            if owned:
                self.session.rollback()
            logger.warning(
                "Admin key %s redemption for %s rolled back: %s", masked, user_id, err
            )
            return False

        if not claimed:
            logger.info("Admin key %s not redeemable for %s", masked, user_id)
            return False
        logger.info("Admin key %s redeemed by %s", masked, user_id)
        return True

    def _scope(self, owned: bool) -> AbstractContextManager:
        # An unclaimed key changed nothing, so releasing the savepoint is harmless.
        return nullcontext() if owned else self.session.begin_nested()

    def _promote(self, user_id: str, grant: ElevatedGrant) -> None:
        require_grant(grant, ElevatedPurpose.REDEEM_ADMIN_KEY)
        now = utcnow()
        insert = dialect_insert(self.session.connection().dialect.name)
        if insert is None:
            self._promote_by_lookup(user_id, now)
            return

        stmt = insert(UserProfile.__table__).values(
            user_id=user_id,
            username=self.default_username,
            is_admin=True,
            created_at=now,
            updated_at=now,
        )
        self.session.execute(
            stmt.on_conflict_do_update(
                index_elements=["user_id"],
                set_={"is_admin": True, "updated_at": now},
            )
        )
        for obj in list(self.session.identity_map.values()):
            if isinstance(obj, UserProfile) and obj.user_id == user_id:
                self.session.expire(obj)

    def _promote_by_lookup(self, user_id: str, now: datetime) -> None:
        profile = self.session.execute(
            select(UserProfile).where(UserProfile.user_id == user_id)
        ).scalar_one_or_none()
        if profile is None:
            self.session.add(
                UserProfile(
                    user_id=user_id,
                    username=self.default_username,
                    is_admin=True,
                    created_at=now,
                    updated_at=now,
                )
            )
        else:
            profile.is_admin = True
            profile.updated_at = now
        self.session.flush()


def redeem_admin_key(session: Session, key_code: str, user_id: str | None) -> bool:
    """Redeem ``key_code`` for ``user_id`` using ``session``."""
    return RedemptionWorkflow(session).redeem(key_code, user_id)
