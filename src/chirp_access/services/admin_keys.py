"""Persistence helpers for admin keys."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from chirp_access.core.elevated import ElevatedGrant, ElevatedPurpose, require_grant
from chirp_access.core.security import mask_key_code
from chirp_access.db.time import utcnow
from chirp_access.models import AdminKey

__all__ = ["AdminKeyStore", "dialect_insert"]

logger = logging.getLogger(__name__)


def dialect_insert(dialect_name: str):
    """Return the ``insert`` construct with ``ON CONFLICT`` support, if the dialect has one."""
    if dialect_name == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif dialect_name == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        return None
    return insert


class AdminKeyStore:
    """Reads and transitions admin key rows.

    The store never commits; the caller owns the transaction.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, key_code: str) -> AdminKey | None:
        """Return the key with ``key_code`` whatever its state."""
        return self.session.execute(
            select(AdminKey).where(AdminKey.key_code == key_code)
        ).scalar_one_or_none()

    def lookup_unused(self, key_code: str) -> AdminKey | None:
        """Return the key if it exists and has not been redeemed yet."""
        return self.session.execute(
            select(AdminKey).where(
                AdminKey.key_code == key_code,
                AdminKey.is_used.is_(False),
            )
        ).scalar_one_or_none()

    def mark_used(self, key_code: str, used_by: str, grant: ElevatedGrant) -> bool:
        """Claim an unused key for ``used_by``.

        The check and the transition are one conditional UPDATE, so when
        several callers race for the same key the database lets exactly one
        of them change the row.

        Returns:
            True if this call claimed the key; False if it is absent or already used.

        Raises:
            ElevatedAccessError: If ``grant`` is not a live redemption grant.
        """
        require_grant(grant, ElevatedPurpose.REDEEM_ADMIN_KEY)
        result = self.session.execute(
            update(AdminKey)
            .where(AdminKey.key_code == key_code, AdminKey.is_used.is_(False))
            .values(is_used=True, used_by=used_by, used_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        claimed = result.rowcount == 1
        if claimed:
            for obj in list(self.session.identity_map.values()):
                if isinstance(obj, AdminKey) and obj.key_code == key_code:
                    self.session.expire(obj)
        return claimed

    def seed(self, key_codes: Iterable[str]) -> int:
        """Insert any of ``key_codes`` that do not exist yet.

        Existing codes are left untouched, used or not, so seeding can be
        repeated safely.

        Returns:
            Number of keys actually inserted.
        """
        codes = list(dict.fromkeys(code.strip() for code in key_codes if code and code.strip()))
        if not codes:
            return 0

        now = utcnow()
        rows = [{"key_code": code, "is_used": False, "created_at": now} for code in codes]
        connection = self.session.connection()
        insert = dialect_insert(connection.dialect.name)
        if insert is not None:
            stmt = insert(AdminKey.__table__).values(rows).on_conflict_do_nothing(
                index_elements=["key_code"]
            )
            inserted = connection.execute(stmt).rowcount
        else:
            inserted = 0
            for row in rows:
                if self.get(row["key_code"]) is not None:
                    continue
                try:
                    with self.session.begin_nested():
                        self.session.add(AdminKey(**row))
                except IntegrityError:
                    continue
                inserted += 1

        logger.info(
            "Seeded %d admin key(s); %d already present: %s",
            inserted,
            len(codes) - inserted,
            ", ".join(mask_key_code(code) for code in codes),
        )
        return inserted
