"""Evaluation context handed to every policy predicate."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from chirp_access.core.identity import IdentityContext
from chirp_access.policy.lookups import PolicyLookups


def row_field(row: Any, name: str) -> Any:
    """Read ``name`` from a mapping or an ORM/attribute-style row."""
    if isinstance(row, Mapping):
        return row.get(name)
    return getattr(row, name, None)


@dataclass(frozen=True)
class AccessContext:
    """Who is acting, and how rules can look up related data."""

    identity: IdentityContext
    lookups: PolicyLookups

    @property
    def user_id(self) -> str | None:
        return self.identity.resolve()

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    def is_admin(self) -> bool:
        """Return the admin flag of the acting user; anonymous callers are never admin."""
        user_id = self.user_id
        if user_id is None:
            return False
        return bool(self.lookups.is_admin(user_id))

    def owns(self, row: Any) -> bool:
        """True when the acting user is the row's owner.

        An anonymous caller owns nothing, even a row whose owner is unset.
        """
        user_id = self.user_id
        return user_id is not None and row_field(row, "user_id") == user_id

    def post_status(self, post_id: Any) -> str | None:
        if post_id is None:
            return None
        return self.lookups.post_status(post_id)
