"""Narrow elevated-execution grants.

Some operations must bypass the per-row policies: consuming an admin key and
reading another user's admin flag while evaluating a policy. Each of those
paths opens an :func:`elevated` block for its own purpose and hands the grant
to the code that performs the privileged read or write. Functions that need
the privilege call :func:`require_grant` before touching the data.

There is no global "admin mode": a grant is only valid for the purpose it was
issued for and only while its block is open.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum

from chirp_access.core.errors import ElevatedAccessError

logger = logging.getLogger(__name__)


class ElevatedPurpose(str, Enum):
    """The only operations allowed to run with elevated privileges."""

    REDEEM_ADMIN_KEY = "redeem_admin_key"
    ADMIN_LOOKUP = "admin_lookup"


@dataclass(eq=False)
class ElevatedGrant:
    """Capability handed to privileged code for the duration of one block."""

    purpose: ElevatedPurpose
    active: bool = field(default=True, init=False)


@contextmanager
def elevated(purpose: ElevatedPurpose) -> Iterator[ElevatedGrant]:
    """Open an elevated block for ``purpose``.

    The grant is revoked when the block exits, so it cannot be stashed and
    reused later.
    """
    grant = ElevatedGrant(purpose=ElevatedPurpose(purpose))
    logger.debug("Elevated block opened for %s", grant.purpose.value)
    try:
        yield grant
    finally:
        grant.active = False


def require_grant(grant: object, purpose: ElevatedPurpose) -> None:
    """Raise :class:`ElevatedAccessError` unless ``grant`` is live for ``purpose``."""
    if not isinstance(grant, ElevatedGrant) or not grant.active:
        raise ElevatedAccessError(f"{purpose.value} requires an active elevated grant")
    if grant.purpose is not purpose:
        raise ElevatedAccessError(
            f"grant issued for {grant.purpose.value} cannot be used for {purpose.value}"
        )
