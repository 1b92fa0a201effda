"""Resolution of the acting identity for a call.

The acting user is derived per call from two sources, in order of precedence:

1. the ``sub`` claim of a verified bearer token, when the caller presented one;
2. the ambient identity set with :func:`set_user_context` for the current call
   scope.

When neither is available the call is anonymous. The ambient identity lives in
a :class:`contextvars.ContextVar`, so each thread and each asyncio task sees
its own value and nothing set by one request is visible to another.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar, Token
from dataclasses import dataclass

__all__ = [
    "IdentityContext",
    "current_identity",
    "get_current_user_id",
    "reset_user_context",
    "set_user_context",
    "user_context",
]

_ambient_user_id: ContextVar[str | None] = ContextVar("chirp_ambient_user_id", default=None)


def _normalize(user_id: str | None) -> str | None:
    # Empty strings count as "not set".
    if user_id is None:
        return None
    user_id = user_id.strip()
    return user_id or None


@dataclass(frozen=True)
class IdentityContext:
    """Identity sources available to a single call."""

    token_subject: str | None = None
    ambient_user_id: str | None = None

    def resolve(self) -> str | None:
        """Return the acting user id, or ``None`` for an anonymous caller."""
        return _normalize(self.token_subject) or _normalize(self.ambient_user_id)

    @property
    def is_anonymous(self) -> bool:
        return self.resolve() is None

    @classmethod
    def anonymous(cls) -> IdentityContext:
        return cls()

    @classmethod
    def for_user(cls, user_id: str) -> IdentityContext:
        """Build a context for a caller already known to be ``user_id``."""
        return cls(token_subject=user_id)


def set_user_context(user_id: str | None) -> Token[str | None]:
    """Set the ambient identity for the current call scope.

    Returns the token needed by :func:`reset_user_context` to restore the
    previous value.
    """
    return _ambient_user_id.set(_normalize(user_id))


def reset_user_context(token: Token[str | None]) -> None:
    """Restore the ambient identity that was active before ``token`` was set."""
    _ambient_user_id.reset(token)


@contextmanager
def user_context(user_id: str | None) -> Iterator[IdentityContext]:
    """Run a block with ``user_id`` as the ambient identity."""
    token = set_user_context(user_id)
    try:
        yield current_identity()
    finally:
        reset_user_context(token)


def get_current_user_id() -> str | None:
    """Return the ambient identity of the current call scope, if any."""
    return _ambient_user_id.get()


def current_identity(token_subject: str | None = None) -> IdentityContext:
    """Snapshot the identity sources for the current call."""
    return IdentityContext(
        token_subject=_normalize(token_subject),
        ambient_user_id=get_current_user_id(),
    )
