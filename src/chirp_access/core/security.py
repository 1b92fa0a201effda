"""Bearer token helpers built on python-jose."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from chirp_access.core.settings import settings

__all__ = ["JWTError", "create_access_token", "decode_token_subject", "mask_key_code"]


def create_access_token(subject: str, extra_claims: dict[str, str] | None = None) -> str:
    """Create a JWT access token whose ``sub`` claim is the user id."""
    to_encode: dict[str, object] = {"sub": subject}
    if extra_claims:
        to_encode.update(extra_claims)
    expire = datetime.now(UTC) + timedelta(minutes=settings.access_token_expire_minutes)
    to_encode["exp"] = expire
    encoded_jwt: str = jwt.encode(
        to_encode,
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )
    return encoded_jwt


def decode_token_subject(token: str) -> str:
    """Verify ``token`` and return its ``sub`` claim.

    Raises:
        JWTError: If the token is invalid, expired or carries no subject.
    """
    payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    subject = payload.get("sub")
    if not isinstance(subject, str) or not subject.strip():
        raise JWTError("Token has no subject")
    return subject


def mask_key_code(key_code: str) -> str:
    """Return a log-safe rendering of an admin key code."""
    if len(key_code) <= 4:
        return "****"
    return f"{key_code[:4]}****"
