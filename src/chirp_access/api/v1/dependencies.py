"""Shared API dependencies for identity resolution and common services."""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.orm import Session

from chirp_access.core.identity import IdentityContext, current_identity
from chirp_access.core.security import decode_token_subject
from chirp_access.db.session import get_db
from chirp_access.policy import AccessContext, PolicyEngine, SessionLookups, get_policy_engine

# Bearer tokens are optional: anonymous callers still get policy decisions.
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def get_identity(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> IdentityContext:
    """Resolve the identity sources of the current request.

    Raises:
        HTTPException: If a bearer token was presented but cannot be verified.
    """
    subject = None
    if credentials is not None:
        try:
            subject = decode_token_subject(credentials.credentials)
        except JWTError as err:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Could not validate credentials",
            ) from err
    return current_identity(subject)


IdentityDep = Annotated[IdentityContext, Depends(get_identity)]


def require_user_id(identity: IdentityDep) -> str:
    """Return the acting user id, rejecting anonymous callers."""
    user_id = identity.resolve()
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    return user_id


CurrentUserIdDep = Annotated[str, Depends(require_user_id)]


def get_policy_engine_dep() -> PolicyEngine:
    return get_policy_engine()


PolicyEngineDep = Annotated[PolicyEngine, Depends(get_policy_engine_dep)]


def get_access_context(identity: IdentityDep, db: SessionDep) -> AccessContext:
    """Bind the request identity to database-backed policy lookups."""
    return AccessContext(identity=identity, lookups=SessionLookups(db))


AccessContextDep = Annotated[AccessContext, Depends(get_access_context)]
