# src/chirp_access/api/v1/endpoints/users.py
"""Profile and admin status endpoints."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from chirp_access.api.v1.dependencies import IdentityDep, PolicyEngineDep, SessionDep
from chirp_access.models import UserProfile
from chirp_access.schemas.access import (
    AdminStatusResponse,
    ProfileResponse,
    ProfileUpdateRequest,
)
from chirp_access.services.profiles import ProfileService, is_admin

router = APIRouter(prefix="/users", tags=["users"])


def _not_found() -> HTTPException:
    # Denied and missing look the same to the caller.
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")


@router.get("/me/admin", response_model=AdminStatusResponse)
def get_my_admin_status(identity: IdentityDep, db: SessionDep) -> AdminStatusResponse:
    """Report whether the caller is an administrator."""
    user_id = identity.resolve()
    return AdminStatusResponse(user_id=user_id, is_admin=is_admin(db, user_id) if user_id else False)


@router.get("/{user_id}/profile", response_model=ProfileResponse)
def get_profile(
    user_id: str,
    identity: IdentityDep,
    db: SessionDep,
    engine: PolicyEngineDep,
) -> UserProfile:
    """Return a user's public profile."""
    profile = ProfileService(db, engine).get_profile(identity, user_id)
    if profile is None:
        raise _not_found()
    return profile


@router.put("/{user_id}/profile", response_model=ProfileResponse)
def put_profile(
    user_id: str,
    payload: ProfileUpdateRequest,
    identity: IdentityDep,
    db: SessionDep,
    engine: PolicyEngineDep,
) -> UserProfile:
    """Create or update the caller's own profile."""
    profile = ProfileService(db, engine).save_profile(identity, user_id, payload.username)
    if profile is None:
        raise _not_found()
    return profile
