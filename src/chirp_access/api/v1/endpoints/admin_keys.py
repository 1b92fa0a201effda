# src/chirp_access/api/v1/endpoints/admin_keys.py
"""Admin key redemption endpoint."""

from __future__ import annotations

from fastapi import APIRouter

from chirp_access.api.v1.dependencies import CurrentUserIdDep, SessionDep
from chirp_access.schemas.access import RedeemRequest, RedeemResponse
from chirp_access.services.redemption import RedemptionWorkflow

router = APIRouter(prefix="/admin-keys", tags=["admin"])


@router.post("/redeem", response_model=RedeemResponse)
def redeem_key(
    payload: RedeemRequest,
    user_id: CurrentUserIdDep,
    db: SessionDep,
) -> RedeemResponse:
    """Redeem an admin key for the authenticated caller.

    Unknown keys, used keys and storage failures all answer
    ``{"redeemed": false}`` so callers cannot tell which keys exist.
    """
    redeemed = RedemptionWorkflow(db).redeem(payload.key_code, user_id)
    return RedeemResponse(redeemed=redeemed)
