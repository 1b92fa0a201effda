# src/chirp_access/api/v1/endpoints/access.py
"""Policy decision and policy table endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from chirp_access.api.v1.dependencies import AccessContextDep, PolicyEngineDep
from chirp_access.schemas.access import (
    AuthorizeRequest,
    AuthorizeResponse,
    PolicyRuleResponse,
    PolicyTableResponse,
)

router = APIRouter(tags=["access"])


@router.post("/authorize", response_model=AuthorizeResponse)
def authorize(
    payload: AuthorizeRequest,
    ctx: AccessContextDep,
    engine: PolicyEngineDep,
) -> AuthorizeResponse:
    """Ask whether the caller may perform an operation on a row.

    Used by the content service before every read or write it performs.
    """
    allowed = engine.authorize(payload.resource, payload.operation, ctx, payload.row)
    return AuthorizeResponse(allowed=allowed)


@router.get("/policies", response_model=PolicyTableResponse)
async def list_policies(engine: PolicyEngineDep) -> PolicyTableResponse:
    """Return the active policy table with its version and fingerprint."""
    registry = engine.registry
    return PolicyTableResponse(
        version=registry.version,
        fingerprint=registry.fingerprint(),
        rules=[PolicyRuleResponse(**entry) for entry in registry.describe()],
    )
