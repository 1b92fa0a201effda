# src/chirp_access/main.py
"""Main entry point for the Chirp access service."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from chirp_access.api.v1 import access_router, admin_keys_router, users_router
from chirp_access.core.errors import PolicyEvaluationError
from chirp_access.core.logging import configure_logging
from chirp_access.core.settings import settings
from chirp_access.policy import get_default_registry

logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Chirp Access API",
    description="Row-level access control and admin key redemption",
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

# Include API routers
app.include_router(access_router, prefix="/api/v1")
app.include_router(admin_keys_router, prefix="/api/v1")
app.include_router(users_router, prefix="/api/v1")


@app.exception_handler(PolicyEvaluationError)
async def policy_evaluation_error_handler(
    request: Request, exc: PolicyEvaluationError
) -> JSONResponse:
    """Fail closed without exposing rule internals."""
    logger.error("Policy evaluation failed on %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


@app.on_event("startup")
async def on_startup() -> None:
    configure_logging()
    registry = get_default_registry()
    logger.info(
        "Policy registry %s loaded with %d rules (fingerprint %s)",
        registry.version,
        len(registry),
        registry.fingerprint()[:12],
    )


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("chirp_access.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
