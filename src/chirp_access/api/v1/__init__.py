# src/chirp_access/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import access_router, admin_keys_router, users_router

__all__ = [
    "access_router",
    "admin_keys_router",
    "users_router",
]
