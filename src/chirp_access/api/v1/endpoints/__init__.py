# src/chirp_access/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .access import router as access_router
from .admin_keys import router as admin_keys_router
from .users import router as users_router

__all__ = [
    "access_router",
    "admin_keys_router",
    "users_router",
]
