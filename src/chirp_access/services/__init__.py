# src/chirp_access/services/__init__.py
"""Business logic services for the Chirp access layer."""

from .admin_keys import AdminKeyStore
from .profiles import ProfileService, is_admin
from .redemption import RedemptionWorkflow, redeem_admin_key

__all__ = [
    "AdminKeyStore",
    "ProfileService",
    "RedemptionWorkflow",
    "is_admin",
    "redeem_admin_key",
]
