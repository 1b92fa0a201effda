# src/chirp_access/schemas/__init__.py
"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .access import (
    AdminStatusResponse,
    AuthorizeRequest,
    AuthorizeResponse,
    PolicyRuleResponse,
    PolicyTableResponse,
    ProfileResponse,
    ProfileUpdateRequest,
    RedeemRequest,
    RedeemResponse,
)

__all__ = [
    "AdminStatusResponse",
    "AuthorizeRequest", "AuthorizeResponse",
    "PolicyRuleResponse", "PolicyTableResponse",
    "ProfileResponse", "ProfileUpdateRequest",
    "RedeemRequest", "RedeemResponse",
]
