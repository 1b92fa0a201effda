"""Request and response schemas for the access-control API."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from chirp_access.policy.types import Operation, Resource


class RedeemRequest(BaseModel):
    """Admin key submitted for redemption."""

    key_code: str = Field(..., min_length=1, max_length=128, description="Case-sensitive key code")


class RedeemResponse(BaseModel):
    """Outcome of a redemption attempt.

    Unknown, used and failed keys all report ``redeemed = false``.
    """

    redeemed: bool


class AdminStatusResponse(BaseModel):
    """Admin flag of the calling user."""

    user_id: str | None = Field(None, description="Acting user, or null when anonymous")
    is_admin: bool


class ProfileResponse(BaseModel):
    """Public profile fields."""

    user_id: str
    username: str
    is_admin: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProfileUpdateRequest(BaseModel):
    """Profile fields a user may set on their own profile."""

    username: str = Field(..., min_length=1, max_length=64)


class AuthorizeRequest(BaseModel):
    """Question put to the policy engine on behalf of the caller."""

    resource: Resource
    operation: Operation
    row: dict[str, Any] = Field(default_factory=dict, description="Candidate row fields")

    @field_validator("row")
    @classmethod
    def validate_post_id(cls, v: dict[str, Any]) -> dict[str, Any]:
        """Reject a post reference that is not a single id."""
        post_id = v.get("post_id")
        if post_id is None or (isinstance(post_id, (int, str)) and not isinstance(post_id, bool)):
            return v
        raise ValueError("row.post_id must be an integer or string id")


class AuthorizeResponse(BaseModel):
    """Policy decision for the caller."""

    allowed: bool


class PolicyRuleResponse(BaseModel):
    """One entry of the policy table."""

    resource: str
    operation: str
    name: str | None = None
    description: str = ""
    reserved: bool = False


class PolicyTableResponse(BaseModel):
    """The active policy registry."""

    version: str
    fingerprint: str
    rules: list[PolicyRuleResponse]
