"""Canonical row-level rules for the platform.

Admin rules are registered next to the owner rules rather than replacing
them: an administrator keeps every permission of an ordinary user and gains
the elevated ones on top.
"""

from __future__ import annotations

from typing import Any

from chirp_access.core.settings import settings
from chirp_access.models.content import POST_STATUS_APPROVED
from chirp_access.policy.context import AccessContext, row_field
from chirp_access.policy.registry import PolicyRegistry
from chirp_access.policy.types import Operation, Resource

__all__ = ["build_default_registry", "get_default_registry"]


def allow_all(ctx: AccessContext, row: Any) -> bool:
    return True


def is_approved(ctx: AccessContext, row: Any) -> bool:
    return row_field(row, "status") == POST_STATUS_APPROVED


def is_owner(ctx: AccessContext, row: Any) -> bool:
    return ctx.owns(row)


def is_admin(ctx: AccessContext, row: Any) -> bool:
    return ctx.is_admin()


def is_authenticated(ctx: AccessContext, row: Any) -> bool:
    return ctx.is_authenticated


def is_authenticated_owner(ctx: AccessContext, row: Any) -> bool:
    return ctx.is_authenticated and ctx.owns(row)


def parent_post_approved(ctx: AccessContext, row: Any) -> bool:
    return ctx.post_status(row_field(row, "post_id")) == POST_STATUS_APPROVED


def is_unused_key(ctx: AccessContext, row: Any) -> bool:
    # A row without the flag is not known to be unused.
    is_used = row_field(row, "is_used")
    return is_used is not None and not is_used


def build_default_registry(version: str | None = None) -> PolicyRegistry:
    """Build the platform's rule table."""
    registry = PolicyRegistry(version or settings.policy_version)
    R, O = Resource, Operation

    # Posts
    registry.register(R.POST, O.READ, "approved-visible", is_approved,
                      "Anyone can read approved posts")
    registry.register(R.POST, O.READ, "owner-visible", is_owner,
                      "Authors can read their own posts in any status")
    registry.register(R.POST, O.READ, "admin-visible", is_admin,
                      "Admins can read every post")
    registry.register(R.POST, O.CREATE, "owner-create", is_authenticated_owner,
                      "Signed-in users can create posts they own")
    registry.register(R.POST, O.UPDATE, "owner-update", is_owner,
                      "Authors can update their own posts")
    registry.register(R.POST, O.UPDATE, "admin-update", is_admin,
                      "Admins can update every post")
    registry.register(R.POST, O.DELETE, "admin-delete", is_admin,
                      "Admins can delete posts")

    # Profiles
    registry.register(R.PROFILE, O.READ, "all-visible", allow_all,
                      "Profiles are public")
    registry.register(R.PROFILE, (O.CREATE, O.UPDATE), "self-only", is_owner,
                      "Users can only write their own profile")

    # Comments
    registry.register(R.COMMENT, O.READ, "on-approved-post", parent_post_approved,
                      "Comments are visible when their post is approved")
    registry.register(R.COMMENT, O.CREATE, "authenticated", is_authenticated,
                      "Signed-in users can comment")
    registry.register(R.COMMENT, O.UPDATE, "owner-update", is_owner,
                      "Authors can update their own comments")

    # Likes and retweets
    for resource in (R.LIKE, R.RETWEET):
        registry.register(resource, O.READ, "all-visible", allow_all,
                          "Reactions are public")
        registry.register(resource, O.CREATE, "authenticated", is_authenticated,
                          "Signed-in users can react")
        registry.register(resource, (O.UPDATE, O.DELETE), "owner-only", is_owner,
                          "Users can only change their own reactions")

    # Admin keys
    registry.register(R.ADMIN_KEY, O.READ, "unused-only", is_unused_key,
                      "Only unused keys are visible")
    registry.reserve(R.ADMIN_KEY, O.UPDATE,
                     "redemption-only: keys change only through admin key redemption")

    return registry


class _DefaultRegistrySingleton:
    _instance: PolicyRegistry | None = None

    @classmethod
    def get_instance(cls) -> PolicyRegistry:
        if cls._instance is None:
            cls._instance = build_default_registry()
        return cls._instance


def get_default_registry() -> PolicyRegistry:
    """Return the process-wide canonical registry."""
    return _DefaultRegistrySingleton.get_instance()
