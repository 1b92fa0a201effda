"""Resource and operation vocabularies shared by the policy modules."""

from __future__ import annotations

from enum import Enum


class Resource(str, Enum):
    """Row types protected by the policy registry."""

    POST = "post"
    PROFILE = "profile"
    COMMENT = "comment"
    LIKE = "like"
    RETWEET = "retweet"
    ADMIN_KEY = "admin_key"


class Operation(str, Enum):
    """Row operations a rule may gate."""

    READ = "read"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


PolicyKey = tuple[Resource, Operation]
