"""Exception types raised by the access-control core."""

from __future__ import annotations


class AccessError(Exception):
    """Base class for access-control failures."""


class PolicyEvaluationError(AccessError):
    """A rule could not be evaluated.

    Raised instead of returning a decision so that evaluation faults are never
    mistaken for an ordinary denial.
    """

    def __init__(self, rule_name: str, message: str) -> None:
        self.rule_name = rule_name
        super().__init__(f"{rule_name}: {message}")


class RegistryError(AccessError):
    """Invalid change to a policy registry."""


class ElevatedAccessError(AccessError):
    """An elevated operation was attempted without a matching grant."""
