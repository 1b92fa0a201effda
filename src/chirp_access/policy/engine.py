"""Row-level authorization decisions.

A request is allowed when at least one rule registered for its
``(resource, operation)`` evaluates true; with no matching rule the answer is
deny. Every matching rule runs on every call, so the recorded decision always
lists all the grounds on which access was granted.

Evaluation is read-only. A predicate that raises is never treated as a plain
denial: the error is re-raised as :class:`PolicyEvaluationError` so callers
fail closed *and* see that something broke.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, TypeVar

from chirp_access.core.errors import PolicyEvaluationError
from chirp_access.policy.context import AccessContext
from chirp_access.policy.registry import PolicyRegistry
from chirp_access.policy.rules import get_default_registry
from chirp_access.policy.types import Operation, Resource

logger = logging.getLogger(__name__)

RowT = TypeVar("RowT")


@dataclass(frozen=True)
class Decision:
    """Outcome of evaluating one request."""

    resource: Resource
    operation: Operation
    allowed: bool
    granted_by: tuple[str, ...] = field(default_factory=tuple)
    evaluated: tuple[str, ...] = field(default_factory=tuple)


class PolicyEngine:
    """Evaluates a :class:`PolicyRegistry` against an access context and a row."""

    def __init__(self, registry: PolicyRegistry | None = None) -> None:
        self.registry = registry if registry is not None else get_default_registry()

    def explain(
        self,
        resource: Resource | str,
        operation: Operation | str,
        context: AccessContext,
        row: Any,
    ) -> Decision:
        """Evaluate every matching rule and report which ones granted access.

        Raises:
            PolicyEvaluationError: If any predicate raises.
        """
        resource = Resource(resource)
        operation = Operation(operation)
        rules = self.registry.rules_for(resource, operation)

        granted: list[str] = []
        for rule in rules:
            try:
                result = rule.predicate(context, row)
            except PolicyEvaluationError:
                raise
            except Exception as err:
                logger.error(
                    "Policy rule %s failed for %s/%s: %s",
                    rule.name,
                    resource.value,
                    operation.value,
                    err,
                )
                raise PolicyEvaluationError(rule.name, str(err) or type(err).__name__) from err
            if result:
                granted.append(rule.name)

        decision = Decision(
            resource=resource,
            operation=operation,
            allowed=bool(granted),
            granted_by=tuple(granted),
            evaluated=tuple(rule.name for rule in rules),
        )
        logger.debug(
            "%s/%s for %s: %s (granted by %s)",
            resource.value,
            operation.value,
            context.user_id or "anonymous",
            "allow" if decision.allowed else "deny",
            ", ".join(decision.granted_by) or "nothing",
        )
        return decision

    def authorize(
        self,
        resource: Resource | str,
        operation: Operation | str,
        context: AccessContext,
        row: Any,
    ) -> bool:
        """Return True if ``context`` may perform ``operation`` on ``row``."""
        return self.explain(resource, operation, context, row).allowed

    def filter(
        self,
        resource: Resource | str,
        operation: Operation | str,
        context: AccessContext,
        rows: Iterable[RowT],
    ) -> list[RowT]:
        """Return the subset of ``rows`` the context may access."""
        return [row for row in rows if self.authorize(resource, operation, context, row)]


class _PolicyEngineSingleton:
    _instance: PolicyEngine | None = None

    @classmethod
    def get_instance(cls) -> PolicyEngine:
        if cls._instance is None:
            cls._instance = PolicyEngine()
        return cls._instance


def get_policy_engine() -> PolicyEngine:
    """Return the engine bound to the canonical registry."""
    return _PolicyEngineSingleton.get_instance()
