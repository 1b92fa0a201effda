"""Declarative registry of row-level access rules.

Rules are keyed by ``(resource, operation)``. Several rules may share a key;
the engine ORs them together, so the order in which they were registered only
matters for diagnostics. A key can also be *reserved*: no predicate may ever
be registered for it, which keeps it reachable only through a dedicated
elevated code path.
"""

from __future__ import annotations

import hashlib
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from typing import Any

from chirp_access.core.errors import RegistryError
from chirp_access.policy.context import AccessContext
from chirp_access.policy.types import Operation, PolicyKey, Resource

Predicate = Callable[[AccessContext, Any], bool]


@dataclass(frozen=True)
class Rule:
    """A named predicate gating one operation on one resource."""

    name: str
    resource: Resource
    operation: Operation
    predicate: Predicate
    description: str = ""

    @property
    def key(self) -> PolicyKey:
        return (self.resource, self.operation)


class PolicyRegistry:
    """Versioned, ordered collection of :class:`Rule` objects."""

    def __init__(self, version: str) -> None:
        self.version = version
        self._rules: dict[PolicyKey, list[Rule]] = {}
        self._reserved: dict[PolicyKey, str] = {}

    def register(
        self,
        resource: Resource | str,
        operations: Operation | str | Iterable[Operation | str],
        name: str,
        predicate: Predicate,
        description: str = "",
    ) -> list[Rule]:
        """Register ``predicate`` under ``name`` for each of ``operations``.

        Raises:
            RegistryError: If a key is reserved or already has a rule called ``name``.
        """
        resource = Resource(resource)
        if isinstance(operations, (Operation, str)):
            operations = [operations]
        created = []
        for operation in operations:
            rule = Rule(
                name=name,
                resource=resource,
                operation=Operation(operation),
                predicate=predicate,
                description=description,
            )
            if rule.key in self._reserved:
                raise RegistryError(
                    f"{resource.value}/{rule.operation.value} is reserved: "
                    f"{self._reserved[rule.key]}"
                )
            bucket = self._rules.setdefault(rule.key, [])
            if any(existing.name == name for existing in bucket):
                raise RegistryError(
                    f"rule {name!r} already registered for {resource.value}/{rule.operation.value}"
                )
            bucket.append(rule)
            created.append(rule)
        return created

    def rule(
        self,
        resource: Resource | str,
        *operations: Operation | str,
        name: str,
        description: str = "",
    ) -> Callable[[Predicate], Predicate]:
        """Decorator form of :meth:`register`."""

        def decorator(predicate: Predicate) -> Predicate:
            self.register(resource, operations, name, predicate, description)
            return predicate

        return decorator

    def reserve(self, resource: Resource | str, operation: Operation | str, reason: str) -> None:
        """Forbid general predicates for ``(resource, operation)``."""
        key = (Resource(resource), Operation(operation))
        if self._rules.get(key):
            raise RegistryError(
                f"{key[0].value}/{key[1].value} already has rules and cannot be reserved"
            )
        self._reserved[key] = reason

    def is_reserved(self, resource: Resource | str, operation: Operation | str) -> bool:
        return (Resource(resource), Operation(operation)) in self._reserved

    def rules_for(self, resource: Resource | str, operation: Operation | str) -> tuple[Rule, ...]:
        """Return the rules registered for a key, in registration order."""
        return tuple(self._rules.get((Resource(resource), Operation(operation)), ()))

    def __iter__(self) -> Iterator[Rule]:
        for bucket in self._rules.values():
            yield from bucket

    def __len__(self) -> int:
        return sum(len(bucket) for bucket in self._rules.values())

    def fingerprint(self) -> str:
        """Stable digest of the rule table, for audit logs and cache keys."""
        digest = hashlib.sha256(self.version.encode("utf-8"))
        for rule in self:
            digest.update(
                f"|{rule.resource.value}:{rule.operation.value}:{rule.name}".encode("utf-8")
            )
        for resource, operation in self._reserved:
            digest.update(f"|reserved:{resource.value}:{operation.value}".encode("utf-8"))
        return digest.hexdigest()

    def describe(self) -> list[dict[str, Any]]:
        """Return the rule table as plain dictionaries."""
        entries: list[dict[str, Any]] = [
            {
                "resource": rule.resource.value,
                "operation": rule.operation.value,
                "name": rule.name,
                "description": rule.description,
                "reserved": False,
            }
            for rule in self
        ]
        for (resource, operation), reason in self._reserved.items():
            entries.append(
                {
                    "resource": resource.value,
                    "operation": operation.value,
                    "name": None,
                    "description": reason,
                    "reserved": True,
                }
            )
        return entries
