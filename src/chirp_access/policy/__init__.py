# src/chirp_access/policy/__init__.py
"""Row-level access policies: registry, rules and evaluation."""

from .context import AccessContext, row_field
from .engine import Decision, PolicyEngine, get_policy_engine
from .lookups import MappingLookups, PolicyLookups, SessionLookups, lookup_admin_flag
from .registry import PolicyRegistry, Rule
from .rules import build_default_registry, get_default_registry
from .types import Operation, Resource

__all__ = [
    "AccessContext", "row_field",
    "Decision", "PolicyEngine", "get_policy_engine",
    "MappingLookups", "PolicyLookups", "SessionLookups", "lookup_admin_flag",
    "PolicyRegistry", "Rule",
    "build_default_registry", "get_default_registry",
    "Operation", "Resource",
]
