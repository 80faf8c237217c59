"""
Grants package.

Defines the grant model, the in-memory grant store and the policy
resolution algorithm.

Modules of interest:
- models: GrantAction, PolicyMetadata, Policy, Grant and PermissionResult.
- store: GrantStore with per (role, resource) uniqueness and locking.
- resolver: Matching of requested actions against stored policies.
"""

from .models import (
    Grant, GrantAction, Policy, PolicyMetadata, PermissionResult,
    coerce_grants, dump_grants, grants_to_mapping
)
from .resolver import policy_matches, resolve
from .store import GrantStore

__all__ = [
    "Grant",
    "GrantAction",
    "GrantStore",
    "Policy",
    "PolicyMetadata",
    "PermissionResult",
    "coerce_grants",
    "dump_grants",
    "grants_to_mapping",
    "policy_matches",
    "resolve",
]
