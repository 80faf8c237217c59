"""
Access-control grant evaluator.

Decides whether a role, or a user mapped to roles, may perform an action
on a resource and which attributes of the resource it may see. It
provides:

- grants: Grant model, GrantStore and the policy resolver.
- filtering: Attribute projection of resource objects.
- sync: GrantSynchronizer bridging to an external persistence provider.
- roles: RoleMapper interface and in-memory RoleAssignment.
- providers: In-memory and Redis persistence providers.
- controller: AccessControl and UserAccessControl, the public surface.

Guidelines:
- Evaluation is synchronous and never raises for unknown roles,
  resources or actions; absence is denial.
- Persistence is owned by the synchronizer; failures roll back to the
  last known-good grants.
"""

from .controller import AccessControl, GrantBuilder, PermissionQuery, UserAccessControl
from .filtering import filter_attributes, is_attribute_allowed
from .grants import (
    Grant, GrantAction, GrantStore, Policy, PolicyMetadata, PermissionResult,
    coerce_grants, resolve
)
from .roles import RoleAssignment, RoleMapper
from .sync import GrantSynchronizer

__version__ = "1.0.0"

__all__ = [
    "AccessControl",
    "Grant",
    "GrantAction",
    "GrantBuilder",
    "GrantStore",
    "GrantSynchronizer",
    "PermissionQuery",
    "PermissionResult",
    "Policy",
    "PolicyMetadata",
    "RoleAssignment",
    "RoleMapper",
    "UserAccessControl",
    "coerce_grants",
    "filter_attributes",
    "is_attribute_allowed",
    "resolve",
]
