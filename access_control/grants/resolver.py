"""
Policy resolution.

Answers whether an action on a resource is permitted for an ordered set of
roles. Roles are tried in the order given and, within a grant, policies in
insertion order; the first matching policy wins. A policy action subsumes a
request when:

- both are the same action,
- the policy scope is ``any`` and the verbs agree (``read:any`` covers
  ``read:own``),
- the policy verb is ``*`` and the scopes agree,
- the policy is ``*:any``, which covers every action.

Absence of a matching grant or policy is a denial, never an error.
"""

from typing import Any, Iterable, Optional, Sequence

from shared.logging import get_logger
from .models import WILDCARD, SCOPE_ANY, Grant, GrantAction, PermissionResult

logger = get_logger("access_control.resolver")


def policy_matches(policy_action: GrantAction, requested: GrantAction) -> bool:
    """Whether a stored policy action covers the requested action."""
    if policy_action == requested:
        return True
    if policy_action == GrantAction.ALL_ANY:
        return True
    if policy_action.scope == SCOPE_ANY and policy_action.verb == requested.verb:
        return True
    if policy_action.verb == WILDCARD and policy_action.scope == requested.scope:
        return True
    return False


def find_grant(grants: Iterable[Grant], role: str, resource: str) -> Optional[Grant]:
    for grant in grants:
        if grant.role == role and grant.resource == resource:
            return grant
    return None


def resolve(
    grants: Sequence[Grant],
    roles: Iterable[str],
    action: Any,
    resource: str
) -> PermissionResult:
    """Resolve ``action`` on ``resource`` for ``roles``; never mutates ``grants``."""
    requested = GrantAction.parse(action)
    if requested is None:
        logger.debug("Unknown action denied", action=action, resource=resource)
        return PermissionResult.denied()

    for role in roles:
        grant = find_grant(grants, role, resource)
        if grant is None:
            continue

        for policy in grant.policies:
            if policy_matches(policy.action, requested):
                logger.debug(
                    "Permission granted",
                    role=role,
                    resource=resource,
                    requested=requested.value,
                    matched=policy.action.value
                )
                return PermissionResult(
                    granted=True,
                    metadata=policy.metadata.model_copy(deep=True),
                    role=role,
                    action=policy.action
                )

    logger.debug("Permission denied", resource=resource, requested=requested.value)
    return PermissionResult.denied()
