"""
Access-control controllers.

``AccessControl`` owns a GrantStore, authors grants into it, answers
role-based permission queries and, when a GrantSynchronizer is attached,
loads and commits grants through it. ``UserAccessControl`` answers the same
queries for users by way of a RoleMapper.
"""

import asyncio
from typing import Any, Callable, Dict, Hashable, Iterable, List, Optional

from shared.logging import get_logger, reset_subject, set_subject
from shared.errors import SynchronizerNotConfiguredError
from shared.metrics import AccessControlMetrics
from .grants.models import (
    Grant, GrantAction, GrantsInput, MetadataInput, PermissionResult
)
from .grants.resolver import resolve
from .grants.store import GrantStore
from .roles.assignment import RoleAssignment, RoleMapper
from .sync.synchronizer import GrantSynchronizer


class GrantBuilder:
    """Chainable authoring handle for one role."""

    def __init__(self, controller: "AccessControl", role: str):
        self.controller = controller
        self.role = role

    def authorize(self, action: GrantAction, resource: str, metadata: MetadataInput = None) -> "GrantBuilder":
        self.controller._store.upsert_policy(self.role, resource, action, metadata)
        return self

    def grant(self, role: str) -> "GrantBuilder":
        """Continue the chain for another role."""
        return self.controller.grant(role)

    def create_own(self, resource: str, metadata: MetadataInput = None) -> "GrantBuilder":
        return self.authorize(GrantAction.CREATE_OWN, resource, metadata)

    def create_any(self, resource: str, metadata: MetadataInput = None) -> "GrantBuilder":
        return self.authorize(GrantAction.CREATE_ANY, resource, metadata)

    def read_own(self, resource: str, metadata: MetadataInput = None) -> "GrantBuilder":
        return self.authorize(GrantAction.READ_OWN, resource, metadata)

    def read_any(self, resource: str, metadata: MetadataInput = None) -> "GrantBuilder":
        return self.authorize(GrantAction.READ_ANY, resource, metadata)

    def update_own(self, resource: str, metadata: MetadataInput = None) -> "GrantBuilder":
        return self.authorize(GrantAction.UPDATE_OWN, resource, metadata)

    def update_any(self, resource: str, metadata: MetadataInput = None) -> "GrantBuilder":
        return self.authorize(GrantAction.UPDATE_ANY, resource, metadata)

    def delete_own(self, resource: str, metadata: MetadataInput = None) -> "GrantBuilder":
        return self.authorize(GrantAction.DELETE_OWN, resource, metadata)

    def delete_any(self, resource: str, metadata: MetadataInput = None) -> "GrantBuilder":
        return self.authorize(GrantAction.DELETE_ANY, resource, metadata)

    def all_any(self, resource: str, metadata: MetadataInput = None) -> "GrantBuilder":
        return self.authorize(GrantAction.ALL_ANY, resource, metadata)


class PermissionQuery:
    """Per-action permission predicates for a fixed subject."""

    def __init__(self, evaluate: Callable[[Any, str], PermissionResult]):
        self._evaluate = evaluate

    def perform(self, action: Any, resource: str) -> PermissionResult:
        return self._evaluate(action, resource)

    def create_own(self, resource: str) -> PermissionResult:
        return self.perform(GrantAction.CREATE_OWN, resource)

    def create_any(self, resource: str) -> PermissionResult:
        return self.perform(GrantAction.CREATE_ANY, resource)

    def read_own(self, resource: str) -> PermissionResult:
        return self.perform(GrantAction.READ_OWN, resource)

    def read_any(self, resource: str) -> PermissionResult:
        return self.perform(GrantAction.READ_ANY, resource)

    def update_own(self, resource: str) -> PermissionResult:
        return self.perform(GrantAction.UPDATE_OWN, resource)

    def update_any(self, resource: str) -> PermissionResult:
        return self.perform(GrantAction.UPDATE_ANY, resource)

    def delete_own(self, resource: str) -> PermissionResult:
        return self.perform(GrantAction.DELETE_OWN, resource)

    def delete_any(self, resource: str) -> PermissionResult:
        return self.perform(GrantAction.DELETE_ANY, resource)

    def all_any(self, resource: str) -> PermissionResult:
        return self.perform(GrantAction.ALL_ANY, resource)


class AccessControl:
    """Role-based access controller."""

    def __init__(
        self,
        grants: GrantsInput = None,
        *,
        synchronizer: Optional[GrantSynchronizer] = None,
        metrics: Optional[AccessControlMetrics] = None
    ):
        self.logger = get_logger("access_control.controller")
        self._store = GrantStore(grants)
        self.synchronizer = synchronizer
        self.metrics = metrics

    # Authoring

    def grant(self, role: str) -> GrantBuilder:
        return GrantBuilder(self, role)

    def authorize(
        self,
        role: str,
        action: GrantAction,
        resource: str,
        metadata: MetadataInput = None
    ) -> GrantBuilder:
        """Create or replace the policy for (role, resource, action)."""
        return self.grant(role).authorize(action, resource, metadata)

    def lock(self) -> "AccessControl":
        self._store.lock()
        return self

    @property
    def is_locked(self) -> bool:
        return self._store.is_locked

    # Queries

    def can(self, role: str) -> PermissionQuery:
        return PermissionQuery(lambda action, resource: self._evaluate([role], action, resource))

    def check(self, role: str, action: Any, resource: str) -> PermissionResult:
        return self._evaluate([role], action, resource)

    def get_metadata(self, role: str, resource: str, action: Any) -> PermissionResult:
        """Metadata stored for exactly ``action``; subsuming policies are not consulted."""
        requested = GrantAction.parse(action)
        policy = self._store.get_policy(role, resource, requested) if requested else None
        if policy is None:
            return PermissionResult.denied()
        return PermissionResult(
            granted=True,
            metadata=policy.metadata.model_copy(deep=True),
            role=role,
            action=policy.action
        )

    def get_attributes(self, subject: Any, action: Any, resource: str) -> List[str]:
        """Resolved attribute rules for the subject queried by ``check``; empty on denial."""
        return self.check(subject, action, resource).attributes

    def dump_grants(self) -> Dict[str, Dict[str, Dict[str, Dict[str, Any]]]]:
        """Nested ``{role: {resource: {action: metadata}}}`` copy of the grants."""
        return self._store.to_mapping()

    @property
    def grants(self) -> List[Grant]:
        return self._store.snapshot()

    def _evaluate(self, roles: Iterable[str], action: Any, resource: str) -> PermissionResult:
        result = resolve(self._store.grants, roles, action, resource)
        if self.metrics:
            self.metrics.record_decision(result.granted)
        return result

    # Synchronization

    async def load(self) -> List[Grant]:
        """Replace local grants with the synchronizer's (cached when available)."""
        grants = await self._require_synchronizer().read()
        self._store.replace(grants)
        return self._store.snapshot()

    async def refresh(self) -> List[Grant]:
        """Replace local grants with a fresh read from the provider."""
        grants = await self._require_synchronizer().refresh()
        self._store.replace(grants)
        self.logger.info("Grants refreshed", total_grants=len(self._store))
        return self._store.snapshot()

    def schedule_refresh(self) -> "asyncio.Task[List[Grant]]":
        """Run ``refresh()`` in the background on the running loop."""
        self._require_synchronizer()
        return asyncio.get_running_loop().create_task(self.refresh())

    async def commit(self) -> bool:
        """Persist local grants; on failure local grants revert to the last known-good set."""
        synchronizer = self._require_synchronizer()
        committed = await synchronizer.update(self._store.snapshot())
        if not committed:
            if synchronizer.cached is not None:
                self._store.replace(synchronizer.cached)
            self.logger.warning("Grant commit failed", total_grants=len(self._store))
        return committed

    def _require_synchronizer(self) -> GrantSynchronizer:
        if self.synchronizer is None:
            raise SynchronizerNotConfiguredError()
        return self.synchronizer


class UserAccessControl(AccessControl):
    """User-based access controller; users are evaluated through their roles."""

    def __init__(
        self,
        grants: GrantsInput = None,
        *,
        role_mapper: Optional[RoleMapper] = None,
        synchronizer: Optional[GrantSynchronizer] = None,
        metrics: Optional[AccessControlMetrics] = None
    ):
        super().__init__(grants, synchronizer=synchronizer, metrics=metrics)
        self.role_mapper = role_mapper if role_mapper is not None else RoleAssignment()

    def set_roles(self, user: Hashable, *roles: str) -> bool:
        return self.role_mapper.set_roles(user, *roles)

    def roles_of(self, user: Hashable) -> List[str]:
        return list(self.role_mapper.parse_roles(user))

    def can(self, user: Hashable) -> PermissionQuery:
        return PermissionQuery(lambda action, resource: self.check(user, action, resource))

    def check(self, user: Hashable, action: Any, resource: str) -> PermissionResult:
        token = set_subject(user)
        try:
            return self._evaluate(self.roles_of(user), action, resource)
        finally:
            reset_subject(token)

    def can_role(self, role: str) -> PermissionQuery:
        """Role-based query, bypassing the role mapper."""
        return PermissionQuery(lambda action, resource: self._evaluate([role], action, resource))
