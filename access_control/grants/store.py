"""
In-memory grant store.
"""

from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from shared.logging import get_logger
from shared.errors import StoreLockedError
from .resolver import find_grant
from .models import (
    Grant, GrantAction, GrantsInput, MetadataInput, Policy,
    coerce_grants, grants_to_mapping, to_metadata
)


class GrantStore:
    """Ordered collection of grants, unique per (role, resource)."""

    def __init__(self, grants: GrantsInput = None):
        self.logger = get_logger("access_control.store")
        self._grants: List[Grant] = coerce_grants(grants)
        self._locked = False

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "GrantStore":
        """Build a store from the nested ``{role: {resource: {action: metadata}}}`` form."""
        return cls(mapping)

    @property
    def grants(self) -> Tuple[Grant, ...]:
        """Read-only view of the stored grants, in insertion order."""
        return tuple(self._grants)

    @property
    def is_locked(self) -> bool:
        return self._locked

    def __len__(self) -> int:
        return len(self._grants)

    def __iter__(self) -> Iterator[Grant]:
        return iter(tuple(self._grants))

    def find_grant(self, role: str, resource: str) -> Optional[Grant]:
        """Get the grant for a role/resource pair."""
        return find_grant(self._grants, role, resource)

    def get_policy(self, role: str, resource: str, action: GrantAction) -> Optional[Policy]:
        """Get the policy stored for exactly this action, without subsumption."""
        grant = self.find_grant(role, resource)
        if grant is None:
            return None
        return grant.find_policy(action)

    def upsert_policy(
        self,
        role: str,
        resource: str,
        action: GrantAction,
        metadata: MetadataInput = None
    ) -> Grant:
        """Create or replace the policy for (role, resource, action)."""
        if self._locked:
            raise StoreLockedError(details={"role": role, "resource": resource, "action": getattr(action, "value", action)})

        action = GrantAction(action)
        policy_metadata = to_metadata(metadata)
        grant = self.find_grant(role, resource)
        if grant is None:
            grant = Grant(role=role, resource=resource)
            self._grants.append(grant)

        grant.set_policy(action, policy_metadata)
        self.logger.info(
            "Policy granted",
            role=role,
            resource=resource,
            action=action.value,
            attributes=policy_metadata.attributes
        )
        return grant

    def replace(self, grants: GrantsInput):
        """Swap in a new grant set, e.g. after reading from persistence."""
        self._grants = coerce_grants(grants)
        self.logger.debug("Grants replaced", total_grants=len(self._grants))

    def snapshot(self) -> List[Grant]:
        """Deep copy of the current grants."""
        return [grant.model_copy(deep=True) for grant in self._grants]

    def to_mapping(self) -> Dict[str, Dict[str, Dict[str, Dict[str, Any]]]]:
        """Nested mapping projection; changes to it do not affect the store."""
        return grants_to_mapping(self._grants)

    def lock(self):
        """Lock the store; authoring fails from now on."""
        if not self._locked:
            self._locked = True
            self.logger.info("Grant store locked", total_grants=len(self._grants))

    def get_store_stats(self) -> Dict[str, Any]:
        """Get store statistics."""
        return {
            "total_grants": len(self._grants),
            "total_policies": sum(len(grant.policies) for grant in self._grants),
            "roles": sorted({grant.role for grant in self._grants}),
            "resources": sorted({grant.resource for grant in self._grants}),
            "locked": self._locked
        }
