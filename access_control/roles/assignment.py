"""
Role assignment: mapping users to the roles evaluated on their behalf.
"""

from typing import Dict, Hashable, List, Protocol, Sequence, runtime_checkable

from shared.logging import get_logger


@runtime_checkable
class RoleMapper(Protocol):
    """External user-to-role mapping consumed by UserAccessControl."""

    def parse_roles(self, user: Hashable) -> Sequence[str]:
        ...

    def set_roles(self, user: Hashable, *roles: str) -> bool:
        ...


class RoleAssignment:
    """In-memory role mapper; users without an assignment have no roles."""

    def __init__(self):
        self.logger = get_logger("access_control.roles")
        self._assignments: Dict[Hashable, List[str]] = {}

    def parse_roles(self, user: Hashable) -> List[str]:
        """Roles of ``user`` in assignment order."""
        return list(self._assignments.get(user, []))

    def set_roles(self, user: Hashable, *roles: str) -> bool:
        """Replace the roles of ``user``; duplicates are dropped, order kept."""
        unique_roles = list(dict.fromkeys(roles))
        if unique_roles:
            self._assignments[user] = unique_roles
        else:
            self._assignments.pop(user, None)
        self.logger.info("Roles assigned", user=str(user), roles=unique_roles)
        return True

    def users(self) -> List[Hashable]:
        return list(self._assignments)

    def __contains__(self, user: Hashable) -> bool:
        return user in self._assignments
