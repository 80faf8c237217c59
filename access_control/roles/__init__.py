"""
Roles package.

Defines the RoleMapper interface used for user-based evaluation and the
in-memory RoleAssignment used when no external mapper is supplied.
"""

from .assignment import RoleAssignment, RoleMapper

__all__ = ["RoleAssignment", "RoleMapper"]
