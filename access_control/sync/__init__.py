"""
Synchronization package.

Provides the GrantSynchronizer, which keeps a cached copy of the grants
read from an external persistence provider, coalesces concurrent reads
and applies updates optimistically with rollback on failure.
"""

from .synchronizer import GrantSynchronizer

__all__ = ["GrantSynchronizer"]
