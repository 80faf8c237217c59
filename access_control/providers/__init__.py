"""
Persistence providers.

Thin adapters exposing the ``read()``/``update(grants)`` coroutines a
GrantSynchronizer consumes:

- memory: process-local provider for tests and single-process use.
- redis_provider: stores the grant list as a JSON document in Redis.
"""

from .memory import InMemoryGrantsProvider
from .redis_provider import RedisGrantsProvider

__all__ = ["InMemoryGrantsProvider", "RedisGrantsProvider"]
