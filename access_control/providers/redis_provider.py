"""
Redis persistence provider for grants.
"""

import json
from typing import List, Optional

import redis.asyncio as redis
from shared.config import AccessControlConfig
from shared.logging import get_logger
from shared.errors import ProviderError
from ..grants.models import Grant, GrantsInput, coerce_grants, dump_grants


class RedisGrantsProvider:
    """Stores the full grant list as one JSON document under a Redis key."""

    def __init__(self, redis_url: str, key: str = "access_control:grants"):
        self.redis_url = redis_url
        self.key = key
        self.logger = get_logger("access_control.providers.redis")
        self.redis: Optional[redis.Redis] = None

    @classmethod
    def from_config(cls, config: AccessControlConfig) -> "RedisGrantsProvider":
        return cls(config.redis_url, config.redis_grants_key)

    async def start(self):
        """Connect to Redis."""
        try:
            self.redis = redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                retry_on_timeout=True,
                health_check_interval=30
            )

            # Test connection
            await self.redis.ping()

            self.logger.info("Redis grants provider started", key=self.key)

        except Exception as e:
            self.logger.error("Failed to start Redis grants provider", error=str(e))
            raise ProviderError("redis", str(e)) from e

    async def stop(self):
        """Close the Redis connection."""
        if self.redis:
            await self.redis.close()
            self.logger.info("Redis grants provider stopped")

    async def read(self) -> List[Grant]:
        """Load all grants; a missing key means no grants yet."""
        client = self._client()
        try:
            raw = await client.get(self.key)
        except Exception as e:
            raise ProviderError("redis", f"read failed: {e}") from e

        if not raw:
            return []

        try:
            return coerce_grants(json.loads(raw))
        except (ValueError, TypeError) as e:
            raise ProviderError("redis", f"invalid grants document: {e}") from e

    async def update(self, grants: GrantsInput) -> bool:
        """Replace the stored grants."""
        client = self._client()
        payload = json.dumps(dump_grants(coerce_grants(grants)))
        try:
            await client.set(self.key, payload)
        except Exception as e:
            raise ProviderError("redis", f"write failed: {e}") from e

        self.logger.debug("Grants written to Redis", key=self.key, size=len(payload))
        return True

    async def health_check(self) -> bool:
        """Check Redis health."""
        try:
            await self._client().ping()
            return True
        except Exception:
            return False

    def _client(self) -> redis.Redis:
        if self.redis is None:
            raise ProviderError("redis", "provider not started")
        return self.redis
