"""
Unit tests for persistence providers.
"""

import json

import pytest
from unittest.mock import AsyncMock, patch

from access_control.grants.models import GrantAction, coerce_grants
from access_control.providers.memory import InMemoryGrantsProvider
from access_control.providers.redis_provider import RedisGrantsProvider
from shared.config import AccessControlConfig
from shared.errors import ProviderError


class TestInMemoryGrantsProvider:
    """Test cases for InMemoryGrantsProvider."""

    @pytest.mark.asyncio
    async def test_read_returns_fresh_copies(self):
        provider = InMemoryGrantsProvider({"user": {"video": {"read:any": {}}}})

        first = await provider.read()
        first[0].policies.clear()
        second = await provider.read()

        assert len(second[0].policies) == 1
        assert provider.reads == 2

    @pytest.mark.asyncio
    async def test_update_replaces_document(self):
        provider = InMemoryGrantsProvider()

        assert await provider.update(coerce_grants({"admin": {"video": {"*:any": {}}}})) is True

        assert provider.writes == 1
        assert provider.document == [{
            "role": "admin",
            "resource": "video",
            "policies": [{"action": "*:any", "metadata": {"attributes": ["*"]}}]
        }]


class TestRedisGrantsProvider:
    """Test cases for RedisGrantsProvider."""

    @pytest.fixture
    def provider(self):
        """Create provider with a mocked Redis client."""
        provider = RedisGrantsProvider("redis://localhost:6379/0", key="grants")
        provider.redis = AsyncMock()
        return provider

    def test_from_config(self):
        config = AccessControlConfig(redis_url="redis://cache:6379/1", redis_grants_key="acl")

        provider = RedisGrantsProvider.from_config(config)

        assert provider.redis_url == "redis://cache:6379/1"
        assert provider.key == "acl"

    @pytest.mark.asyncio
    async def test_start_pings(self):
        provider = RedisGrantsProvider("redis://localhost:6379/0")
        client = AsyncMock()

        with patch("access_control.providers.redis_provider.redis.from_url", return_value=client) as from_url:
            await provider.start()

        from_url.assert_called_once()
        client.ping.assert_awaited_once()
        assert provider.redis is client

    @pytest.mark.asyncio
    async def test_start_failure(self):
        provider = RedisGrantsProvider("redis://localhost:6379/0")
        client = AsyncMock()
        client.ping.side_effect = ConnectionError("refused")

        with patch("access_control.providers.redis_provider.redis.from_url", return_value=client):
            with pytest.raises(ProviderError) as exc_info:
                await provider.start()

        assert exc_info.value.code == "PROVIDER_ERROR"

    @pytest.mark.asyncio
    async def test_read_missing_key(self, provider):
        provider.redis.get.return_value = None

        assert await provider.read() == []
        provider.redis.get.assert_awaited_once_with("grants")

    @pytest.mark.asyncio
    async def test_read_document(self, provider):
        provider.redis.get.return_value = json.dumps([
            {"role": "user", "resource": "video", "policies": [{"action": "read:own"}]}
        ])

        grants = await provider.read()

        assert grants[0].find_policy(GrantAction.READ_OWN).metadata.attributes == ["*"]

    @pytest.mark.asyncio
    async def test_read_invalid_document(self, provider):
        provider.redis.get.return_value = "not json"

        with pytest.raises(ProviderError):
            await provider.read()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("document", [{"user": "x"}, {"user": {"video": None}}, 5])
    async def test_read_malformed_document(self, provider, document):
        provider.redis.get.return_value = json.dumps(document)

        with pytest.raises(ProviderError):
            await provider.read()

    @pytest.mark.asyncio
    async def test_read_connection_error(self, provider):
        provider.redis.get.side_effect = ConnectionError("down")

        with pytest.raises(ProviderError):
            await provider.read()

    @pytest.mark.asyncio
    async def test_update_writes_json(self, provider):
        grants = coerce_grants({"user": {"video": {"read:any": {"attributes": ["title"]}}}})

        assert await provider.update(grants) is True

        key, payload = provider.redis.set.await_args[0]
        assert key == "grants"
        assert json.loads(payload)[0]["policies"][0] == {"action": "read:any", "metadata": {"attributes": ["title"]}}

    @pytest.mark.asyncio
    async def test_update_error(self, provider):
        provider.redis.set.side_effect = ConnectionError("down")

        with pytest.raises(ProviderError):
            await provider.update([])

    @pytest.mark.asyncio
    async def test_not_started(self):
        provider = RedisGrantsProvider("redis://localhost:6379/0")

        with pytest.raises(ProviderError):
            await provider.read()
        assert await provider.health_check() is False

    @pytest.mark.asyncio
    async def test_health_check(self, provider):
        assert await provider.health_check() is True

    @pytest.mark.asyncio
    async def test_stop_closes_client(self, provider):
        client = provider.redis

        await provider.stop()

        client.close.assert_awaited_once()
