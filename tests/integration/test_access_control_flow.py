"""
Integration tests for the access-control flow.
"""

import asyncio

import pytest
from unittest.mock import AsyncMock, MagicMock

from access_control import AccessControl, GrantSynchronizer, UserAccessControl, filter_attributes
from access_control.providers.memory import InMemoryGrantsProvider
from shared.errors import StoreLockedError
from shared.metrics import AccessControlMetrics


class TestAccessControlFlow:
    """End-to-end evaluation flows."""

    def test_grant_resolve_filter(self):
        controller = AccessControl()
        controller.grant("admin").read_any("video", {"attributes": ["*", "!password"]})

        result = controller.can("admin").read_own("video")

        assert result.granted is True
        assert result.metadata.attributes == ["*", "!password"]
        assert filter_attributes({"title": "x", "password": "y"}, result.metadata.attributes) == {"title": "x"}

    def test_user_flow(self):
        controller = UserAccessControl()
        controller.grant("viewer").read_any("article", ["title", "body"])
        controller.grant("author").all_any("article")
        controller.set_roles("alice", "viewer")
        controller.set_roles("bob", "author")
        article = {"title": "t", "body": "b", "author_id": 7}

        alice_view = controller.can("alice").read_any("article")
        assert alice_view.filter(article) == {"title": "t", "body": "b"}
        assert controller.can("alice").update_own("article").granted is False

        assert controller.can("bob").delete_any("article").filter(article) == article

    def test_locked_controller_still_answers(self):
        controller = AccessControl().grant("user").read_own("video").controller.lock()

        with pytest.raises(StoreLockedError):
            controller.authorize("user", "update:own", "video")

        assert controller.dump_grants() == {"user": {"video": {"read:own": {"attributes": ["*"]}}}}


class TestSynchronizedFlow:
    """Flows through a synchronizer and persistence provider."""

    @pytest.mark.asyncio
    async def test_commit_then_load_elsewhere(self):
        provider = InMemoryGrantsProvider()
        writer = AccessControl(synchronizer=GrantSynchronizer.from_provider(provider))
        writer.grant("editor").update_any("post", ["*", "!published_at"])

        assert await writer.commit() is True

        reader = AccessControl(synchronizer=GrantSynchronizer.from_provider(provider))
        await reader.load()
        assert reader.can("editor").update_own("post").attributes == ["*", "!published_at"]

    @pytest.mark.asyncio
    async def test_concurrent_loads_hit_provider_once(self):
        provider = InMemoryGrantsProvider({"user": {"video": {"read:any": {}}}}, latency=0.01)
        metrics = AccessControlMetrics()
        sync = GrantSynchronizer.from_provider(provider, metrics=metrics)

        results = await asyncio.gather(*(sync.read() for _ in range(10)))

        assert provider.reads == 1
        assert all(result is results[0] for result in results)
        assert metrics.sample("access_control_sync_reads_total", {"outcome": "coalesced"}) == 9.0

    @pytest.mark.asyncio
    async def test_failed_commit_keeps_persisted_state(self):
        provider = InMemoryGrantsProvider({"user": {"video": {"read:own": {}}}})
        on_error = MagicMock()
        sync = GrantSynchronizer(
            provider.read,
            AsyncMock(side_effect=TimeoutError("slow")),
            on_error=on_error
        )
        controller = AccessControl(synchronizer=sync)
        await controller.load()

        controller.grant("user").delete_any("video")
        assert await controller.commit() is False

        assert controller.can("user").delete_any("video").granted is False
        assert controller.can("user").read_own("video").granted is True
        assert (await sync.read())[0].role == "user"
        assert provider.reads == 1
        on_error.assert_called_once()
