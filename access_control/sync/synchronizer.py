"""
Grant synchronizer.

Mediates between the in-memory grants and an external persistence
provider supplied as two coroutines (``on_read``/``on_update``) and an
error sink (``on_error``).

Reads are single-flight: while a read is in flight every other caller is
queued and released with the same outcome, so the provider never sees more
than one outstanding read. Updates are optimistic: the new value is cached
before the provider confirms. A failed update rolls the cache back to the
last confirmed grants, but only while the cache still holds its own value;
a newer overlapping update keeps what it wrote. Updates are not serialized
against each other; the last successful one to complete decides the cached
value.
"""

import asyncio
import inspect
from contextlib import nullcontext
from typing import Any, Awaitable, Callable, List, Optional

from shared.logging import get_logger
from shared.errors import AccessControlException, PersistenceReadError, PersistenceWriteError
from shared.metrics import AccessControlMetrics
from ..grants.models import Grant, GrantsInput, coerce_grants

ReadHandler = Callable[[], Awaitable[GrantsInput]]
UpdateHandler = Callable[[List[Grant]], Awaitable[Optional[bool]]]
ErrorHandler = Callable[[AccessControlException], Any]


class GrantSynchronizer:
    """Single-flight, rollback-capable bridge to a persistence provider."""

    def __init__(
        self,
        on_read: ReadHandler,
        on_update: UpdateHandler,
        on_error: Optional[ErrorHandler] = None,
        metrics: Optional[AccessControlMetrics] = None
    ):
        self.logger = get_logger("access_control.sync")
        self._on_read = on_read
        self._on_update = on_update
        self._on_error = on_error
        self.metrics = metrics

        self._cached: Optional[List[Grant]] = None
        self._confirmed: Optional[List[Grant]] = None
        self._reading = False
        self._waiters: List[asyncio.Future] = []

    @classmethod
    def from_provider(
        cls,
        provider: Any,
        on_error: Optional[ErrorHandler] = None,
        metrics: Optional[AccessControlMetrics] = None
    ) -> "GrantSynchronizer":
        """Wire a provider exposing ``read()`` and ``update(grants)`` coroutines."""
        return cls(provider.read, provider.update, on_error=on_error, metrics=metrics)

    @property
    def cached(self) -> Optional[List[Grant]]:
        """Last successfully read or written grants, None before the first read."""
        return self._cached

    @property
    def is_reading(self) -> bool:
        return self._reading

    def invalidate(self):
        """Drop the cached grants so the next read goes to the provider."""
        self._cached = None
        self._confirmed = None

    async def read(self) -> List[Grant]:
        """Return the cached grants, joining or starting a provider read when needed."""
        if self._reading:
            return await self._wait_for_read()

        if self._cached is not None:
            self._record_read("cache_hit")
            return self._cached

        return await self._fetch()

    async def refresh(self) -> List[Grant]:
        """Force a provider read regardless of the cache."""
        if self._reading:
            return await self._wait_for_read()
        return await self._fetch()

    async def update(self, grants: GrantsInput) -> bool:
        """Persist ``grants`` optimistically; roll back and return False on failure."""
        new_value = coerce_grants(grants)
        self._cached = new_value

        try:
            accepted = await self._on_update([grant.model_copy(deep=True) for grant in new_value])
        except Exception as e:
            error = PersistenceWriteError(
                f"Failed to persist grants: {e}",
                details={"error_type": type(e).__name__}
            )
            error.__cause__ = e
        else:
            if accepted is not False:
                self._cached = new_value
                self._confirmed = new_value
                self._record_update("committed")
                self.logger.info("Grants persisted", total_grants=len(new_value))
                return True
            error = PersistenceWriteError("Persistence provider rejected grants")

        if self._cached is new_value:
            self._cached = self._confirmed
        self._record_update("rolled_back")
        self.logger.error("Grant update rolled back", error=error.message)
        await self._report(error)
        return False

    async def _wait_for_read(self) -> List[Grant]:
        waiter = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        self._record_read("coalesced")
        return await waiter

    async def _fetch(self) -> List[Grant]:
        self._reading = True
        try:
            with self._time_read():
                payload = await self._on_read()
            grants = coerce_grants(payload)
        except Exception as e:
            error = PersistenceReadError(
                f"Failed to read grants: {e}",
                details={"error_type": type(e).__name__}
            )
            self._finish_read(error=error)
            self._record_read("failed")
            self.logger.error("Grant read failed", error=str(e))
            await self._report(error)
            raise error from e
        else:
            self._cached = grants
            self._confirmed = grants
            self._finish_read(result=grants)
            self._record_read("fetched")
            self.logger.debug("Grants read", total_grants=len(grants))
            return grants
        finally:
            if self._reading:
                # Interrupted (e.g. cancelled); queued callers must not hang.
                self._finish_read(error=PersistenceReadError("Grant read was interrupted"))

    def _finish_read(self, result: Optional[List[Grant]] = None, error: Optional[Exception] = None):
        self._reading = False
        waiters, self._waiters = self._waiters, []
        for waiter in waiters:
            if waiter.done():
                continue
            if error is not None:
                waiter.set_exception(error)
            else:
                waiter.set_result(result)

    async def _report(self, error: AccessControlException):
        if self._on_error is None:
            return
        try:
            outcome = self._on_error(error)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception as e:
            self.logger.error("Error handler failed", error=str(e), original_error=error.code)

    def _time_read(self):
        if self.metrics:
            return self.metrics.time_provider_read()
        return nullcontext()

    def _record_read(self, outcome: str):
        if self.metrics:
            self.metrics.record_sync_read(outcome)

    def _record_update(self, outcome: str):
        if self.metrics:
            self.metrics.record_sync_update(outcome)
