"""
In-memory persistence provider.
"""

import asyncio
from typing import Any, Dict, List

from shared.logging import get_logger
from ..grants.models import Grant, GrantsInput, coerce_grants, dump_grants


class InMemoryGrantsProvider:
    """Keeps the serialized grants in process; reads return fresh copies."""

    def __init__(self, grants: GrantsInput = None, latency: float = 0.0):
        self.logger = get_logger("access_control.providers.memory")
        self.latency = latency
        self.reads = 0
        self.writes = 0
        self._document: List[Dict[str, Any]] = dump_grants(coerce_grants(grants))

    @property
    def document(self) -> List[Dict[str, Any]]:
        """The stored, JSON-compatible grant list."""
        return self._document

    async def read(self) -> List[Grant]:
        self.reads += 1
        if self.latency:
            await asyncio.sleep(self.latency)
        return coerce_grants(self._document)

    async def update(self, grants: GrantsInput) -> bool:
        self.writes += 1
        if self.latency:
            await asyncio.sleep(self.latency)
        self._document = dump_grants(coerce_grants(grants))
        self.logger.debug("Grants stored", total_grants=len(self._document))
        return True
