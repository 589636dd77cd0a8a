from __future__ import annotations

import asyncio
import time
import weakref
from dataclasses import dataclass, field

from loguru import logger

from brevity.models.capabilities import SearchResult, Searcher


@dataclass
class _Gate:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    ready_at: float = 0.0


class RateLimitedSearcher:
    """Wraps a searcher so calls sharing a key start at least ``min_interval`` apart.

    Gates are shared by every instance using the same key within an event loop,
    so two orchestrators on one API key still respect the provider's limit.
    """

    _gates: weakref.WeakKeyDictionary[asyncio.AbstractEventLoop, dict[str, _Gate]] = (
        weakref.WeakKeyDictionary()
    )

    def __init__(self, inner: Searcher, *, key: str, min_interval: float):
        self.inner = inner
        self.key = key
        self.min_interval = max(float(min_interval), 0.0)

    def _gate(self) -> _Gate:
        loop = asyncio.get_running_loop()
        gates = self._gates.setdefault(loop, {})
        gate = gates.get(self.key)
        if gate is None:
            gate = gates[self.key] = _Gate()
        return gate

    async def _wait_turn(self) -> None:
        gate = self._gate()
        async with gate.lock:
            delay = gate.ready_at - time.monotonic()
            if delay > 0:
                logger.debug(f"Search rate limit: waiting {delay:.2f}s")
                await asyncio.sleep(delay)
            gate.ready_at = time.monotonic() + self.min_interval

    async def search(self, query: str) -> list[SearchResult]:
        if self.min_interval > 0:
            await self._wait_turn()
        return await self.inner.search(query)

    @classmethod
    def reset(cls) -> None:
        cls._gates = weakref.WeakKeyDictionary()
