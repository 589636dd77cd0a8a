"""Scripted capabilities for tests and offline examples.

``ScriptedGenerator`` replays queued responses. Queues can be keyed by a
substring of the system prompt, which is how the roles of one strategy are told
apart when they share a single generator::

    generator = ScriptedGenerator(
        by_system={
            "research planner": ['{"strategy": [], "key_elements": []}', '["q1"]'],
            "research validator": ['{"can_answer": true}'],
        },
        cost=0.25,
    )

When a queue is down to its last response, that response repeats.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Union

from brevity.models.capabilities import LLMResponse, SearchResult

ScriptItem = Union[str, LLMResponse, Exception]


@dataclass(slots=True)
class GenerateCall:
    system_prompt: str
    user_prompt: str


class ScriptedGenerator:
    def __init__(
        self,
        responses: list[ScriptItem] | None = None,
        *,
        by_system: dict[str, list[ScriptItem]] | None = None,
        cost: float = 0.0,
        delay: float = 0.0,
    ):
        self._default = list(responses or [])
        self._by_system = {key: list(items) for key, items in (by_system or {}).items()}
        self.cost = cost
        self.delay = delay
        self.calls: list[GenerateCall] = []

    def _queue_for(self, system_prompt: str) -> list[ScriptItem]:
        lowered = system_prompt.lower()
        for key, queue in self._by_system.items():
            if key.lower() in lowered:
                return queue
        return self._default

    def calls_for(self, key: str) -> list[GenerateCall]:
        lowered = key.lower()
        return [call for call in self.calls if lowered in call.system_prompt.lower()]

    async def generate(self, system_prompt: str, user_prompt: str) -> LLMResponse:
        self.calls.append(GenerateCall(system_prompt=system_prompt, user_prompt=user_prompt))
        if self.delay:
            await asyncio.sleep(self.delay)

        queue = self._queue_for(system_prompt)
        if not queue:
            raise LookupError(f"no scripted response for system prompt: {system_prompt[:60]!r}")
        item = queue.pop(0) if len(queue) > 1 else queue[0]

        if isinstance(item, Exception):
            raise item
        if isinstance(item, LLMResponse):
            return item
        return LLMResponse(text=item, cost=self.cost)


@dataclass
class StaticSearcher:
    """Returns canned results; ``results_by_query`` wins over ``results``."""

    results: list[SearchResult] = field(default_factory=list)
    results_by_query: dict[str, list[SearchResult]] = field(default_factory=dict)
    fail_on: set[str] = field(default_factory=set)
    delay: float = 0.0
    queries: list[str] = field(default_factory=list)

    async def search(self, query: str) -> list[SearchResult]:
        self.queries.append(query)
        if self.delay:
            await asyncio.sleep(self.delay)
        if query in self.fail_on:
            raise RuntimeError(f"search backend unavailable for {query!r}")
        return list(self.results_by_query.get(query, self.results))


@dataclass
class StaticFetcher:
    """Serves pages from a dict; unknown URLs raise like a 404 would."""

    pages: dict[str, str] = field(default_factory=dict)
    fetched: list[str] = field(default_factory=list)

    async def fetch(self, url: str) -> str:
        self.fetched.append(url)
        if url not in self.pages:
            raise RuntimeError(f"fetch http 404: {url}")
        return self.pages[url]
