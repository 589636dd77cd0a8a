from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol
from uuid import uuid4

from brevity.errors import ExhaustionError


@dataclass(slots=True)
class SearchResult:
    title: str
    url: str
    snippet: str


@dataclass(slots=True)
class LLMResponse:
    text: str
    reasoning: str = ""
    cost: float = 0.0


class Searcher(Protocol):
    async def search(self, query: str) -> list[SearchResult]: ...


class Fetcher(Protocol):
    async def fetch(self, url: str) -> str: ...


class Generator(Protocol):
    async def generate(self, system_prompt: str, user_prompt: str) -> LLMResponse: ...


@dataclass(slots=True)
class AnswerContext:
    """Values scoped to a single ``answer()`` invocation."""

    prior_knowledge: str = ""
    run_id: str = field(default_factory=lambda: uuid4().hex)


@dataclass
class ResearchResult:
    answer: str
    cost: float
    knowledge: str
    warning: ExhaustionError | None = None
    strategy: str = ""
    run_id: str = ""

    @property
    def exhausted(self) -> bool:
        return isinstance(self.warning, ExhaustionError)
