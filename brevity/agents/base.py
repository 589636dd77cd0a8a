from __future__ import annotations

import time
from typing import TYPE_CHECKING, TypeVar

from loguru import logger

from brevity.errors import ConfigError, ProviderError, ValidationError
from brevity.models.capabilities import AnswerContext, Generator, LLMResponse, ResearchResult, SearchResult
from brevity.services import logger as log_service

if TYPE_CHECKING:
    from brevity.agents.orchestrator import ResearchOrchestrator

CapabilityT = TypeVar("CapabilityT")


class BaseStrategy:
    """Shared plumbing for research strategies.

    A strategy instance serves exactly one ``answer()`` call: it owns the running
    cost total, while capabilities and budgets are read from the orchestrator.
    Every provider call goes through ``_generate``/``_search``/``_fetch`` so
    failures surface as ``ProviderError`` and each call is logged and costed.
    """

    name: str = "base"

    def __init__(self, orchestrator: ResearchOrchestrator):
        self.orchestrator = orchestrator
        self.debug = orchestrator.debug
        self.search_cost = orchestrator.search_cost
        self.total_cost = 0.0

    async def answer(self, question: str, context: AnswerContext) -> ResearchResult:
        raise NotImplementedError

    @staticmethod
    def _require_question(question: str) -> str:
        cleaned = (question or "").strip()
        if not cleaned:
            raise ValidationError("question is empty")
        return cleaned

    @staticmethod
    def _require(capability: CapabilityT | None, role: str) -> CapabilityT:
        if capability is None:
            raise ConfigError(f"{role} is not configured", details={"role": role})
        return capability

    async def _generate(
        self,
        role: str,
        generator: Generator,
        system_prompt: str,
        user_prompt: str,
        *,
        context: AnswerContext,
    ) -> LLMResponse:
        if self.debug:
            logger.debug(f"[{context.run_id}] {role} system prompt:\n{system_prompt}")
            logger.debug(f"[{context.run_id}] {role} user prompt:\n{user_prompt}")

        t0 = time.monotonic()
        try:
            response = await generator.generate(system_prompt, user_prompt)
        except Exception as exc:
            log_service.log_llm_call(
                role=role,
                caller=self.name,
                duration_ms=int((time.monotonic() - t0) * 1000),
                status="error",
                error=str(exc),
            )
            raise ProviderError(f"{role}: {exc}", role=role) from exc

        self.total_cost += response.cost
        log_service.log_llm_call(
            role=role,
            caller=self.name,
            duration_ms=int((time.monotonic() - t0) * 1000),
            cost=response.cost,
        )
        if self.debug:
            logger.debug(f"[{context.run_id}] {role} response:\n{response.text}")
        return response

    async def _search(self, query: str, *, context: AnswerContext) -> list[SearchResult]:
        searcher = self._require(self.orchestrator.searcher, "searcher")
        try:
            results = await searcher.search(query)
        except Exception as exc:
            log_service.log_research_step(
                context.run_id, "search", "error", {"query": query, "error": str(exc)}
            )
            raise ProviderError(f"search: {exc}", role="search") from exc

        self.total_cost += self.search_cost
        log_service.log_research_step(
            context.run_id, "search", "done", {"query": query, "results": len(results)}
        )
        return list(results)

    async def _fetch(self, url: str, *, context: AnswerContext) -> str:
        fetcher = self._require(self.orchestrator.fetcher, "fetcher")
        try:
            text = await fetcher.fetch(url)
        except Exception as exc:
            log_service.log_research_step(
                context.run_id, "fetch", "error", {"url": url, "error": str(exc)}
            )
            raise ProviderError(f"fetch {url}: {exc}", role="fetch") from exc

        log_service.log_research_step(context.run_id, "fetch", "done", {"url": url, "chars": len(text or "")})
        return text or ""

    def _result(
        self,
        answer: str,
        knowledge: str,
        context: AnswerContext,
        warning=None,
    ) -> ResearchResult:
        return ResearchResult(
            answer=answer,
            cost=self.total_cost,
            knowledge=knowledge,
            warning=warning,
            strategy=self.name,
            run_id=context.run_id,
        )
