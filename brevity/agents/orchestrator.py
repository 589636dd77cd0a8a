from __future__ import annotations

import asyncio
from typing import Any

from loguru import logger

# Importing the strategy modules registers them.
from brevity.agents import graph_reader as _graph_reader  # noqa: F401
from brevity.agents import scratchpad as _scratchpad  # noqa: F401
from brevity.agents.registry import StrategyRegistry, strategy_registry
from brevity.config import settings
from brevity.models.capabilities import AnswerContext, Fetcher, Generator, ResearchResult, Searcher
from brevity.models.graph import GraphReaderOptions
from brevity.services import logger as log_service


class ResearchOrchestrator:
    """Single entry point for answering questions.

    Holds capabilities and budgets only; everything that belongs to one call
    (strategy instance, cost total, prior knowledge, run id) is created inside
    ``answer()``, so concurrent calls on one orchestrator do not interfere.

    Role defaults: finalizer -> synthesizer, extractor -> synthesizer,
    navigator -> extractor, graph planner -> planner.
    """

    def __init__(
        self,
        *,
        planner: Generator | None = None,
        synthesizer: Generator | None = None,
        finalizer: Generator | None = None,
        searcher: Searcher | None = None,
        fetcher: Fetcher | None = None,
        extractor: Generator | None = None,
        navigator: Generator | None = None,
        graph_planner: Generator | None = None,
        strategy: str | None = None,
        max_iterations: int | None = None,
        search_cost: float | None = None,
        graph_options: GraphReaderOptions | None = None,
        debug: bool | None = None,
        registry: StrategyRegistry | None = None,
    ):
        self.planner = planner
        self.synthesizer = synthesizer
        self.finalizer = finalizer or synthesizer
        self.extractor = extractor or synthesizer
        self.navigator = navigator or self.extractor
        self.graph_planner = graph_planner or planner
        self.searcher = searcher
        self.fetcher = fetcher

        self.strategy = (strategy or settings.research_strategy).strip().lower()
        self.max_iterations = max(
            int(max_iterations if max_iterations is not None else settings.max_iterations), 1
        )
        self.search_cost = float(search_cost if search_cost is not None else settings.search_cost)
        self.graph_options = graph_options or GraphReaderOptions.from_settings()
        self.debug = bool(settings.debug if debug is None else debug)
        self.registry = registry or strategy_registry

    @classmethod
    def from_settings(cls, **overrides: Any) -> "ResearchOrchestrator":
        """Wire the shipped OpenRouter, search and fetch adapters from settings."""
        from brevity.llm_client import OpenRouterGenerator, model_for_role
        from brevity.tools.http_fetcher import HttpFetcher
        from brevity.tools.search_provider import build_searcher

        wiring: dict[str, Any] = {
            "planner": OpenRouterGenerator(model_for_role("planner")),
            "synthesizer": OpenRouterGenerator(model_for_role("synthesizer")),
            "finalizer": OpenRouterGenerator(model_for_role("finalizer")),
            "extractor": OpenRouterGenerator(model_for_role("extractor")),
            "navigator": OpenRouterGenerator(model_for_role("navigator")),
        }
        if "searcher" not in overrides:
            wiring["searcher"] = build_searcher()
        if "fetcher" not in overrides and settings.fetch_enabled:
            wiring["fetcher"] = HttpFetcher()
        wiring.update(overrides)
        return cls(**wiring)

    async def answer(
        self,
        question: str,
        *,
        knowledge: str = "",
        timeout: float | None = None,
    ) -> ResearchResult:
        """Answer ``question`` with the configured strategy.

        ``knowledge`` seeds the run with the ``knowledge`` of an earlier result.
        ``timeout`` bounds the whole call; on expiry the in-flight provider call
        is cancelled and ``TimeoutError`` propagates.
        """
        context = AnswerContext(prior_knowledge=knowledge or "")
        strategy = self.registry.create(self.strategy, self)
        log_service.log_event(
            "answer_start",
            f"Running {self.strategy} strategy",
            run_id=context.run_id,
            question=question[:200],
        )

        run = strategy.answer(question, context)
        if timeout is not None:
            result = await asyncio.wait_for(run, timeout=timeout)
        else:
            result = await run

        log_service.log_event(
            "answer_done",
            f"{self.strategy} strategy finished",
            run_id=context.run_id,
            cost=result.cost,
            exhausted=result.exhausted,
        )
        if self.debug:
            logger.debug(f"[{context.run_id}] knowledge:\n{result.knowledge}")
        return result
