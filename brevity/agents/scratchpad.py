from __future__ import annotations

from loguru import logger

from brevity.agents.base import BaseStrategy
from brevity.agents.registry import strategy_registry
from brevity.errors import ExhaustionError, ParseError
from brevity.models.capabilities import AnswerContext, ResearchResult, SearchResult
from brevity.models.scratchpad import Scratchpad
from brevity.services import logger as log_service
from brevity.services.decision import PlannerAction, PlannerDecision, parse_planner_decision
from brevity.services.prompt_store import render_prompt
from brevity.services.sanitizer import get_content


def format_results(results: list[SearchResult]) -> str:
    if not results:
        return "(no results returned)"
    return "\n".join(
        f"{index}. {result.title.strip()} | {result.url.strip()} | {result.snippet.strip()}"
        for index, result in enumerate(results, start=1)
    )


@strategy_registry.register("scratchpad")
class ScratchpadStrategy(BaseStrategy):
    """Linear plan -> search -> synthesize loop over a single scratchpad.

    The planner may only answer once the knowledge section holds something
    grounded in a search. An early "answer" with empty knowledge triggers one
    forced search for the original question, which uses up that iteration.
    """

    name = "scratchpad"

    async def answer(self, question: str, context: AnswerContext) -> ResearchResult:
        question = self._require_question(question)
        orchestrator = self.orchestrator
        self._require(orchestrator.planner, "planner")
        self._require(orchestrator.synthesizer, "synthesizer")

        pad = Scratchpad(original_question=question, knowledge=context.prior_knowledge.strip())
        max_iterations = orchestrator.max_iterations

        for _ in range(max_iterations):
            pad.iteration_count += 1
            decision = await self._plan(pad, context)

            if decision.action is PlannerAction.ANSWER:
                if not pad.knowledge.strip():
                    logger.info(f"[{context.run_id}] planner answered with empty knowledge, forcing a search")
                    await self._search_and_synthesize(pad, question, context, forced=True)
                    continue
                answer = await self._finalize(pad, context)
                return self._result(answer, pad.knowledge, context)

            if decision.action is PlannerAction.SEARCH:
                await self._search_and_synthesize(pad, decision.query, context)
                continue

            raise ParseError(f"unknown planner action: {decision.action}")

        warning = ExhaustionError(
            f"max iterations ({max_iterations}) reached; returning best-effort answer",
            budget=max_iterations,
        )
        logger.warning(f"[{context.run_id}] {warning}")
        answer = await self._finalize(pad, context)
        return self._result(answer, pad.knowledge, context, warning=warning)

    async def _plan(self, pad: Scratchpad, context: AnswerContext) -> PlannerDecision:
        instructions_key = (
            "scratchpad.planner_instructions_known"
            if pad.knowledge.strip()
            else "scratchpad.planner_instructions_empty"
        )
        user_prompt = render_prompt(
            "scratchpad.planner_user",
            instructions=render_prompt(instructions_key),
            snapshot=pad.snapshot(),
        )
        response = await self._generate(
            "planner",
            self.orchestrator.planner,
            render_prompt("scratchpad.planner_system"),
            user_prompt,
            context=context,
        )
        decision = parse_planner_decision(get_content(response, label="planner"))
        log_service.log_research_step(
            context.run_id,
            "plan",
            "done",
            {"iteration": pad.iteration_count, "action": decision.action.value, "query": decision.query},
        )
        return decision

    async def _search_and_synthesize(
        self,
        pad: Scratchpad,
        query: str,
        context: AnswerContext,
        *,
        forced: bool = False,
    ) -> None:
        results = await self._search(query, context=context)
        suffix = " (forced)" if forced else ""
        pad.append_history(f"search[{pad.iteration_count}]: {query}{suffix}")

        user_prompt = render_prompt(
            "scratchpad.synthesizer_user",
            question=pad.original_question,
            knowledge=pad.knowledge.strip() or "(empty)",
            query=query,
            results=format_results(results),
        )
        response = await self._generate(
            "synthesizer",
            self.orchestrator.synthesizer,
            render_prompt("scratchpad.synthesizer_system"),
            user_prompt,
            context=context,
        )
        pad.knowledge = get_content(response, label="synthesizer")
        pad.current_step = f"Last query: {query}"

    async def _finalize(self, pad: Scratchpad, context: AnswerContext) -> str:
        finalizer = self._require(self.orchestrator.finalizer, "finalizer")
        user_prompt = render_prompt(
            "scratchpad.finalizer_user",
            question=pad.original_question,
            knowledge=pad.knowledge.strip() or "(empty)",
        )
        response = await self._generate(
            "finalizer",
            finalizer,
            render_prompt("scratchpad.finalizer_system"),
            user_prompt,
            context=context,
        )
        log_service.log_research_step(context.run_id, "finalize", "done", {"iteration": pad.iteration_count})
        return get_content(response, label="finalizer")
