from __future__ import annotations

from typing import Any

from loguru import logger

from brevity.agents.base import BaseStrategy
from brevity.agents.graph_finalizer import GraphFinalizer
from brevity.agents.registry import strategy_registry
from brevity.errors import ExhaustionError, ParseError, ProviderError
from brevity.models.capabilities import AnswerContext, ResearchResult, SearchResult
from brevity.models.graph import GraphState, Node, RationalPlan
from brevity.models.notebook import Notebook
from brevity.models.schemas import AnswerCheckResponse, ExtractResponse, PlanResponse, parse_query_list
from brevity.services import logger as log_service
from brevity.services.json_extract import parse_model
from brevity.services.prompt_store import bullet_list, render_prompt
from brevity.services.sanitizer import get_content
from brevity.services.text_utils import split_format_instructions, truncate_words
from brevity.tools import web_utils

MAX_INITIAL_NODES = 5


def derive_research_goal(question: str, max_chars: int) -> str:
    body, _ = split_format_instructions(question)
    return truncate_words(body, max_chars)


def format_snippets(results: list[SearchResult]) -> str:
    if not results:
        return "(no results returned)"
    blocks = []
    for index, result in enumerate(results, start=1):
        blocks.append(
            f"[{index}] {result.title.strip()}\nURL: {result.url.strip()}\n{result.snippet.strip()}"
        )
    return "\n\n".join(blocks)


@strategy_registry.register("graph-reader")
class GraphReaderStrategy(BaseStrategy):
    """Breadth-first exploration that fills a notebook with atomic facts.

    Every node is a search query. Each visit extracts facts from the snippets,
    optionally reads the pages the extractor asks for, checks whether the
    notebook already answers the goal, and queues follow-up queries.

    Failures inside a node (search, extraction, fetch, validator, navigator)
    are logged and the walk moves on; planning failures abort the call.
    """

    name = "graph-reader"

    def __init__(self, orchestrator):
        super().__init__(orchestrator)
        self.options = orchestrator.graph_options
        self._fetched_urls: set[str] = set()

    async def answer(self, question: str, context: AnswerContext) -> ResearchResult:
        question = self._require_question(question)
        orchestrator = self.orchestrator
        self._require(orchestrator.graph_planner, "graph planner")
        self._require(orchestrator.extractor, "extractor")
        self._require(orchestrator.navigator, "navigator")
        self._require(orchestrator.finalizer, "finalizer")
        self._require(orchestrator.searcher, "searcher")

        plan = await self._generate_plan(question, context)
        state = GraphState(plan=plan, notebook=Notebook.from_knowledge(context.prior_knowledge))
        if state.notebook:
            logger.info(f"[{context.run_id}] seeded notebook with {len(state.notebook)} prior fact(s)")

        for node in await self._generate_initial_nodes(plan, context):
            state.enqueue(node)

        steps = 0
        answered = False
        while state.queue and steps < self.options.max_steps:
            steps += 1
            node = state.dequeue()
            if node.name in state.visited:
                continue
            state.mark_visited(node.name)
            log_service.log_research_step(
                context.run_id,
                "node",
                "start",
                {"step": steps, "node": node.name, "depth": node.depth, "queued": len(state.queue)},
            )
            if await self._visit(state, node, context):
                answered = True
                break

        warning = None
        if not answered and state.queue and steps >= self.options.max_steps:
            warning = ExhaustionError(
                f"max steps ({self.options.max_steps}) reached with {len(state.queue)} node(s) still queued",
                budget=self.options.max_steps,
            )
            logger.warning(f"[{context.run_id}] {warning}")

        answer = await GraphFinalizer(self).finalize(state, context)
        return self._result(answer, state.notebook.to_json(), context, warning=warning)

    async def _generate_plan(self, question: str, context: AnswerContext) -> RationalPlan:
        response = await self._generate(
            "planner",
            self.orchestrator.graph_planner,
            render_prompt("graph.planner_system"),
            render_prompt("graph.plan_user", question=question),
            context=context,
        )
        parsed = parse_model(get_content(response, label="graph planner"), PlanResponse, label="graph planner")
        goal = parsed.research_goal.strip()
        if not goal:
            goal = derive_research_goal(question, self.options.research_goal_max_chars)
        plan = RationalPlan(
            original_question=question,
            research_goal=goal,
            strategy=parsed.strategy,
            key_elements=parsed.key_elements,
        )
        log_service.log_research_step(
            context.run_id,
            "plan",
            "done",
            {"research_goal": goal, "steps": len(plan.strategy), "key_elements": plan.key_elements},
        )
        return plan

    async def _generate_initial_nodes(self, plan: RationalPlan, context: AnswerContext) -> list[Node]:
        response = await self._generate(
            "planner",
            self.orchestrator.graph_planner,
            render_prompt("graph.planner_system"),
            render_prompt(
                "graph.initial_nodes_user",
                research_goal=plan.research_goal,
                strategy=bullet_list(plan.strategy),
                key_elements=bullet_list(plan.key_elements),
            ),
            context=context,
        )
        queries = parse_query_list(get_content(response, label="initial nodes"), label="initial nodes")
        nodes = [Node(name=query, rationale="initial", depth=0) for query in queries[:MAX_INITIAL_NODES]]
        if not nodes:
            logger.info(f"[{context.run_id}] no initial queries, starting from the research goal")
            nodes = [Node(name=plan.research_goal, rationale="initial", depth=0)]
        return nodes

    async def _visit(self, state: GraphState, node: Node, context: AnswerContext) -> bool:
        """Explore one node. Returns True when the notebook can answer the goal."""
        try:
            results = await self._search(node.name, context=context)
        except ProviderError as exc:
            self._tolerate("search", node, exc, context)
            return False

        try:
            extraction = await self._extract_from_snippets(state, node, results, context)
        except (ProviderError, ParseError) as exc:
            self._tolerate("extract", node, exc, context)
            extraction = None

        if extraction is not None:
            self._merge(state, [fact.model_dump() for fact in extraction.new_facts], node, context)
            await self._read_more(state, node, extraction.read_more_urls, context)

        if await self._can_answer(state, node, context):
            log_service.log_research_step(
                context.run_id, "answer_check", "sufficient", {"facts": len(state.notebook)}
            )
            return True

        await self._expand(state, node, context)
        return False

    async def _extract_from_snippets(
        self,
        state: GraphState,
        node: Node,
        results: list[SearchResult],
        context: AnswerContext,
    ) -> ExtractResponse:
        response = await self._generate(
            "extractor",
            self.orchestrator.extractor,
            render_prompt("graph.extractor_system"),
            render_prompt(
                "graph.extract_user",
                research_goal=state.plan.research_goal,
                node=node.name,
                snippets=format_snippets(results),
            ),
            context=context,
        )
        return parse_model(get_content(response, label="extractor"), ExtractResponse, label="extract")

    async def _read_more(
        self,
        state: GraphState,
        node: Node,
        urls: list[str],
        context: AnswerContext,
    ) -> None:
        if self.orchestrator.fetcher is None or not urls:
            return
        for url in urls:
            url = url.strip()
            if not web_utils.is_valid_url(url):
                logger.debug(f"[{context.run_id}] skipping invalid URL: {url!r}")
                continue
            if web_utils.is_ad_or_tracker_url(url):
                logger.info(f"[{context.run_id}] skipping ad/tracker URL: {url}")
                continue
            if url in self._fetched_urls:
                continue
            self._fetched_urls.add(url)

            try:
                content = await self._fetch(url, context=context)
            except ProviderError as exc:
                self._tolerate("fetch", node, exc, context)
                continue

            content = content.strip()
            if len(content) < self.options.min_page_chars:
                logger.debug(f"[{context.run_id}] skipping too-short page ({len(content)} chars): {url}")
                continue

            try:
                response = await self._generate(
                    "extractor",
                    self.orchestrator.extractor,
                    render_prompt("graph.extractor_system"),
                    render_prompt(
                        "graph.extract_text_user",
                        research_goal=state.plan.research_goal,
                        source_url=url,
                        content=content,
                    ),
                    context=context,
                )
                extraction = parse_model(
                    get_content(response, label="page extractor"),
                    ExtractResponse,
                    label="extract page",
                )
            except (ProviderError, ParseError) as exc:
                self._tolerate("extract_page", node, exc, context)
                continue

            facts = [
                {"content": fact.content, "source_url": fact.source_url or url}
                for fact in extraction.new_facts
            ]
            self._merge(state, facts, node, context)

    async def _can_answer(self, state: GraphState, node: Node, context: AnswerContext) -> bool:
        count = len(state.notebook)
        if count == 0:
            logger.debug(f"[{context.run_id}] notebook still empty, skipping answer check")
            return False
        if count < self.options.min_facts_for_answer_check:
            return False

        try:
            response = await self._generate(
                "validator",
                self.orchestrator.graph_planner,
                render_prompt("graph.validator_system"),
                render_prompt(
                    "graph.answer_check_user",
                    research_goal=state.plan.research_goal,
                    notebook=state.notebook.render(),
                ),
                context=context,
            )
            check = parse_model(get_content(response, label="validator"), AnswerCheckResponse, label="answer check")
        except (ProviderError, ParseError) as exc:
            self._tolerate("answer_check", node, exc, context)
            return False
        return check.can_answer

    async def _expand(self, state: GraphState, node: Node, context: AnswerContext) -> None:
        try:
            response = await self._generate(
                "navigator",
                self.orchestrator.navigator,
                render_prompt("graph.navigator_system"),
                render_prompt(
                    "graph.neighbors_user",
                    research_goal=state.plan.research_goal,
                    strategy=bullet_list(state.plan.strategy),
                    notebook=state.notebook.render(),
                    node=node.name,
                    visited=bullet_list(sorted(state.visited)),
                ),
                context=context,
            )
            queries = parse_query_list(get_content(response, label="navigator"), label="neighbors")
        except (ProviderError, ParseError) as exc:
            self._tolerate("neighbors", node, exc, context)
            return

        added = [
            query
            for query in queries[: self.options.max_neighbors]
            if state.enqueue(Node(name=query, rationale="neighbor", depth=node.depth + 1))
        ]
        log_service.log_research_step(
            context.run_id,
            "neighbors",
            "done",
            {"node": node.name, "proposed": len(queries), "queued": added},
        )

    def _merge(
        self,
        state: GraphState,
        facts: list[dict[str, Any]],
        node: Node,
        context: AnswerContext,
    ) -> None:
        added = state.notebook.add_facts(facts)
        log_service.log_research_step(
            context.run_id,
            "facts",
            "merged",
            {"node": node.name, "proposed": len(facts), "added": len(added), "total": len(state.notebook)},
        )

    @staticmethod
    def _tolerate(stage: str, node: Node, exc: Exception, context: AnswerContext) -> None:
        logger.warning(f"[{context.run_id}] {stage} failed for node {node.name!r}: {exc}")
