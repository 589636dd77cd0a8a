"""Answer synthesis for the graph reader.

Small models with tight output budgets often return nothing when handed a long
notebook, so finalization runs in phases: condense the notebook, ask once with
a compact question, retry with shrinking input, then fall back to the
condensed notes themselves.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from loguru import logger

from brevity.errors import FinalizationError, ProviderError
from brevity.models.capabilities import AnswerContext, LLMResponse
from brevity.models.graph import GraphState, RationalPlan
from brevity.models.notebook import Notebook, dedupe_texts
from brevity.services import logger as log_service
from brevity.services.prompt_store import render_prompt
from brevity.services.sanitizer import extract_reasoning, get_content, strip_think_blocks
from brevity.services.text_utils import split_format_instructions, truncate_at_sentence, truncate_words

if TYPE_CHECKING:
    from brevity.agents.graph_reader import GraphReaderStrategy


def fact_bullets(notebook: Notebook) -> list[str]:
    """Deduplicated ``- content (source)`` lines for every fact."""
    sources: dict[str, str] = {}
    for fact in notebook:
        sources.setdefault(fact.content.strip(), fact.source_url.strip())
    lines = []
    for content in dedupe_texts(fact.content for fact in notebook):
        source = sources.get(content, "")
        lines.append(f"- {content} ({source})" if source else f"- {content}")
    return lines


def compact_question(plan: RationalPlan) -> str:
    goal = plan.research_goal.strip() or plan.original_question.strip()
    _, format_segment = split_format_instructions(plan.original_question)
    if format_segment:
        return f"{goal}\n\n{format_segment}"
    return goal


class GraphFinalizer:
    def __init__(self, strategy: GraphReaderStrategy):
        self.strategy = strategy
        self.options = strategy.orchestrator.graph_options

    async def finalize(self, state: GraphState, context: AnswerContext) -> str:
        knowledge = await self.condense(state, context)
        question = compact_question(state.plan)

        response = await self._attempt(
            "graph.finalizer_system",
            render_prompt("graph.finalizer_user", question=question, knowledge=knowledge or "(empty)"),
            attempt=1,
            context=context,
        )
        text = strip_think_blocks(response.text) if response is not None else ""
        if text:
            return text
        reasoning = extract_reasoning(response) if response is not None else ""

        for retry in range(1, self.options.finalize_retries + 1):
            if reasoning:
                notes = truncate_at_sentence(reasoning, self.options.retry_knowledge_chars)
            else:
                notes = truncate_words(knowledge, self.options.retry_knowledge_chars // retry)
            logger.info(
                f"[{context.run_id}] finalizer returned no text, retry {retry} "
                f"({'reasoning' if reasoning else 'knowledge'} input, {len(notes)} chars)"
            )
            response = await self._attempt(
                "graph.finalizer_retry_system",
                render_prompt("graph.finalizer_retry_user", question=question, notes=notes or "(empty)"),
                attempt=retry + 1,
                context=context,
            )
            text = strip_think_blocks(response.text) if response is not None else ""
            if text:
                return text
            if response is not None:
                reasoning = extract_reasoning(response) or reasoning

        attempts = self.options.finalize_retries + 1
        if knowledge.strip():
            logger.warning(f"[{context.run_id}] finalizer empty after {attempts} attempts, returning condensed notes")
            return knowledge.strip()
        raise FinalizationError(f"finalizer produced no output after {attempts} attempts", role="finalizer")

    async def condense(self, state: GraphState, context: AnswerContext) -> str:
        lines = fact_bullets(state.notebook)
        if len(lines) <= self.options.direct_fact_threshold:
            return "\n".join(lines)

        size = self.options.condense_batch_size
        batches = [lines[start : start + size] for start in range(0, len(lines), size)]
        paragraphs: list[str] = []
        for index, batch in enumerate(batches, start=1):
            bullets = "\n".join(batch)
            try:
                response = await self.strategy._generate(
                    "condenser",
                    self.strategy.orchestrator.extractor,
                    render_prompt("graph.condenser_system"),
                    render_prompt(
                        "graph.condense_user",
                        research_goal=state.plan.research_goal,
                        facts=bullets,
                    ),
                    context=context,
                )
                paragraph = get_content(response, label="condenser")
            except ProviderError as exc:
                logger.warning(f"[{context.run_id}] condense batch {index} failed: {exc}")
                paragraph = ""
            paragraphs.append(paragraph or bullets)

        log_service.log_research_step(
            context.run_id,
            "condense",
            "done",
            {"facts": len(lines), "batches": len(batches)},
        )
        return "\n\n".join(paragraphs)

    async def _attempt(
        self,
        system_key: str,
        user_prompt: str,
        *,
        attempt: int,
        context: AnswerContext,
    ) -> LLMResponse | None:
        try:
            return await self.strategy._generate(
                "finalizer",
                self.strategy.orchestrator.finalizer,
                render_prompt(system_key),
                user_prompt,
                context=context,
            )
        except ProviderError as exc:
            logger.warning(f"[{context.run_id}] finalizer attempt {attempt} failed: {exc}")
            return None
