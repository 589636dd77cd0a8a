from __future__ import annotations

import json

import pytest

from brevity.agents.graph_finalizer import compact_question
from brevity.agents.graph_reader import derive_research_goal
from brevity.agents.orchestrator import ResearchOrchestrator
from brevity.errors import FinalizationError, ParseError, ProviderError
from brevity.models.capabilities import LLMResponse, SearchResult
from brevity.models.graph import GraphReaderOptions, RationalPlan
from brevity.testing import ScriptedGenerator, StaticFetcher, StaticSearcher

QUESTION = "When was the Eiffel Tower completed?"
PLAN = json.dumps(
    {
        "research_goal": "Find when the Eiffel Tower was completed",
        "strategy": ["Search the construction history"],
        "key_elements": ["Eiffel Tower"],
    }
)
EMPTY_EXTRACT = '{"new_facts": [], "read_more_urls": []}'
ARTICLE = "The Eiffel Tower was built for the 1889 World's Fair in Paris. " * 5


def extract(*contents: str, urls: list[str] | None = None) -> str:
    return json.dumps(
        {
            "new_facts": [{"content": content, "source_url": "https://a.example"} for content in contents],
            "read_more_urls": urls or [],
        }
    )


def scripted(
    *,
    planner=None,
    extractor=None,
    navigator=None,
    validator=None,
    condenser=None,
    finalizer=None,
    retry=None,
    cost=0.0,
) -> ScriptedGenerator:
    return ScriptedGenerator(
        by_system={
            "research planner": planner or [PLAN, '["q1"]'],
            "research compressor": extractor or [EMPTY_EXTRACT],
            "research navigator": navigator or ["[]"],
            "research validator": validator or ['{"can_answer": false}'],
            "condense research facts": condenser or ["Condensed."],
            "synthesize a concise answer": finalizer or ["Final answer."],
            "one or two sentences": retry or ["Retry answer."],
        },
        cost=cost,
    )


def orchestrator(generator, *, searcher=None, fetcher=None, search_cost=0.0, **options) -> ResearchOrchestrator:
    return ResearchOrchestrator(
        planner=generator,
        synthesizer=generator,
        searcher=searcher or StaticSearcher(
            results=[SearchResult(title="Eiffel Tower", url="https://a.example", snippet="Completed in 1889.")]
        ),
        fetcher=fetcher,
        strategy="graph-reader",
        search_cost=search_cost,
        graph_options=GraphReaderOptions(**options),
        debug=False,
    )


@pytest.mark.asyncio
async def test_validator_waits_for_minimum_fact_count():
    generator = scripted(
        planner=[PLAN, '["q1", "q2", "q3"]'],
        extractor=[EMPTY_EXTRACT, extract("Fact one", "Fact two"), extract("Fact three")],
        validator=['{"can_answer": true}'],
        cost=0.25,
    )
    searcher = StaticSearcher()

    result = await orchestrator(
        generator, searcher=searcher, search_cost=0.5, min_facts_for_answer_check=3
    ).answer(QUESTION)

    assert searcher.queries == ["q1", "q2", "q3"]
    assert len(generator.calls_for("research validator")) == 1
    assert result.answer == "Final answer."
    assert [fact["content"] for fact in json.loads(result.knowledge)] == ["Fact one", "Fact two", "Fact three"]
    assert result.cost == 0.25 * len(generator.calls) + 0.5 * len(searcher.queries)
    assert result.warning is None


@pytest.mark.asyncio
async def test_ad_invalid_and_short_pages_are_not_read():
    urls = [
        "https://www.googleadservices.com/pagead/aclk?sa=L",
        "https://duckduckgo.com/y.js?ad_domain=shop.example",
        "not a url",
        "https://short.example/page",
        "https://good.example/article",
    ]
    generator = scripted(
        extractor=[extract("Fact A", urls=urls), '{"new_facts": [{"content": "Completed on 31 March 1889"}]}'],
    )
    fetcher = StaticFetcher(
        pages={"https://short.example/page": "Loading...", "https://good.example/article": ARTICLE}
    )

    result = await orchestrator(generator, fetcher=fetcher).answer(QUESTION)

    assert fetcher.fetched == ["https://short.example/page", "https://good.example/article"]
    assert len(generator.calls_for("research compressor")) == 2
    facts = json.loads(result.knowledge)
    assert facts[1] == {
        "id": "fact-2",
        "content": "Completed on 31 March 1889",
        "source_url": "https://good.example/article",
        "timestamp": facts[1]["timestamp"],
    }


@pytest.mark.asyncio
async def test_failed_search_skips_only_that_node():
    generator = scripted(planner=[PLAN, '["bad", "good"]'], extractor=[extract("Fact A")])
    searcher = StaticSearcher(fail_on={"bad"})

    result = await orchestrator(generator, searcher=searcher).answer(QUESTION)

    assert searcher.queries == ["bad", "good"]
    assert len(generator.calls_for("research compressor")) == 1
    assert len(generator.calls_for("research navigator")) == 1
    assert result.answer == "Final answer."


@pytest.mark.asyncio
async def test_unparseable_extraction_is_tolerated():
    generator = scripted(planner=[PLAN, '["q1", "q2"]'], extractor=["no json here", extract("Fact A")])

    result = await orchestrator(generator, searcher=StaticSearcher()).answer(QUESTION)

    assert [fact["content"] for fact in json.loads(result.knowledge)] == ["Fact A"]
    assert len(generator.calls_for("research navigator")) == 2


@pytest.mark.asyncio
async def test_neighbors_are_capped_deduplicated_and_deeper():
    generator = scripted(navigator=['["q1", "n1", "n2", "n3"]', "[]"])
    searcher = StaticSearcher()

    await orchestrator(generator, searcher=searcher, max_neighbors=3).answer(QUESTION)

    assert searcher.queries == ["q1", "n1", "n2"]
    assert "- q1" in generator.calls_for("research navigator")[1].user_prompt


@pytest.mark.asyncio
async def test_step_budget_exhaustion_is_reported_as_warning():
    generator = scripted(planner=[PLAN, '["q1", "q2"]'], extractor=[extract("Fact A")])
    searcher = StaticSearcher()

    result = await orchestrator(generator, searcher=searcher, max_steps=1).answer(QUESTION)

    assert searcher.queries == ["q1"]
    assert result.exhausted
    assert result.warning.budget == 1
    assert result.answer == "Final answer."


@pytest.mark.asyncio
async def test_plan_failures_are_fatal():
    with pytest.raises(ParseError):
        await orchestrator(scripted(planner=[PLAN, "no queries for you"])).answer(QUESTION)
    with pytest.raises(ProviderError):
        await orchestrator(scripted(planner=[RuntimeError("gateway 502")])).answer(QUESTION)


@pytest.mark.asyncio
async def test_missing_goal_is_derived_and_format_instructions_reach_finalizer():
    question = "What year was the Eiffel Tower completed? Format your answer as JSON with key year."
    generator = scripted(
        planner=['{"strategy": [], "key_elements": ["Eiffel Tower"]}', "[]"],
        extractor=[extract("Completed in 1889")],
    )
    searcher = StaticSearcher()

    await orchestrator(generator, searcher=searcher).answer(question)

    goal = "What year was the Eiffel Tower completed?"
    assert searcher.queries == [goal]
    final_prompt = generator.calls_for("synthesize a concise answer")[0].user_prompt
    assert f"{goal}\n\nFormat your answer as JSON with key year." in final_prompt
    assert "- Completed in 1889 (https://a.example)" in final_prompt


def test_research_goal_helpers():
    assert derive_research_goal("Who won? Output format: one name", 300) == "Who won?"
    assert len(derive_research_goal("word " * 200, 50)) <= 50
    plan = RationalPlan(original_question="Who won? Respond in JSON please", research_goal="Find the winner")
    assert compact_question(plan) == "Find the winner\n\nRespond in JSON please"


@pytest.mark.asyncio
async def test_prior_notebook_seeds_the_run():
    knowledge = json.dumps(
        [
            {"id": "fact-1", "content": "Seed fact one", "source_url": "", "timestamp": 1},
            {"id": "fact-2", "content": "Seed fact two", "source_url": "", "timestamp": 1},
            {"id": "fact-3", "content": "Seed fact three", "source_url": "", "timestamp": 1},
        ]
    )
    generator = scripted(validator=['{"can_answer": true}'])

    result = await orchestrator(generator, searcher=StaticSearcher()).answer(QUESTION, knowledge=knowledge)

    assert len(generator.calls_for("research validator")) == 1
    assert len(generator.calls_for("research navigator")) == 0
    assert [fact["id"] for fact in json.loads(result.knowledge)] == ["fact-1", "fact-2", "fact-3"]
    assert "- Seed fact one" in generator.calls_for("synthesize a concise answer")[0].user_prompt


@pytest.mark.asyncio
async def test_retry_feeds_reasoning_trace_when_finalizer_text_is_empty():
    generator = scripted(
        extractor=[extract("Completed in 1889")],
        finalizer=[LLMResponse(text="<think>Long analysis. The tower opened in 1889.</think>")],
        retry=["1889"],
    )

    result = await orchestrator(generator, searcher=StaticSearcher()).answer(QUESTION)

    assert result.answer == "1889"
    retry_call = generator.calls_for("one or two sentences")[0]
    assert "Long analysis. The tower opened in 1889." in retry_call.user_prompt


@pytest.mark.asyncio
async def test_finalizer_failure_counts_as_empty_attempt():
    generator = scripted(
        extractor=[extract("Completed in 1889")],
        finalizer=[RuntimeError("gateway 502")],
        retry=["Recovered answer."],
    )

    result = await orchestrator(generator, searcher=StaticSearcher()).answer(QUESTION)

    assert result.answer == "Recovered answer."
    assert "- Completed in 1889 (https://a.example)" in generator.calls_for("one or two sentences")[0].user_prompt


@pytest.mark.asyncio
async def test_empty_finalizer_falls_back_to_condensed_knowledge():
    generator = scripted(extractor=[extract("Completed in 1889")], finalizer=[""], retry=[""])

    result = await orchestrator(generator, searcher=StaticSearcher(), finalize_retries=2).answer(QUESTION)

    assert result.answer == "- Completed in 1889 (https://a.example)"
    assert len(generator.calls_for("synthesize a concise answer")) == 1
    assert len(generator.calls_for("one or two sentences")) == 2


@pytest.mark.asyncio
async def test_empty_finalizer_and_empty_notebook_raise():
    generator = scripted(finalizer=[""], retry=[""])

    with pytest.raises(FinalizationError) as excinfo:
        await orchestrator(generator, searcher=StaticSearcher(), finalize_retries=2).answer(QUESTION)
    assert "after 3 attempts" in str(excinfo.value)


@pytest.mark.asyncio
async def test_large_notebooks_are_condensed_in_batches():
    knowledge = json.dumps(["Seed fact one", "Seed fact two", "Seed fact three", "Seed fact four", "Seed fact five"])
    generator = scripted(condenser=["Paragraph one.", "", RuntimeError("gateway 502")])

    await orchestrator(
        generator,
        searcher=StaticSearcher(),
        direct_fact_threshold=2,
        condense_batch_size=2,
    ).answer(QUESTION, knowledge=knowledge)

    assert len(generator.calls_for("condense research facts")) == 3
    final_prompt = generator.calls_for("synthesize a concise answer")[0].user_prompt
    assert "Paragraph one.\n\n- Seed fact three\n- Seed fact four\n\n- Seed fact five" in final_prompt


@pytest.mark.asyncio
async def test_reasoning_channel_is_retry_input_not_the_answer():
    trace = "Let me think. The notebook says 1889. So the user wants a year."
    generator = scripted(
        extractor=[extract("Completed in 1889")],
        finalizer=[LLMResponse(text="", reasoning=trace)],
        retry=["1889"],
    )

    result = await orchestrator(generator, searcher=StaticSearcher()).answer(QUESTION)

    assert result.answer == "1889"
    retry_calls = generator.calls_for("one or two sentences")
    assert len(retry_calls) == 1
    assert trace in retry_calls[0].user_prompt
