from __future__ import annotations

from unittest.mock import patch

import pytest

import main
from brevity.agents.orchestrator import ResearchOrchestrator
from brevity.models.graph import GraphReaderOptions
from brevity.testing import ScriptedGenerator


def scripted_orchestrator(**overrides) -> ResearchOrchestrator:
    return ResearchOrchestrator(
        planner=ScriptedGenerator(["Action: Answer"]),
        synthesizer=ScriptedGenerator(["unused"]),
        finalizer=ScriptedGenerator(["Blue light scatters most."], cost=0.5),
        strategy=overrides.get("strategy", "scratchpad"),
        graph_options=GraphReaderOptions(),
    )


@pytest.mark.asyncio
async def test_run_research_prints_answer_and_cost(capsys):
    with patch.object(ResearchOrchestrator, "from_settings", side_effect=scripted_orchestrator) as factory:
        code = await main.run_research("Why is the sky blue?", strategy="scratchpad", knowledge="Rayleigh.")

    assert code == 0
    factory.assert_called_once_with(strategy="scratchpad")
    out = capsys.readouterr().out
    assert "Blue light scatters most." in out
    assert "Cost: $0.500000" in out


@pytest.mark.asyncio
async def test_run_research_reports_errors(capsys):
    with patch.object(ResearchOrchestrator, "from_settings", side_effect=scripted_orchestrator):
        code = await main.run_research("   ")

    assert code == 1
    assert "[!] Error:" in capsys.readouterr().out
