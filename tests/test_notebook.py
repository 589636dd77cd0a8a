from __future__ import annotations

import json

import pytest
from pydantic import ValidationError as SchemaValidationError

from brevity.models.graph import GraphState, Node, RationalPlan
from brevity.models.notebook import AtomicFact, Notebook, dedupe_texts
from brevity.models.scratchpad import Scratchpad


def test_new_content_adds_exactly_one_fact_with_id_and_timestamp():
    notebook = Notebook()
    added = notebook.add_facts([{"content": "  Rayleigh scattering favours short wavelengths. "}])

    assert len(notebook) == 1
    assert added[0].id == "fact-1"
    assert added[0].content == "Rayleigh scattering favours short wavelengths."
    assert added[0].timestamp > 0


@pytest.mark.parametrize(
    "candidate",
    [
        "rayleigh scattering favours short wavelengths.",
        "Rayleigh scattering",
        "Rayleigh scattering favours short wavelengths. Blue light scatters most.",
    ],
)
def test_equal_contained_or_containing_content_is_a_duplicate(candidate):
    notebook = Notebook(["Rayleigh scattering favours short wavelengths."])
    assert notebook.add_facts([candidate]) == []
    assert len(notebook) == 1


def test_empty_content_is_skipped():
    notebook = Notebook()
    assert notebook.add_facts(["   ", {"content": None}]) == []
    assert len(notebook) == 0


def test_duplicates_inside_one_batch_are_dropped():
    notebook = Notebook()
    notebook.add_facts(["The sky is blue", "the SKY is blue", "Sunsets are red"])
    assert notebook.contents() == ["The sky is blue", "Sunsets are red"]


def test_colliding_or_missing_ids_are_replaced():
    notebook = Notebook()
    notebook.add_facts([AtomicFact(id="fact-2", content="first")])
    added = notebook.add_facts(
        [
            AtomicFact(id="fact-2", content="second"),
            AtomicFact(content="third"),
        ]
    )
    ids = [fact.id for fact in notebook]
    assert len(set(ids)) == 3
    assert ids[0] == "fact-2"
    assert [fact.id for fact in added] == ["fact-3", "fact-4"]


def test_supplied_timestamp_and_source_are_kept():
    notebook = Notebook()
    notebook.add_facts([{"content": "c", "source_url": " https://a.example ", "timestamp": 1700000000}])
    fact = notebook.facts[0]
    assert fact.source_url == "https://a.example"
    assert fact.timestamp == 1700000000


def test_atomic_fact_is_frozen():
    fact = AtomicFact(content="x")
    with pytest.raises(SchemaValidationError):
        fact.content = "y"


def test_to_json_round_trips_through_from_knowledge():
    notebook = Notebook([{"content": "A", "source_url": "https://a.example"}, "B"])
    payload = json.loads(notebook.to_json())
    assert [set(item) for item in payload] == [{"id", "content", "source_url", "timestamp"}] * 2

    restored = Notebook.from_knowledge(notebook.to_json())
    assert restored.contents() == ["A", "B"]
    assert [fact.id for fact in restored] == ["fact-1", "fact-2"]


def test_from_knowledge_wraps_free_text_as_one_fact():
    restored = Notebook.from_knowledge("The sky is blue because of Rayleigh scattering.")
    assert restored.contents() == ["The sky is blue because of Rayleigh scattering."]


def test_from_knowledge_empty_text_gives_empty_notebook():
    assert len(Notebook.from_knowledge("   ")) == 0
    assert len(Notebook.from_knowledge(None)) == 0


def test_dedupe_texts_applies_containment_policy():
    assert dedupe_texts(["Alpha beta", "alpha", "Gamma", "", "gamma delta"]) == ["Alpha beta", "Gamma"]


def test_graph_state_never_enqueues_twice():
    state = GraphState(plan=RationalPlan(original_question="q"))
    assert state.enqueue(Node(name="a"))
    assert not state.enqueue(Node(name="a"))
    node = state.dequeue()
    state.mark_visited(node.name)
    assert not state.enqueue(Node(name="a"))
    assert not state.enqueue(Node(name="  "))
    assert list(state.queue) == []


def test_scratchpad_snapshot_and_history():
    pad = Scratchpad(original_question="  Why is the sky blue? ")
    pad.append_history("")
    assert pad.history == []
    assert pad.snapshot() == (
        "Question: \nWhy is the sky blue?\n\nCurrent Step:\n(none yet)\n\nKnowledge:\n(empty)\n\nIteration: 0"
    )

    pad.append_history("search[1]: optical depth")
    pad.current_step = "Last query: optical depth"
    pad.knowledge = "Air scatters blue light."
    pad.iteration_count = 1
    snapshot = pad.snapshot()
    assert "History:\nsearch[1]: optical depth" in snapshot
    assert snapshot.endswith("Iteration: 1")
