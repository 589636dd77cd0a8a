from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field

from brevity.config import settings
from brevity.models.notebook import Notebook


@dataclass(slots=True)
class Node:
    """A search query in the exploration graph; the name is its identity."""

    name: str
    rationale: str = ""
    depth: int = 0


@dataclass
class RationalPlan:
    original_question: str
    research_goal: str = ""
    strategy: list[str] = field(default_factory=list)
    key_elements: list[str] = field(default_factory=list)


@dataclass
class GraphState:
    plan: RationalPlan
    notebook: Notebook = field(default_factory=Notebook)
    queue: deque[Node] = field(default_factory=deque)
    visited: set[str] = field(default_factory=set)
    _queued: set[str] = field(default_factory=set, repr=False)

    def enqueue(self, node: Node) -> bool:
        """Queue ``node`` unless its name was already visited or queued."""
        name = node.name.strip()
        if not name or name in self.visited or name in self._queued:
            return False
        if name != node.name:
            node = Node(name=name, rationale=node.rationale, depth=node.depth)
        self.queue.append(node)
        self._queued.add(name)
        return True

    def dequeue(self) -> Node:
        node = self.queue.popleft()
        self._queued.discard(node.name)
        return node

    def mark_visited(self, name: str) -> None:
        self.visited.add(name)


@dataclass(slots=True)
class GraphReaderOptions:
    max_steps: int = 15
    min_facts_for_answer_check: int = 3
    min_page_chars: int = 200
    max_neighbors: int = 4
    direct_fact_threshold: int = 12
    condense_batch_size: int = 8
    finalize_retries: int = 2
    retry_knowledge_chars: int = 2000
    research_goal_max_chars: int = 300

    @classmethod
    def from_settings(cls) -> "GraphReaderOptions":
        return cls(
            max_steps=max(int(settings.graph_max_steps), 1),
            min_facts_for_answer_check=max(int(settings.graph_min_facts_for_answer_check), 1),
            min_page_chars=max(int(settings.graph_min_page_chars), 0),
            max_neighbors=max(int(settings.graph_max_neighbors), 0),
            direct_fact_threshold=max(int(settings.graph_direct_fact_threshold), 0),
            condense_batch_size=max(int(settings.graph_condense_batch_size), 1),
            finalize_retries=max(int(settings.graph_finalize_retries), 0),
            retry_knowledge_chars=max(int(settings.graph_retry_knowledge_chars), 100),
            research_goal_max_chars=max(int(settings.graph_research_goal_max_chars), 20),
        )
