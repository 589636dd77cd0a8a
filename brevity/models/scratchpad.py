from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class Scratchpad:
    """Working state of one scratchpad run.

    ``knowledge`` is always overwritten wholesale by the synthesizer; raw search
    output never lands here.
    """

    original_question: str
    current_step: str = ""
    knowledge: str = ""
    history: list[str] = field(default_factory=list)
    iteration_count: int = 0

    def __post_init__(self) -> None:
        self.original_question = self.original_question.strip()

    def append_history(self, entry: str) -> None:
        if not entry:
            return
        self.history.append(entry)

    def snapshot(self) -> str:
        parts = [
            f"Question: \n{self.original_question}",
            f"Current Step:\n{self.current_step or '(none yet)'}",
            f"Knowledge:\n{self.knowledge if self.knowledge.strip() else '(empty)'}",
        ]
        if self.history:
            parts.append("History:\n" + "\n".join(self.history))
        parts.append(f"Iteration: {self.iteration_count}")
        return "\n\n".join(parts)
