from __future__ import annotations

import json
import time
from typing import Any, Iterable, Iterator

from loguru import logger
from pydantic import BaseModel, ConfigDict, field_validator


class AtomicFact(BaseModel):
    """One self-contained piece of evidence, immutable once recorded."""

    model_config = ConfigDict(frozen=True)

    id: str = ""
    content: str
    source_url: str = ""
    timestamp: int = 0

    @field_validator("id", "content", "source_url", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        if value is None:
            return ""
        return value

    @field_validator("timestamp", mode="before")
    @classmethod
    def _none_to_zero(cls, value: Any) -> Any:
        if value is None or value == "":
            return 0
        return value


FactLike = AtomicFact | dict[str, Any] | str


def _is_duplicate(candidate: str, existing: Iterable[str]) -> bool:
    for seen in existing:
        if candidate == seen or candidate in seen or seen in candidate:
            return True
    return False


def dedupe_texts(texts: Iterable[str]) -> list[str]:
    """Drop blank strings and any string equal to, contained in, or containing an earlier one."""
    kept: list[str] = []
    lowered: list[str] = []
    for text in texts:
        cleaned = (text or "").strip()
        if not cleaned:
            continue
        key = cleaned.lower()
        if _is_duplicate(key, lowered):
            continue
        kept.append(cleaned)
        lowered.append(key)
    return kept


class Notebook:
    """Append-only, deduplicating list of atomic facts."""

    def __init__(self, facts: Iterable[FactLike] | None = None) -> None:
        self._facts: list[AtomicFact] = []
        self._ids: set[str] = set()
        if facts:
            self.add_facts(facts)

    def __len__(self) -> int:
        return len(self._facts)

    def __iter__(self) -> Iterator[AtomicFact]:
        return iter(self._facts)

    def __bool__(self) -> bool:
        return bool(self._facts)

    @property
    def facts(self) -> list[AtomicFact]:
        return list(self._facts)

    def _next_id(self) -> str:
        index = len(self._facts) + 1
        while f"fact-{index}" in self._ids:
            index += 1
        return f"fact-{index}"

    @staticmethod
    def _coerce(candidate: FactLike) -> AtomicFact:
        if isinstance(candidate, AtomicFact):
            return candidate
        if isinstance(candidate, str):
            return AtomicFact(content=candidate)
        return AtomicFact.model_validate(candidate)

    def add_facts(self, candidates: Iterable[FactLike]) -> list[AtomicFact]:
        """Merge candidates into the notebook and return the ones actually added."""
        added: list[AtomicFact] = []
        for candidate in candidates:
            fact = self._coerce(candidate)
            content = fact.content.strip()
            if not content:
                continue
            if _is_duplicate(content.lower(), (existing.content.lower() for existing in self._facts)):
                logger.debug(f"Skipping duplicate fact: {content[:80]}")
                continue

            fact_id = fact.id.strip()
            if not fact_id or fact_id in self._ids:
                fact_id = self._next_id()
            stored = fact.model_copy(
                update={
                    "id": fact_id,
                    "content": content,
                    "source_url": fact.source_url.strip(),
                    "timestamp": fact.timestamp or int(time.time()),
                }
            )
            self._facts.append(stored)
            self._ids.add(fact_id)
            added.append(stored)
        return added

    def contents(self) -> list[str]:
        return [fact.content for fact in self._facts]

    def to_json(self) -> str:
        return json.dumps([fact.model_dump() for fact in self._facts], ensure_ascii=False)

    def render(self) -> str:
        """Bullet list used inside prompts."""
        if not self._facts:
            return "(empty)"
        lines = []
        for fact in self._facts:
            source = f" ({fact.source_url})" if fact.source_url else ""
            lines.append(f"- {fact.content}{source}")
        return "\n".join(lines)

    @classmethod
    def from_knowledge(cls, text: str | None) -> "Notebook":
        """Rebuild a notebook from a previous run's knowledge.

        Accepts the JSON array produced by ``to_json``; anything else becomes a
        single fact wrapping the whole text.
        """
        notebook = cls()
        cleaned = (text or "").strip()
        if not cleaned:
            return notebook
        try:
            payload = json.loads(cleaned)
        except json.JSONDecodeError:
            payload = None

        if isinstance(payload, list):
            items = [item for item in payload if isinstance(item, (dict, str))]
            try:
                notebook.add_facts(items)
                return notebook
            except ValueError:
                # malformed entries: keep the raw text instead
                notebook = cls()
        notebook.add_facts([cleaned])
        return notebook
