"""Shapes of the JSON the graph-reader roles are asked to return."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, field_validator

from brevity.errors import ParseError
from brevity.services.json_extract import parse_json


def _string_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        raise ValueError("expected a list of strings")
    return [str(item).strip() for item in value if isinstance(item, (str, int, float)) and str(item).strip()]


class PlanResponse(BaseModel):
    research_goal: str = ""
    strategy: list[str] = []
    key_elements: list[str] = []

    @field_validator("research_goal", mode="before")
    @classmethod
    def _goal(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("strategy", "key_elements", mode="before")
    @classmethod
    def _lists(cls, value: Any) -> list[str]:
        return _string_list(value)


class ExtractedFact(BaseModel):
    content: str = ""
    source_url: str = ""

    @field_validator("content", "source_url", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class ExtractResponse(BaseModel):
    new_facts: list[ExtractedFact] = []
    read_more_urls: list[str] = []

    @field_validator("new_facts", mode="before")
    @classmethod
    def _facts(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, list):
            # Some models return bare strings instead of objects.
            return [{"content": item} if isinstance(item, str) else item for item in value]
        return value

    @field_validator("read_more_urls", mode="before")
    @classmethod
    def _urls(cls, value: Any) -> list[str]:
        return _string_list(value)


class AnswerCheckResponse(BaseModel):
    can_answer: bool = False


QUERY_KEYS = ("query", "name", "q")


def parse_query_list(raw: str, *, label: str = "queries") -> list[str]:
    """Parse a JSON array of search queries.

    Also accepts ``{"queries": [...]}`` and arrays of ``{"query": ...}`` objects.
    """
    data = parse_json(raw, label=label)
    if isinstance(data, dict):
        for key in ("queries", "nodes", "neighbors"):
            if isinstance(data.get(key), list):
                data = data[key]
                break
    if not isinstance(data, list):
        raise ParseError(f"{label}: expected a JSON array (raw: {raw[:200]!r})", raw=raw)

    queries: list[str] = []
    for item in data:
        if isinstance(item, dict):
            item = next((item[key] for key in QUERY_KEYS if isinstance(item.get(key), str)), "")
        if isinstance(item, str) and item.strip():
            queries.append(item.strip())
    return queries
