from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from brevity.errors import ParseError

QUERY_LABEL_RE = re.compile(r"query\s*[:\-]\s*(.+)", re.IGNORECASE)
SEARCH_PREFIX_RE = re.compile(r"^search\s*[:\-]?\s*", re.IGNORECASE)


class PlannerAction(str, Enum):
    ANSWER = "answer"
    SEARCH = "search"


@dataclass(slots=True)
class PlannerDecision:
    action: PlannerAction
    query: str = ""


def parse_planner_decision(raw: str) -> PlannerDecision:
    """Turn free-text planner output into an action.

    Small models drift from the ``Action: ...`` format, so the rules are
    deliberately loose: a bare JSON object counts as an answer, and a search
    query is accepted from a ``Query:`` label, a ``Search ...`` line, or
    whatever follows the word "search".
    """
    trimmed = (raw or "").strip()
    lowered = trimmed.lower()

    if "action: answer" in lowered or lowered.startswith("answer"):
        return PlannerDecision(action=PlannerAction.ANSWER)

    if trimmed.startswith("{") and trimmed.endswith("}"):
        return PlannerDecision(action=PlannerAction.ANSWER)

    if "search" in lowered:
        query = extract_query(trimmed)
        if not query:
            raise ParseError("planner requested search but no query was found", raw=raw)
        return PlannerDecision(action=PlannerAction.SEARCH, query=query)

    raise ParseError(f"unable to parse planner output: {raw!r}", raw=raw)


def _clean_query(value: str) -> str:
    return value.strip().lstrip(":-").strip().strip("\"'`").strip()


def extract_query(raw: str) -> str:
    match = QUERY_LABEL_RE.search(raw)
    if match:
        query = _clean_query(match.group(1))
        if query:
            return query

    for line in raw.splitlines():
        stripped = line.strip()
        if stripped.lower().startswith("search"):
            query = _clean_query(SEARCH_PREFIX_RE.sub("", stripped, count=1))
            if query:
                return query

    index = raw.lower().find("search")
    if index >= 0:
        return _clean_query(raw[index + len("search") :])
    return ""
