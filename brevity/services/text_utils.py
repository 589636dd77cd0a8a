from __future__ import annotations

import re

# Phrases that usually open the "how to format the answer" tail of a question.
FORMAT_MARKERS = (
    "format instructions",
    "formatting instructions",
    "format your answer",
    "format your response",
    "output format",
    "answer format",
    "response format",
    "respond in the following format",
    "respond in json",
    "respond with json",
    "return your answer",
    "return the answer as",
    "output json",
    "in json format",
)

SENTENCE_END_RE = re.compile(r"[.!?](?=\s|$)")


def split_format_instructions(question: str) -> tuple[str, str]:
    """Split a question into (body, trailing format-instructions segment).

    The segment starts at the earliest marker phrase. When no marker is found,
    or the marker opens the question, the segment is empty.
    """
    lowered = question.lower()
    positions = [pos for pos in (lowered.find(marker) for marker in FORMAT_MARKERS) if pos > 0]
    if not positions:
        return question.strip(), ""
    cut = min(positions)
    body = question[:cut].strip()
    if not body:
        return question.strip(), ""
    return body, question[cut:].strip()


def truncate_words(text: str, max_chars: int) -> str:
    """Truncate at the last word boundary that fits in ``max_chars``."""
    text = text.strip()
    if max_chars <= 0 or len(text) <= max_chars:
        return text
    clipped = text[:max_chars]
    space = clipped.rfind(" ")
    if space > max_chars // 2:
        clipped = clipped[:space]
    return clipped.rstrip(" ,;:-")


def truncate_at_sentence(text: str, max_chars: int) -> str:
    """Truncate to ``max_chars``, preferring to end on a full sentence."""
    text = text.strip()
    if max_chars <= 0 or len(text) <= max_chars:
        return text
    clipped = text[:max_chars]
    ends = [match.end() for match in SENTENCE_END_RE.finditer(clipped)]
    if ends and ends[-1] > max_chars // 3:
        return clipped[: ends[-1]].strip()
    return truncate_words(text, max_chars)
