"""Strip hidden reasoning from model output.

Reasoning models (qwen3, deepseek-r1 and friends) wrap their chain of thought in
``<think>`` tags, and some gateways return only a separate reasoning channel
with an empty content field. Everything that reads model text goes through
here before the text is treated as an answer, a decision or JSON.
"""

from __future__ import annotations

import re

from loguru import logger

from brevity.models.capabilities import LLMResponse

THINK_BLOCK_RE = re.compile(r"<(think|thinking)>(.*?)</\1>", re.DOTALL | re.IGNORECASE)
THINK_TAG_RE = re.compile(r"</?(?:think|thinking)>", re.IGNORECASE)


def strip_think_blocks(text: str | None) -> str:
    """Remove every think block and trim what is left."""
    if not text:
        return ""
    return THINK_BLOCK_RE.sub("", text).strip()


def get_content(response: LLMResponse, *, label: str = "") -> str:
    """Return the usable text of a response.

    Falls back to the reasoning channel when the primary text is empty after
    sanitizing. Returns ``""`` when both channels are empty.
    """
    text = strip_think_blocks(response.text)
    if text:
        return text
    reasoning = strip_think_blocks(response.reasoning)
    if reasoning:
        logger.debug(f"{label or 'response'}: text empty, using reasoning ({len(reasoning)} chars)")
        return reasoning
    return ""


def extract_reasoning(response: LLMResponse) -> str:
    """Return the reasoning trace of a response with the tags removed."""
    if response.reasoning and response.reasoning.strip():
        return THINK_TAG_RE.sub("", response.reasoning).strip()
    blocks = [match.group(2).strip() for match in THINK_BLOCK_RE.finditer(response.text or "")]
    return "\n".join(block for block in blocks if block)
