from __future__ import annotations

import json
import re
from typing import Any, Iterator, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as SchemaValidationError

from brevity.errors import ParseError

ModelT = TypeVar("ModelT", bound=BaseModel)

CODE_FENCE_RE = re.compile(r"```(?:json)?\s*\n(.*?)\n\s*```", re.DOTALL)
CLOSERS = {"{": "}", "[": "]"}


def extract_json(raw: str) -> str:
    """Return the JSON-looking part of a model response.

    Prefers a fenced code block. Otherwise slices from the first ``{`` or ``[``
    to the last matching closer in the rest of the text. Brackets are not
    balanced here; ``parse_json`` retries with a balanced scan when this slice
    does not parse.
    """
    match = CODE_FENCE_RE.search(raw)
    if match:
        return match.group(1).strip()

    start = -1
    for index, char in enumerate(raw):
        if char in CLOSERS:
            start = index
            break
    if start < 0:
        return raw

    end = raw.rfind(CLOSERS[raw[start]], start)
    if end < 0:
        return raw
    return raw[start : end + 1]


def iter_balanced_json(raw: str) -> Iterator[str]:
    """Yield every bracket-balanced ``{...}`` / ``[...]`` span, outermost first."""
    for start, char in enumerate(raw):
        if char not in CLOSERS:
            continue
        stack: list[str] = []
        in_string = False
        escaped = False
        for index in range(start, len(raw)):
            current = raw[index]
            if in_string:
                if escaped:
                    escaped = False
                elif current == "\\":
                    escaped = True
                elif current == '"':
                    in_string = False
                continue
            if current == '"':
                in_string = True
            elif current in CLOSERS:
                stack.append(CLOSERS[current])
            elif current in ("}", "]"):
                if not stack or stack.pop() != current:
                    break
                if not stack:
                    yield raw[start : index + 1]
                    break


def parse_json(raw: str, *, label: str = "response") -> Any:
    candidate = extract_json(raw)
    try:
        return json.loads(candidate)
    except json.JSONDecodeError as exc:
        first_error = exc

    for alternative in iter_balanced_json(raw):
        if alternative == candidate:
            continue
        try:
            return json.loads(alternative)
        except json.JSONDecodeError:
            continue

    raise ParseError(
        f"{label} JSON parse: {first_error} (raw: {raw[:200]!r})",
        raw=raw,
    ) from first_error


def parse_model(raw: str, model_cls: type[ModelT], *, label: str = "response") -> ModelT:
    data = parse_json(raw, label=label)
    try:
        return model_cls.model_validate(data)
    except SchemaValidationError as exc:
        raise ParseError(
            f"{label} JSON does not match {model_cls.__name__}: {exc.error_count()} error(s) (raw: {raw[:200]!r})",
            raw=raw,
        ) from exc
