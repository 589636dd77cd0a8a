"""Error hierarchy for research runs.

Everything raised on purpose by brevity derives from ``ResearchError`` so a
caller can catch the whole family at once. ``ExhaustionError`` is the odd one
out: strategies never raise it, they attach it to ``ResearchResult.warning``.
"""

from __future__ import annotations

from typing import Any


class ResearchError(Exception):
    """Base class for brevity errors."""

    def __init__(self, message: str = "", details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.details: dict[str, Any] = details or {}


class ValidationError(ResearchError):
    """The question (or another caller input) is unusable."""


class ConfigError(ResearchError):
    """A required capability or setting is missing."""


class UnknownStrategyError(ConfigError):
    """No strategy is registered under the requested name."""

    def __init__(self, name: str, available: list[str]) -> None:
        super().__init__(
            f"unknown strategy: {name!r} (available: {', '.join(available) or 'none'})",
            details={"name": name, "available": available},
        )
        self.name = name
        self.available = available


class ParseError(ResearchError):
    """Model output could not be turned into the expected structure."""

    def __init__(self, message: str, raw: str = "", details: dict[str, Any] | None = None) -> None:
        super().__init__(message, details)
        self.raw = raw


class ProviderError(ResearchError):
    """A search, fetch or generate call failed."""

    def __init__(self, message: str, role: str = "", details: dict[str, Any] | None = None) -> None:
        super().__init__(message, details)
        self.role = role


class FinalizationError(ProviderError):
    """The finalizer produced no usable text and there was nothing to fall back on."""


class ExhaustionError(ResearchError):
    """The iteration or step budget ran out before a confident answer."""

    def __init__(self, message: str, budget: int = 0) -> None:
        super().__init__(message, details={"budget": budget})
        self.budget = budget
