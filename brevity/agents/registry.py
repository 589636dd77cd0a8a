from __future__ import annotations

from typing import TYPE_CHECKING, Callable

from brevity.errors import UnknownStrategyError

if TYPE_CHECKING:
    from brevity.agents.base import BaseStrategy
    from brevity.agents.orchestrator import ResearchOrchestrator

StrategyFactory = Callable[["ResearchOrchestrator"], "BaseStrategy"]


class StrategyRegistry:
    """Maps strategy names to constructors; lookups happen per call."""

    def __init__(self) -> None:
        self._factories: dict[str, StrategyFactory] = {}

    def register(self, name: str) -> Callable[[StrategyFactory], StrategyFactory]:
        key = name.strip().lower()

        def decorator(factory: StrategyFactory) -> StrategyFactory:
            self._factories[key] = factory
            return factory

        return decorator

    def names(self) -> list[str]:
        return sorted(self._factories)

    def create(self, name: str, orchestrator: ResearchOrchestrator) -> BaseStrategy:
        factory = self._factories.get(name.strip().lower())
        if factory is None:
            raise UnknownStrategyError(name, self.names())
        return factory(orchestrator)


strategy_registry = StrategyRegistry()
