from __future__ import annotations

import hashlib

from brevity.config import settings
from brevity.errors import ConfigError
from brevity.models.capabilities import Searcher
from brevity.tools.brave_search import BraveSearcher
from brevity.tools.duckduckgo_search import DuckDuckGoSearcher
from brevity.tools.rate_limit import RateLimitedSearcher
from brevity.tools.tavily_search import TavilySearcher

SUPPORTED_PROVIDERS = ("duckduckgo", "tavily", "brave")
# DuckDuckGo tolerates about one query per second per client, whatever the config says.
DUCKDUCKGO_MIN_INTERVAL = 1.0


def _gate_key(provider: str, api_key: str) -> str:
    digest = hashlib.sha256(api_key.encode("utf-8")).hexdigest()[:16]
    return f"{provider}:{digest}"


def build_searcher(provider: str | None = None) -> Searcher:
    """Build the configured search backend, rate limited per API key."""
    name = (provider or settings.search_provider).lower().strip()

    if name == "duckduckgo":
        interval = max(float(settings.search_min_interval_seconds), DUCKDUCKGO_MIN_INTERVAL)
        return RateLimitedSearcher(DuckDuckGoSearcher(), key="duckduckgo:global", min_interval=interval)
    if name == "tavily":
        searcher: Searcher = TavilySearcher()
        api_key = settings.tavily_api_key
    elif name == "brave":
        searcher = BraveSearcher()
        api_key = settings.brave_api_key
    else:
        raise ConfigError(
            f"Unsupported SEARCH_PROVIDER: {name!r} (supported: {', '.join(SUPPORTED_PROVIDERS)})"
        )

    interval = float(settings.search_min_interval_seconds)
    if interval <= 0:
        return searcher
    return RateLimitedSearcher(searcher, key=_gate_key(name, api_key), min_interval=interval)
