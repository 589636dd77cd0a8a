from __future__ import annotations

from typing import Any

from tavily import AsyncTavilyClient

from brevity.config import settings
from brevity.errors import ConfigError
from brevity.models.capabilities import SearchResult


class TavilySearcher:
    def __init__(
        self,
        *,
        api_key: str | None = None,
        search_depth: str | None = None,
        max_results: int | None = None,
        client: Any | None = None,
    ):
        self.api_key = api_key if api_key is not None else settings.tavily_api_key
        if not self.api_key and client is None:
            raise ConfigError("TAVILY_API_KEY is not configured")
        self.search_depth = search_depth or settings.tavily_search_depth
        self.max_results = max_results or int(settings.search_max_results)
        self.client = client or AsyncTavilyClient(api_key=self.api_key)

    async def search(self, query: str) -> list[SearchResult]:
        """Execute a Tavily web search and return structured results."""
        response = await self.client.search(
            query=query,
            search_depth=self.search_depth,
            max_results=self.max_results,
        )
        return [
            SearchResult(
                title=r.get("title", "") or "",
                url=r.get("url", "") or "",
                snippet=r.get("content", "") or "",
            )
            for r in response.get("results", [])
        ]
