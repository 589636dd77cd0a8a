from __future__ import annotations

from typing import Any

import httpx

from brevity.config import settings
from brevity.errors import ConfigError
from brevity.models.capabilities import SearchResult

BRAVE_SEARCH_URL = "https://api.search.brave.com/res/v1/web/search"


def map_results(payload: dict[str, Any]) -> list[SearchResult]:
    raw_results = payload.get("web", {}).get("results", []) or []
    mapped: list[SearchResult] = []
    for item in raw_results:
        snippets = item.get("extra_snippets", []) or []
        description = item.get("description", "") or ""
        snippet = description.strip() or " ".join(snippets).strip()
        mapped.append(
            SearchResult(
                title=item.get("title", "") or "",
                url=item.get("url", "") or "",
                snippet=snippet,
            )
        )
    return mapped


class BraveSearcher:
    def __init__(
        self,
        *,
        api_key: str | None = None,
        max_results: int | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.api_key = api_key if api_key is not None else settings.brave_api_key
        if not self.api_key:
            raise ConfigError("BRAVE_API_KEY is not configured")
        self.max_results = max_results or int(settings.search_max_results)
        self.http_client = http_client

    async def _get(self, client: httpx.AsyncClient, query: str) -> dict[str, Any]:
        response = await client.get(
            BRAVE_SEARCH_URL,
            params={"q": query, "count": self.max_results},
            headers={
                "Accept": "application/json",
                "X-Subscription-Token": self.api_key,
            },
        )
        response.raise_for_status()
        payload = response.json()
        return payload if isinstance(payload, dict) else {}

    async def search(self, query: str) -> list[SearchResult]:
        """Execute a Brave web search and normalize results."""
        if self.http_client is None:
            async with httpx.AsyncClient(timeout=30.0) as client:
                payload = await self._get(client, query)
        else:
            payload = await self._get(self.http_client, query)
        return map_results(payload)
