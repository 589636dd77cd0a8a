from __future__ import annotations

import asyncio
from urllib.parse import parse_qs, urljoin, urlparse

import httpx
from bs4 import BeautifulSoup
from loguru import logger

from brevity.config import settings
from brevity.models.capabilities import SearchResult
from brevity.tools.http_fetcher import USER_AGENT
from brevity.tools.web_utils import is_valid_url

DUCKDUCKGO_LITE_URL = "https://lite.duckduckgo.com/lite/"
MAX_BACKOFF_SECONDS = 30.0


def _resolve_link(href: str) -> str:
    """Unwrap DuckDuckGo's ``/l/?uddg=`` redirect links."""
    href = (href or "").strip()
    if not href:
        return ""
    absolute = urljoin(DUCKDUCKGO_LITE_URL, href)
    parsed = urlparse(absolute)
    if parsed.netloc.endswith("duckduckgo.com") and parsed.path.startswith("/l/"):
        target = parse_qs(parsed.query).get("uddg", [""])[0]
        return target.strip()
    return absolute


def _clean(text: str) -> str:
    return " ".join(text.split())


def _fallback_results(soup: BeautifulSoup, limit: int) -> list[SearchResult]:
    results: list[SearchResult] = []
    seen: set[str] = set()
    for anchor in soup.find_all("a", href=True):
        url = _resolve_link(anchor["href"])
        title = _clean(anchor.get_text(" "))
        if not is_valid_url(url) or "duckduckgo.com" in urlparse(url).netloc:
            continue
        if len(title) < 5 or url in seen:
            continue
        seen.add(url)
        results.append(SearchResult(title=title, url=url, snippet=""))
        if len(results) >= limit:
            break
    return results


def parse_lite_results(html: str, limit: int = 5) -> list[SearchResult]:
    """Parse result rows from the DuckDuckGo lite page.

    Result links carry the ``result-link`` class and their snippets sit in
    ``td.result-snippet`` cells in the same order. When the markup has no such
    links, any external anchor with a meaningful title is taken instead.
    """
    soup = BeautifulSoup(html, "html.parser")
    links = soup.select("a.result-link")
    snippets = [_clean(cell.get_text()) for cell in soup.select("td.result-snippet")]

    results: list[SearchResult] = []
    for index, anchor in enumerate(links):
        url = _resolve_link(anchor.get("href", ""))
        title = _clean(anchor.get_text(" "))
        if not url or not title:
            continue
        snippet = snippets[index] if index < len(snippets) else ""
        results.append(SearchResult(title=title, url=url, snippet=snippet))
        if len(results) >= limit:
            break

    if not results:
        results = _fallback_results(soup, limit)
    return results


class DuckDuckGoSearcher:
    """Keyless searcher that scrapes the DuckDuckGo lite HTML interface.

    Callers should go through ``build_searcher`` so queries stay at or below
    one per second across the process.
    """

    def __init__(
        self,
        *,
        max_results: int | None = None,
        timeout_seconds: float = 15.0,
        max_retries: int = 4,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.max_results = max_results or int(settings.search_max_results)
        self.timeout_seconds = timeout_seconds
        self.max_retries = max(max_retries, 0)
        self.http_client = http_client

    async def _post(self, client: httpx.AsyncClient, query: str) -> str:
        delay = 1.0
        for attempt in range(self.max_retries + 1):
            response = await client.post(
                DUCKDUCKGO_LITE_URL,
                data={"q": query},
                headers={"User-Agent": USER_AGENT},
            )
            if response.status_code != 429 or attempt == self.max_retries:
                break
            logger.warning(f"DuckDuckGo rate limited, retrying in {delay:.0f}s")
            await asyncio.sleep(delay)
            delay = min(delay * 2, MAX_BACKOFF_SECONDS)
        response.raise_for_status()
        return response.text

    async def search(self, query: str) -> list[SearchResult]:
        """Run one DuckDuckGo lite query and parse the result rows."""
        query = (query or "").strip()
        if not query:
            raise ValueError("search query is empty")

        if self.http_client is None:
            async with httpx.AsyncClient(timeout=self.timeout_seconds, follow_redirects=True) as client:
                html = await self._post(client, query)
        else:
            html = await self._post(self.http_client, query)
        return parse_lite_results(html, self.max_results)
