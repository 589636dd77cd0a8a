from __future__ import annotations

import httpx

from brevity.config import settings
from brevity.tools.content_extractor import extract_main_content

USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class HttpFetcher:
    """Downloads a page and returns its main text content."""

    def __init__(
        self,
        *,
        timeout_seconds: float | None = None,
        max_chars: int | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.timeout_seconds = (
            timeout_seconds if timeout_seconds is not None else float(settings.fetch_timeout_seconds)
        )
        self.max_chars = max_chars if max_chars is not None else int(settings.fetch_max_chars)
        self.http_client = http_client

    async def _get(self, client: httpx.AsyncClient, url: str) -> httpx.Response:
        response = await client.get(url, headers={"User-Agent": USER_AGENT})
        response.raise_for_status()
        return response

    async def fetch(self, url: str) -> str:
        target = (url or "").strip()
        if not target:
            raise ValueError("fetch url is empty")

        if self.http_client is None:
            async with httpx.AsyncClient(timeout=self.timeout_seconds, follow_redirects=True) as client:
                response = await self._get(client, target)
        else:
            response = await self._get(self.http_client, target)

        extracted = extract_main_content(str(response.url), response.text, max_chars=self.max_chars)
        return extracted.text
