from __future__ import annotations

from unittest.mock import patch

import httpx
import pytest

from brevity.tools.content_extractor import TRUNCATION_MARKER, extract_main_content
from brevity.tools.http_fetcher import HttpFetcher

PAGE = """
<html>
  <head><title>Eiffel Tower</title><script>var tracker = 1;</script></head>
  <body>
    <nav>Home | About | Contact</nav>
    <p>The Eiffel Tower was completed in March 1889.</p>
    <footer>Copyright footer</footer>
  </body>
</html>
"""


def test_soup_fallback_strips_boilerplate():
    with patch("brevity.tools.content_extractor._extract_with_trafilatura", return_value=""):
        extracted = extract_main_content("https://a.example", PAGE)

    assert extracted.method == "soup"
    assert extracted.title == "Eiffel Tower"
    assert "completed in March 1889" in extracted.text
    assert "tracker" not in extracted.text
    assert "About" not in extracted.text
    assert "Copyright" not in extracted.text


def test_trafilatura_text_is_preferred_when_long_enough():
    article = "Paragraph about the tower. " * 20
    with patch("brevity.tools.content_extractor._extract_with_trafilatura", return_value=article.strip()):
        extracted = extract_main_content("https://a.example", PAGE)

    assert extracted.method == "trafilatura"
    assert extracted.text == article.strip()


def test_plain_text_is_normalized_and_truncated():
    extracted = extract_main_content("https://a.example/notes.txt", "alpha\t beta\r\n\n\n\ngamma " * 10, max_chars=20)

    assert extracted.method == "raw"
    assert extracted.text.endswith(TRUNCATION_MARKER)
    assert extracted.text.startswith("alpha beta\n\ngamma")
    assert extracted.extracted_length == 20 + len(TRUNCATION_MARKER)


@pytest.mark.asyncio
async def test_http_fetcher_returns_main_text():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, text=PAGE, headers={"content-type": "text/html"})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        with patch("brevity.tools.content_extractor._extract_with_trafilatura", return_value=""):
            text = await HttpFetcher(http_client=client, max_chars=1000).fetch(" https://a.example/tower ")

    assert "completed in March 1889" in text
    assert str(seen[0].url) == "https://a.example/tower"
    assert "Mozilla" in seen[0].headers["User-Agent"]


@pytest.mark.asyncio
async def test_http_fetcher_raises_on_error_status():
    async with httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(404))) as client:
        with pytest.raises(httpx.HTTPStatusError):
            await HttpFetcher(http_client=client).fetch("https://a.example/missing")


@pytest.mark.asyncio
async def test_http_fetcher_rejects_empty_url():
    with pytest.raises(ValueError):
        await HttpFetcher().fetch("  ")
