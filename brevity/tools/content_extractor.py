from __future__ import annotations

import re
from dataclasses import dataclass

from bs4 import BeautifulSoup

from brevity.config import settings

TRUNCATION_MARKER = "\n[TRUNCATED]"
BOILERPLATE_TAGS = ("script", "style", "noscript", "nav", "header", "footer", "aside", "form")
MIN_PRIMARY_CHARS = 200


@dataclass
class ExtractedContent:
    url: str
    title: str
    text: str
    method: str
    raw_length: int
    extracted_length: int


def _normalize_text(text: str) -> str:
    text = text.replace("\xa0", " ")
    text = re.sub(r"\r\n?", "\n", text)
    text = re.sub(r"[ \t]+", " ", text)
    lines = [line.strip() for line in text.split("\n")]
    text = "\n".join(lines)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


def _truncate(text: str, max_chars: int) -> str:
    if max_chars <= 0 or len(text) <= max_chars:
        return text
    return text[:max_chars] + TRUNCATION_MARKER


def _looks_like_html(raw_content: str) -> bool:
    lowered = raw_content[:2000].lower()
    return "<html" in lowered or "<body" in lowered or "<div" in lowered or "<p" in lowered


def _extract_title(soup: BeautifulSoup) -> str:
    if soup.title and soup.title.string:
        return _normalize_text(soup.title.string)
    return ""


def _extract_with_trafilatura(raw_html: str) -> str:
    import trafilatura

    extracted = trafilatura.extract(raw_html, output_format="txt")
    if not isinstance(extracted, str):
        return ""
    return _normalize_text(extracted)


def _extract_with_soup(soup: BeautifulSoup) -> str:
    for tag in soup.find_all(list(BOILERPLATE_TAGS)):
        tag.decompose()
    return _normalize_text(soup.get_text("\n"))


def extract_main_content(
    url: str,
    raw_content: str,
    *,
    max_chars: int | None = None,
) -> ExtractedContent:
    """Extract readable text from a fetched page.

    Trafilatura handles article-like pages; when it returns little or nothing
    the page is stripped of boilerplate tags with BeautifulSoup instead.
    Plain-text payloads are only normalized.
    """
    target_chars = max_chars if max_chars is not None else int(settings.fetch_max_chars)

    if not _looks_like_html(raw_content):
        text = _truncate(_normalize_text(raw_content), target_chars)
        return ExtractedContent(
            url=url,
            title="",
            text=text,
            method="raw",
            raw_length=len(raw_content),
            extracted_length=len(text),
        )

    soup = BeautifulSoup(raw_content, "html.parser")
    title = _extract_title(soup)

    primary = _extract_with_trafilatura(raw_content)
    if len(primary) >= MIN_PRIMARY_CHARS:
        text, method = primary, "trafilatura"
    else:
        fallback = _extract_with_soup(soup)
        text, method = (fallback, "soup") if len(fallback) > len(primary) else (primary, "trafilatura")

    text = _truncate(text, target_chars)
    return ExtractedContent(
        url=url,
        title=title,
        text=text,
        method=method,
        raw_length=len(raw_content),
        extracted_length=len(text),
    )
