from __future__ import annotations

from urllib.parse import urlparse

# Substrings of ad redirects and click trackers that show up in search results.
AD_TRACKER_PATTERNS = (
    "duckduckgo.com/y.js",
    "ad_domain=",
    "ad_provider=",
    "ad_type=",
    "doubleclick.net",
    "googlesyndication.com",
    "googleadservices.com",
    "click.linksynergy.com",
    "redirect.viglink.com",
    "/aclk?",
    "amazon-adsystem.com",
    "ads.yahoo.com",
    "clickserve",
    "tracking.php",
)


def is_valid_url(url: str) -> bool:
    """Basic URL validation."""
    try:
        result = urlparse(url)
        return all([result.scheme in ("http", "https"), result.netloc])
    except Exception:
        return False


def is_ad_or_tracker_url(url: str) -> bool:
    lowered = url.lower()
    return any(pattern in lowered for pattern in AD_TRACKER_PATTERNS)
