"""
Browser Header Profiles
=======================

Realistic browser request headers rotated across attempts so that origin
servers see different clients when a fetch is retried.
"""

import random
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple

_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8"
_NAVIGATE = {
    "Accept": _ACCEPT,
    "Accept-Language": "en-US,en;q=0.9",
    "Sec-Fetch-Site": "none",
    "Sec-Fetch-Mode": "navigate",
    "Sec-Fetch-User": "?1",
    "Sec-Fetch-Dest": "document",
}

BROWSER_HEADER_PROFILES: Tuple[Mapping[str, str], ...] = tuple(
    MappingProxyType(profile)
    for profile in (
        # Edge/Chrome on macOS
        {
            "User-Agent": "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
                          "(KHTML, like Gecko) Chrome/134.0.0.0 Safari/537.36 Edg/134.0.0.0",
            **_NAVIGATE,
            "Upgrade-Insecure-Requests": "1",
            "sec-ch-ua": '"Chromium";v="134", "Not_A Brand";v="24", "Microsoft Edge";v="134"',
            "sec-ch-ua-mobile": "?0",
            "sec-ch-ua-platform": '"macOS"',
        },
        # Firefox on macOS
        {
            "User-Agent": "Mozilla/5.0 (Macintosh; Intel Mac OS X 14.5; rv:129.0) Gecko/20100101 Firefox/129.0",
            **_NAVIGATE,
            "Upgrade-Insecure-Requests": "1",
        },
        # Safari on macOS
        {
            "User-Agent": "Mozilla/5.0 (Macintosh; Intel Mac OS X 14_5) AppleWebKit/605.1.15 "
                          "(KHTML, like Gecko) Version/17.5 Safari/605.1.15",
            **_NAVIGATE,
            "Upgrade-Insecure-Requests": "1",
        },
        # Mobile Safari on iPhone
        {
            "User-Agent": "Mozilla/5.0 (iPhone; CPU iPhone OS 17_5 like Mac OS X) AppleWebKit/605.1.15 "
                          "(KHTML, like Gecko) Version/17.5 Mobile/15E148 Safari/604.1",
            **_NAVIGATE,
            "sec-ch-ua-mobile": "?1",
            "sec-ch-ua-platform": '"iOS"',
        },
        # Chrome on Windows
        {
            "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
                          "(KHTML, like Gecko) Chrome/134.0.0.0 Safari/537.36",
            **_NAVIGATE,
            "Upgrade-Insecure-Requests": "1",
            "sec-ch-ua": '"Chromium";v="134", "Not_A Brand";v="24", "Google Chrome";v="134"',
            "sec-ch-ua-mobile": "?0",
            "sec-ch-ua-platform": '"Windows"',
        },
    )
)

FEED_ACCEPT = "application/rss+xml, application/atom+xml, application/xml, text/xml, */*;q=0.8"


def headers_for_attempt(attempt: int) -> Dict[str, str]:
    """Header profile for a 0-based attempt index."""
    return dict(BROWSER_HEADER_PROFILES[attempt % len(BROWSER_HEADER_PROFILES)])


def random_headers(rng: Optional[random.Random] = None) -> Dict[str, str]:
    """A randomly chosen header profile."""
    rng = rng or random
    return dict(rng.choice(BROWSER_HEADER_PROFILES))


def feed_headers(rng: Optional[random.Random] = None) -> Dict[str, str]:
    """Headers for feed retrieval: a browser user agent with a feed Accept."""
    headers = random_headers(rng)
    headers["Accept"] = FEED_ACCEPT
    return headers
