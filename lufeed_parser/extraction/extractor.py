"""
Page Extractor
==============

Fetches one web page and extracts Open Graph metadata, the best icon and the
page's readable text.

Retrieval rules:
- up to ``max_attempts`` GETs, each with the browser profile of its attempt
- transport errors and 429/503 answers are retried after an exponential
  backoff with jitter; the last attempt raises
- any other non-200 answer fails immediately
- when the page is not the site's home page, the home page is fetched as
  well to backfill whatever the page did not declare
"""

import asyncio
import codecs
import random
from typing import Optional

from bs4 import BeautifulSoup

from ..egress.client import EgressClient
from ..models import IconCandidate, WebsiteInformation
from ..recovery.retry_logic import RetryConfig, SleepFunc, calculate_backoff
from ..utils.exceptions import (
    DocumentDecodeError,
    DocumentParseError,
    FetchError,
    HTTPStatusError,
    LufeedError,
    RateLimitedError,
)
from ..utils.logging import get_logger_for_component
from ..utils.urls import home_url, join_url, normalize_page_url, resolve_url
from .browser import headers_for_attempt, random_headers
from .dom import extract_text, meta_content
from .icons import FALLBACK_ICON_PATHS, best_icon, iter_icon_candidates

RETRYABLE_STATUSES = (429, 503)


async def check_head(client: EgressClient, base_url: str, url: str,
                     rng: Optional[random.Random] = None) -> str:
    """Resolve ``url`` against ``base_url`` and validate it with a HEAD request.

    Returns:
        The resolved URL when the HEAD answered 200, otherwise an empty string
    """
    resolved = resolve_url(base_url, url)
    if not resolved:
        return ""

    logger = get_logger_for_component("page_extractor")
    try:
        response = await client.head(resolved, headers=random_headers(rng))
    except FetchError as e:
        logger.debug(f"HEAD check failed for {resolved}: {e}")
        return ""

    if response.status != 200:
        logger.debug(f"HEAD check for {resolved} returned {response.status}")
        return ""
    return resolved


class PageExtractor:
    """Extract website information from a single page."""

    def __init__(self,
                 client: EgressClient,
                 url: str,
                 host: str = "",
                 icon: bool = False,
                 sleep: Optional[SleepFunc] = None,
                 rng: Optional[random.Random] = None,
                 max_attempts: int = 3):
        """Initialize extractor.

        Args:
            client: Leased HTTP client used for every request
            url: Page URL (may be relative or lack a scheme)
            host: Absolute URL used to resolve host-less page URLs
            icon: Whether to look for the site icon
            sleep: Backoff sleep, ``asyncio.sleep`` by default
            rng: Random source for jitter and HEAD header profiles
            max_attempts: GET attempts per document
        """
        self.client = client
        self.url = url
        self.host = host
        self.icon = icon
        self.sleep = sleep or asyncio.sleep
        self.rng = rng
        self.retry_config = RetryConfig(max_attempts=max(1, max_attempts))
        self.logger = get_logger_for_component("page_extractor", feed_url=host or None)

    async def run(self) -> WebsiteInformation:
        """Fetch the page (and its home page when different) and extract information.

        Raises:
            InvalidURLError: If the page URL cannot be normalized
            RateLimitedError: If the page stayed rate limited
            HTTPStatusError: If the page answered another non-200 status
            FetchNetworkError, FetchTimeoutError: If transport kept failing
            DocumentDecodeError, DocumentParseError: If the body is unusable
        """
        page_url = normalize_page_url(self.url, self.host)
        doc = await self._fetch_document(page_url)

        info = self._metadata(doc)
        info.html = extract_text(doc)
        if self.icon:
            info.icon = await self._find_icon(doc, page_url)

        home = home_url(page_url)
        if home and home.rstrip("/") != page_url.rstrip("/"):
            try:
                home_doc = await self._fetch_document(home)
            except LufeedError as e:
                self.logger.debug(f"Home page {home} unavailable, keeping page result: {e}")
                return info

            home_info = self._metadata(home_doc)
            if self.icon and not info.icon:
                home_info.icon = await self._find_icon(home_doc, home)
            info.backfill(home_info, icon=self.icon)

        return info

    def _metadata(self, doc: BeautifulSoup) -> WebsiteInformation:
        return WebsiteInformation(
            image=meta_content(doc, "og:image", keys=("property", "name")),
            description=meta_content(doc, "og:description"),
            title=meta_content(doc, "og:title"),
        )

    async def _fetch_document(self, url: str) -> BeautifulSoup:
        """GET a document with retries and parse it."""
        max_attempts = self.retry_config.max_attempts

        for attempt in range(1, max_attempts + 1):
            final = attempt >= max_attempts
            try:
                response = await self.client.get(url, headers=headers_for_attempt(attempt - 1))
            except FetchError as e:
                if final:
                    self.logger.warning(f"Error fetching {url}: {e}")
                    raise
                delay = calculate_backoff(attempt, self.retry_config, self.rng)
                self.logger.warning(
                    f"Fetch error for {url} (attempt {attempt}/{max_attempts}), "
                    f"retrying after {delay:.2f}s: {e}"
                )
                await self.sleep(delay)
                continue

            if response.status == 200:
                return self._parse_document(url, response.body, response.charset)

            if response.status in RETRYABLE_STATUSES:
                if final:
                    raise RateLimitedError(
                        f"Received status {response.status} for {url} after {max_attempts} attempts",
                        url=url,
                        status=response.status,
                    )
                delay = calculate_backoff(attempt, self.retry_config, self.rng)
                self.logger.warning(
                    f"Got {response.status} for {url} (attempt {attempt}/{max_attempts}), "
                    f"retrying after {delay:.2f}s"
                )
                await self.sleep(delay)
                continue

            self.logger.debug(f"Received non-200 status code ({response.status}) for {url}")
            raise HTTPStatusError(
                f"Received non-200 status code: {response.status}",
                url=url,
                status=response.status,
            )

        # max_attempts is at least 1, so the loop always returns or raises
        raise FetchError(f"Failed to fetch URL after retries: {url}", url=url)

    def _parse_document(self, url: str, body: bytes, charset: Optional[str]) -> BeautifulSoup:
        """Decode with the declared charset (sniffed when absent) and parse."""
        markup = body
        if charset:
            try:
                codecs.lookup(charset)
            except LookupError as e:
                raise DocumentDecodeError(f"Unknown charset {charset!r} for {url}", url=url) from e
            markup = body.decode(charset, errors="replace")

        try:
            return BeautifulSoup(markup, "html.parser", multi_valued_attributes=None)
        except Exception as e:
            self.logger.warning(f"Error parsing HTML from {url}: {e}")
            raise DocumentParseError(f"Error parsing HTML from {url}: {e}", url=url) from e

    async def _find_icon(self, doc: BeautifulSoup, base_url: str) -> str:
        """Best validated icon declared by the document, else a reachable fallback path."""
        validated = []
        for candidate in iter_icon_candidates(doc):
            absolute = join_url(base_url, candidate.href)
            if not absolute:
                continue
            resolved = await check_head(self.client, base_url, absolute, self.rng)
            if resolved:
                validated.append(IconCandidate(href=resolved, size=candidate.size, score=candidate.score))

        best = best_icon(validated)
        if best is not None:
            return best.href

        home = home_url(base_url)
        if not home:
            return ""

        for path in FALLBACK_ICON_PATHS:
            found = await check_head(self.client, home, home + path, self.rng)
            if found:
                return found

        return home + FALLBACK_ICON_PATHS[0]
