"""
Feed Reader
===========

Retrieves RSS/Atom feeds through leased egress clients and parses them with
feedparser.

- every attempt leases a fresh client and releases it afterwards
- a 429 answer is retried after an exponential backoff with jitter
- any other failure is terminal for the request
"""

import asyncio
import random
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, List, Optional

import feedparser

from ..egress.pool import EgressPool
from ..extraction.browser import feed_headers
from ..recovery.retry_logic import RetryConfig, SleepFunc, calculate_backoff
from ..utils.exceptions import (
    FeedFetchError,
    FeedParseError,
    FeedRateLimitedError,
    FetchError,
)
from ..utils.logging import get_logger_for_component


@dataclass
class ParsedFeedEntry:
    """One feed entry with normalized fields."""

    title: str
    link: str
    description: str = ""
    image_url: str = ""
    published: Optional[datetime] = None
    updated: Optional[datetime] = None


@dataclass
class ParsedFeed:
    """Feed metadata and its entries in document order."""

    title: str
    link: str
    description: str = ""
    image_url: str = ""
    entries: List[ParsedFeedEntry] = field(default_factory=list)


def _parsed_datetime(value: Any) -> Optional[datetime]:
    """Convert a feedparser ``time.struct_time`` (UTC) into an aware datetime."""
    if not value:
        return None
    try:
        return datetime(*value[:6], tzinfo=timezone.utc)
    except (ValueError, TypeError):
        return None


def _entry_image(entry: Any) -> str:
    """First image declared by an entry (media thumbnail/content, enclosure, image)."""
    for thumbnail in entry.get("media_thumbnail") or []:
        if thumbnail.get("url"):
            return thumbnail["url"]

    for media in entry.get("media_content") or []:
        medium = media.get("medium", "")
        media_type = media.get("type", "")
        if media.get("url") and (medium == "image" or media_type.startswith("image/")):
            return media["url"]

    for enclosure in entry.get("enclosures") or []:
        if enclosure.get("href") and enclosure.get("type", "").startswith("image/"):
            return enclosure["href"]

    image = entry.get("image")
    if isinstance(image, dict):
        return image.get("href", "") or image.get("url", "")
    return ""


def parse_feed_document(body: bytes, feed_url: str, headers: Optional[dict] = None) -> ParsedFeed:
    """Parse a fetched feed body.

    Raises:
        FeedParseError: If the body is not a usable feed
    """
    parsed = feedparser.parse(body, response_headers=headers or {})
    feed_data = parsed.get("feed", {})

    if parsed.get("bozo") and not parsed.get("entries") and not feed_data.get("title"):
        raise FeedParseError(
            f"Failed to parse feed {feed_url}: {parsed.get('bozo_exception')}",
            feed_url=feed_url,
        )

    image = feed_data.get("image")
    image_url = ""
    if isinstance(image, dict):
        image_url = image.get("href", "") or image.get("url", "")

    entries = [
        ParsedFeedEntry(
            title=entry.get("title", ""),
            link=entry.get("link", ""),
            description=entry.get("description", "") or entry.get("summary", ""),
            image_url=_entry_image(entry),
            published=_parsed_datetime(entry.get("published_parsed")),
            updated=_parsed_datetime(entry.get("updated_parsed")),
        )
        for entry in parsed.get("entries", [])
    ]

    return ParsedFeed(
        title=feed_data.get("title", ""),
        link=feed_data.get("link", ""),
        description=feed_data.get("description", "") or feed_data.get("subtitle", ""),
        image_url=image_url,
        entries=entries,
    )


class FeedReader:
    """Fetch and parse feeds through the egress pool."""

    def __init__(self,
                 pool: EgressPool,
                 sleep: Optional[SleepFunc] = None,
                 rng: Optional[random.Random] = None,
                 max_attempts: int = 3):
        self.pool = pool
        self.sleep = sleep or asyncio.sleep
        self.rng = rng
        self.retry_config = RetryConfig(max_attempts=max(1, max_attempts))
        self.logger = get_logger_for_component("feed_reader")

    async def read(self, feed_url: str) -> ParsedFeed:
        """Fetch and parse a feed.

        Args:
            feed_url: Absolute feed URL

        Returns:
            ParsedFeed

        Raises:
            FeedFetchError: If the feed could not be retrieved (including
                exhausted 429 retries)
            FeedParseError: If the body is not a usable feed
        """
        max_attempts = self.retry_config.max_attempts
        self.logger.info(f"Parsing feed {feed_url}")

        for attempt in range(1, max_attempts + 1):
            client, proxy_id = self.pool.lease()
            try:
                return await self._read_once(client, feed_url)
            except FeedRateLimitedError:
                if attempt >= max_attempts:
                    break
                delay = calculate_backoff(attempt, self.retry_config, self.rng)
                self.logger.warning(
                    f"Got 429 error for {feed_url} (attempt {attempt}/{max_attempts}), "
                    f"retrying after {delay:.2f}s"
                )
            finally:
                self.pool.release(proxy_id)
            await self.sleep(delay)

        raise FeedFetchError(f"Failed to parse feed URL: {feed_url}", feed_url=feed_url)

    async def _read_once(self, client, feed_url: str) -> ParsedFeed:
        try:
            response = await client.get(feed_url, headers=feed_headers(self.rng))
        except FetchError as e:
            raise FeedFetchError(f"Failed to fetch feed {feed_url}: {e}", feed_url=feed_url) from e

        if response.status == 429:
            raise FeedRateLimitedError(f"Feed {feed_url} answered 429", feed_url=feed_url)
        if response.status != 200:
            raise FeedFetchError(
                f"Failed to fetch feed {feed_url}: status {response.status}",
                feed_url=feed_url,
                context={"status": response.status},
            )

        feed = parse_feed_document(response.body, feed_url, response.headers)
        self.logger.debug(f"Parsed {len(feed.entries)} entries from {feed_url}")
        return feed
