"""
Item Parser
===========

Turns every entry of a feed into an enriched ``FeedItem``.

Entries are processed concurrently, at most one per egress identity at a
time. Each entry is looked up in the item cache first; misses go through the
page extractor with retries on transient errors. A failing entry is dropped
without affecting the others.
"""

import asyncio
import inspect
import random
from datetime import datetime, timezone
from typing import Any, Callable, List, Optional

from pydantic import ValidationError as ModelValidationError

from ..cache.gateway import CacheGateway
from ..config.settings import LufeedSettings, get_settings
from ..egress.pool import EgressPool
from ..extraction.extractor import PageExtractor
from ..ingestion.feed_reader import FeedReader, ParsedFeedEntry
from ..models import DEFAULT_ITEM_IMAGE_URL, FeedItem
from ..recovery.retry_logic import RetryConfig, RetryManager, SleepFunc
from ..utils.exceptions import CacheError, InvalidURLError, is_transient_error
from ..utils.logging import PerformanceLogger, get_logger_for_component
from ..utils.urls import normalize_page_url, resolve_url, strip_query

ItemCallback = Callable[[FeedItem], Any]


async def invoke_callback(callback: Optional[Callable], value: Any) -> None:
    """Invoke a sync or async callback."""
    if callback is None:
        return
    result = callback(value)
    if inspect.isawaitable(result):
        await result


class ItemParser:
    """Enrich the entries of one feed."""

    def __init__(self,
                 pool: EgressPool,
                 cache: CacheGateway,
                 settings: Optional[LufeedSettings] = None,
                 sleep: Optional[SleepFunc] = None,
                 rng: Optional[random.Random] = None):
        """Initialize item parser.

        Args:
            pool: Egress pool providing leased clients
            cache: Item cache
            settings: Application settings (global settings by default)
            sleep: Backoff sleep shared by every retry loop
            rng: Random source for jitter and header profiles
        """
        self.pool = pool
        self.cache = cache
        self.settings = settings or get_settings()
        self.sleep = sleep or asyncio.sleep
        self.rng = rng
        self.logger = get_logger_for_component("item_parser")

        parsing = self.settings.parsing
        self.feed_reader = FeedReader(pool, sleep=self.sleep, rng=rng, max_attempts=parsing.fetch_attempts)
        self.retry_manager = RetryManager(
            RetryConfig(max_attempts=parsing.item_retries + 1),
            sleep=self.sleep,
            rng=rng,
        )
        self.cache_ttl = self.settings.cache.item_ttl_hours * 3600

    async def run(self, feed_url: str, send_html: bool = False,
                  on_item: Optional[ItemCallback] = None) -> List[FeedItem]:
        """Fetch a feed and enrich its entries.

        Args:
            feed_url: Feed URL
            send_html: Attach the main content text to every item
            on_item: Called once per successfully produced item

        Returns:
            Produced items in completion order

        Raises:
            FeedFetchError: If the feed could not be retrieved
            FeedParseError: If the feed could not be parsed
        """
        with PerformanceLogger(self.logger, "item parsing", feed_url=feed_url):
            feed = await self.feed_reader.read(feed_url)
            entries = feed.entries[:self.settings.parsing.max_items]

            results: List[FeedItem] = []
            results_lock = asyncio.Lock()
            gate = asyncio.Semaphore(self.pool.count())

            async def worker(entry: ParsedFeedEntry) -> None:
                async with gate:
                    item = await self._process_entry(entry, feed.link, send_html)
                if item is None:
                    return
                try:
                    await invoke_callback(on_item, item)
                except Exception as e:
                    self.logger.error(f"Item callback failed for {item.url}: {e}")
                async with results_lock:
                    results.append(item)

            await asyncio.gather(*(worker(entry) for entry in entries))

        self.logger.info(f"Produced {len(results)}/{len(entries)} items from {feed_url}")
        return results

    async def _process_entry(self, entry: ParsedFeedEntry, host: str,
                             send_html: bool) -> Optional[FeedItem]:
        """Cached item or a freshly extracted one; None when the entry is dropped."""
        try:
            link = normalize_page_url(strip_query(entry.link), host)
        except InvalidURLError as e:
            self.logger.warning(f"Dropping item with unusable link {entry.link!r}: {e}")
            return None

        cached = await self._cache_lookup(link)
        if cached is not None:
            if not send_html:
                return cached.model_copy(update={"html": None})
            if cached.html is not None:
                return cached
            self.logger.debug(f"Cached item {link} has no text, extracting again")

        try:
            item = await self.retry_manager.retry_async(
                lambda: self._extract(entry, link, host),
                should_retry=is_transient_error,
                operation=f"extract {link}",
            )
        except Exception as e:
            self.logger.warning(f"Dropping item {link}: {e}")
            return None

        try:
            await self.cache.set(link, item.to_cache(), ttl=self.cache_ttl)
        except CacheError as e:
            self.logger.warning(f"Failed to cache item {link}: {e}")

        if not send_html:
            item = item.model_copy(update={"html": None})
        return item

    async def _cache_lookup(self, link: str) -> Optional[FeedItem]:
        try:
            payload = await self.cache.get(link)
        except CacheError as e:
            self.logger.debug(f"Cache read failed for {link}, treating as miss: {e}")
            return None

        if not payload:
            return None

        try:
            return FeedItem.from_cache(payload)
        except ModelValidationError as e:
            self.logger.debug(f"Discarding undecodable cache entry for {link}: {e}")
            return None

    async def _extract(self, entry: ParsedFeedEntry, link: str, host: str) -> FeedItem:
        """Extract the entry's page; the item keeps its text for the cache."""
        async with self.pool.lease_client() as client:
            extractor = PageExtractor(
                client,
                link,
                host=host,
                icon=False,
                sleep=self.sleep,
                rng=self.rng,
                max_attempts=self.settings.parsing.fetch_attempts,
            )
            info = await extractor.run()

        image = info.image or entry.image_url
        description = info.description or entry.description
        published = entry.published or entry.updated or datetime.now(timezone.utc)

        return FeedItem(
            title=entry.title,
            description=description,
            url=link,
            image_url=resolve_url(link, image) or DEFAULT_ITEM_IMAGE_URL,
            html=info.html,
            published_at=published,
        )
