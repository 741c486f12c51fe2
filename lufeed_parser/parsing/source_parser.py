"""
Source Parser
=============

Describes a feed's origin site: feed title and description, plus the home
page's Open Graph metadata and icon. Every returned ``Source`` carries an
absolute cover image and icon, falling back to the default assets.
"""

import asyncio
import html
import random
from typing import Any, Callable, Optional

from ..config.settings import LufeedSettings, get_settings
from ..egress.client import EgressClient
from ..egress.pool import EgressPool
from ..extraction.extractor import PageExtractor, check_head
from ..ingestion.feed_reader import FeedReader
from ..models import (
    DEFAULT_SOURCE_ICON_URL,
    DEFAULT_SOURCE_IMAGE_URL,
    UNKNOWN_SOURCE_NAME,
    Source,
    WebsiteInformation,
)
from ..recovery.retry_logic import SleepFunc
from ..utils.exceptions import LufeedError
from ..utils.logging import PerformanceLogger, get_logger_for_component
from ..utils.urls import home_url, strip_query
from .item_parser import invoke_callback

IMAGE_KIND_COVERS = "covers"
IMAGE_KIND_ICONS = "icons"


async def resolve_image_url(client: EgressClient, home: str, url: str, kind: str,
                            rng: Optional[random.Random] = None) -> str:
    """Resolve and HEAD-validate a source image.

    Icons that fail validation fall back to the site's ``/favicon.ico``;
    covers fall back to an empty string. Empty input stays empty.
    """
    if not url:
        return ""

    resolved = await check_head(client, home, url, rng)
    if not resolved and kind == IMAGE_KIND_ICONS:
        site = home_url(home)
        if site:
            resolved = f"{site}/favicon.ico"
    return resolved


class SourceParser:
    """Build a ``Source`` from a feed URL."""

    def __init__(self,
                 pool: EgressPool,
                 settings: Optional[LufeedSettings] = None,
                 sleep: Optional[SleepFunc] = None,
                 rng: Optional[random.Random] = None):
        self.pool = pool
        self.settings = settings or get_settings()
        self.sleep = sleep or asyncio.sleep
        self.rng = rng
        self.logger = get_logger_for_component("source_parser")
        self.feed_reader = FeedReader(
            pool,
            sleep=self.sleep,
            rng=rng,
            max_attempts=self.settings.parsing.fetch_attempts,
        )

    async def run(self, feed_url: str, send_html: bool = False,
                  on_result: Optional[Callable[[Source], Any]] = None) -> Source:
        """Describe the source behind a feed.

        Raises:
            FeedFetchError: If the feed could not be retrieved
            FeedParseError: If the feed could not be parsed
        """
        with PerformanceLogger(self.logger, "source parsing", feed_url=feed_url):
            feed = await self.feed_reader.read(feed_url)

            source = Source(
                name=html.unescape(feed.title).strip(),
                description=feed.description,
                feed_url=feed_url,
                home_url=strip_query(feed.link),
            )

            async with self.pool.lease_client() as client:
                info = await self._extract(client, source.home_url)

                if info.description:
                    source.description = html.unescape(info.description)
                else:
                    source.description = html.unescape(feed.title)

                image = info.image or feed.image_url
                source.image_url = await resolve_image_url(
                    client, source.home_url, image, IMAGE_KIND_COVERS, self.rng
                )
                source.icon_url = await resolve_image_url(
                    client, source.home_url, info.icon, IMAGE_KIND_ICONS, self.rng
                )

            if not source.name:
                source.name = info.title.strip() or UNKNOWN_SOURCE_NAME
            source.image_url = source.image_url or DEFAULT_SOURCE_IMAGE_URL
            source.icon_url = source.icon_url or DEFAULT_SOURCE_ICON_URL
            if send_html:
                source.html = info.html

        await invoke_callback(on_result, source)
        return source

    async def _extract(self, client: EgressClient, home: str) -> WebsiteInformation:
        """Home page information; failures are logged and yield empty information."""
        extractor = PageExtractor(
            client,
            home,
            host=home,
            icon=True,
            sleep=self.sleep,
            rng=self.rng,
            max_attempts=self.settings.parsing.fetch_attempts,
        )
        try:
            return await extractor.run()
        except LufeedError as e:
            self.logger.warning(f"Could not extract home page {home}: {e}")
            return WebsiteInformation()
