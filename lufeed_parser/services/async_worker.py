"""
Async Worker
============

Pub/sub front end: consumes parse requests from the cache gateway's topics
and publishes every produced entity as it becomes available.

Topics:
- ``parse_source_requests`` -> item parsing -> ``parse_source_results``
- ``parse_url_requests`` -> source parsing -> ``parse_url_results``
"""

import asyncio
from typing import Optional

from pydantic import BaseModel, Field
from pydantic import ValidationError as ModelValidationError

from ..cache.gateway import CacheGateway
from ..config.settings import LufeedSettings, get_settings
from ..egress.pool import EgressPool
from ..models import FeedItem, Source
from ..parsing.item_parser import ItemParser
from ..parsing.source_parser import SourceParser
from ..utils.exceptions import CacheError
from ..utils.logging import get_logger_for_component

PARSE_SOURCE_REQUESTS = "parse_source_requests"
PARSE_SOURCE_RESULTS = "parse_source_results"
PARSE_URL_REQUESTS = "parse_url_requests"
PARSE_URL_RESULTS = "parse_url_results"


class ParseSourceRequest(BaseModel):
    """Request to enrich every entry of a feed."""
    url: str = Field(..., min_length=1)
    send_html: bool = False
    feed_id: str = ""
    feed_name: str = ""
    user_id: str = ""


class ParseURLRequest(BaseModel):
    """Request to describe the source behind a feed."""
    request_id: str = ""
    url: str = Field(..., min_length=1)
    send_html: bool = False
    user_id: str = ""


class AsyncWorker:
    """Serve parse requests received over pub/sub until cancelled."""

    def __init__(self, pool: EgressPool, cache: CacheGateway,
                 settings: Optional[LufeedSettings] = None,
                 source_parser: Optional[SourceParser] = None,
                 item_parser: Optional[ItemParser] = None):
        self.cache = cache
        self.settings = settings or get_settings()
        self.source_parser = source_parser or SourceParser(pool, settings=self.settings)
        self.item_parser = item_parser or ItemParser(pool, cache, settings=self.settings)
        self.logger = get_logger_for_component("async_worker")

    async def run(self) -> None:
        """Listen on both request topics."""
        self.logger.info("Async worker started")
        try:
            await asyncio.gather(
                self.listen_source_requests(),
                self.listen_url_requests(),
            )
        finally:
            self.logger.info("Async worker stopped")

    async def listen_source_requests(self) -> None:
        async for payload in self.cache.subscribe(PARSE_SOURCE_REQUESTS):
            try:
                request = ParseSourceRequest.model_validate_json(payload)
            except ModelValidationError as e:
                self.logger.error(f"Invalid parse_source_request: {e}")
                continue

            try:
                await self.handle_source_request(request)
            except Exception as e:
                self.logger.error(f"parse_source_request for {request.url} failed: {e}")

    async def listen_url_requests(self) -> None:
        async for payload in self.cache.subscribe(PARSE_URL_REQUESTS):
            try:
                request = ParseURLRequest.model_validate_json(payload)
            except ModelValidationError as e:
                self.logger.error(f"Invalid parse_url_request: {e}")
                continue

            try:
                await self.handle_url_request(request)
            except Exception as e:
                self.logger.error(f"parse_url_request {request.request_id} for {request.url} failed: {e}")

    async def handle_source_request(self, request: ParseSourceRequest) -> None:
        async def publish_item(item: FeedItem) -> None:
            tagged = item.model_copy(update={
                "feed_id": request.feed_id,
                "feed_name": request.feed_name,
                "user_id": request.user_id,
            })
            try:
                await self.cache.publish(PARSE_SOURCE_RESULTS, tagged.model_dump_json())
            except CacheError as e:
                self.logger.error(f"Failed to publish item {tagged.url}: {e}")
                return
            self.logger.info(f"Published item {tagged.url} for feed {request.feed_name}")

        await self.item_parser.run(request.url, send_html=request.send_html, on_item=publish_item)

    async def handle_url_request(self, request: ParseURLRequest) -> None:
        async def publish_source(source: Source) -> None:
            tagged = source.model_copy(update={
                "user_id": request.user_id,
                "request_id": request.request_id,
            })
            await self.cache.publish(PARSE_URL_RESULTS, tagged.model_dump_json())
            self.logger.info(f"Published url {request.url}")

        await self.source_parser.run(request.url, send_html=request.send_html, on_result=publish_source)
