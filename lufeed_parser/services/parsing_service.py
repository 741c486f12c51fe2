"""
Parsing Service
===============

Synchronous API boundary: runs a parser and wraps the outcome in an
``APIResponse`` whose code follows HTTP status semantics.
"""

from typing import Any, Optional, Tuple

from pydantic import BaseModel, Field

from ..cache.gateway import CacheGateway
from ..config.settings import LufeedSettings, get_settings
from ..egress.pool import EgressPool
from ..parsing.item_parser import ItemParser
from ..parsing.source_parser import SourceParser
from ..utils.exceptions import (
    FeedError,
    ValidationError,
    get_user_friendly_message,
    is_input_error,
)
from ..utils.logging import get_logger_for_component
from ..utils.urls import normalize_page_url

STATUS_OK = 200
STATUS_BAD_REQUEST = 400
STATUS_INTERNAL_ERROR = 500


class APIResponse(BaseModel):
    """Response envelope returned to API callers."""
    code: int = Field(default=0, description="HTTP status code")
    message: str = Field(default="", description="Outcome message")
    data: Any = Field(default=None, description="Payload on success")

    def status_code(self) -> int:
        """HTTP status to answer with; an unset code is an internal error."""
        return self.code or STATUS_INTERNAL_ERROR


def status_for_error(error: BaseException, caller_errors: Tuple[type, ...] = ()) -> int:
    """Input errors (plus ``caller_errors``) map to 400, everything else to 500."""
    if is_input_error(error) or isinstance(error, caller_errors):
        return STATUS_BAD_REQUEST
    return STATUS_INTERNAL_ERROR


class ParsingService:
    """Run source and item parsing on behalf of API callers."""

    def __init__(self, pool: EgressPool, cache: CacheGateway,
                 settings: Optional[LufeedSettings] = None,
                 source_parser: Optional[SourceParser] = None,
                 item_parser: Optional[ItemParser] = None):
        self.settings = settings or get_settings()
        self.source_parser = source_parser or SourceParser(pool, settings=self.settings)
        self.item_parser = item_parser or ItemParser(pool, cache, settings=self.settings)
        self.logger = get_logger_for_component("parsing_service")

    @staticmethod
    def _validate_url(url: str) -> str:
        if not url or not url.strip():
            raise ValidationError("URL is required", field_name="url")
        return normalize_page_url(url)

    def _failure(self, operation: str, url: str, error: Exception,
                 caller_errors: Tuple[type, ...] = ()) -> APIResponse:
        code = status_for_error(error, caller_errors)
        if code == STATUS_INTERNAL_ERROR:
            self.logger.error(f"{operation} failed for {url}: {error}")
        else:
            self.logger.info(f"{operation} rejected input {url!r}: {error}")
        return APIResponse(code=code, message=get_user_friendly_message(error))

    async def parse_url(self, url: str, send_html: bool = False) -> APIResponse:
        """Describe the source behind a feed URL."""
        try:
            source = await self.source_parser.run(self._validate_url(url), send_html=send_html)
        except Exception as e:
            # A URL that does not lead to a usable feed is the caller's mistake
            return self._failure("URL parsing", url, e, caller_errors=(FeedError,))
        return APIResponse(code=STATUS_OK, message="success", data=source)

    async def parse_source(self, url: str, send_html: bool = False) -> APIResponse:
        """Enrich every entry of a feed."""
        try:
            items = await self.item_parser.run(self._validate_url(url), send_html=send_html)
        except Exception as e:
            return self._failure("Source parsing", url, e)
        return APIResponse(code=STATUS_OK, message="success", data=items)
