"""
Egress HTTP Client
==================

Thin wrapper around a pooled ``aiohttp.ClientSession`` bound to one egress
path (a proxy identity or the direct connection). The session and its
connector are created lazily on first use and reused for every request made
through the same identity.
"""

import asyncio
import ssl
from dataclasses import dataclass, field
from typing import Dict, Optional

import aiohttp
import certifi

from ..config.settings import HttpSettings
from ..utils.exceptions import FetchNetworkError, FetchTimeoutError
from ..utils.logging import get_logger_for_component


@dataclass
class HttpResponse:
    """Fully read HTTP response."""
    status: int
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    charset: Optional[str] = None


class EgressClient:
    """HTTP client for a single egress identity."""

    def __init__(self, proxy_id: int, proxy_url: Optional[str] = None,
                 http_settings: Optional[HttpSettings] = None):
        """Initialize client.

        Args:
            proxy_id: Proxy identity, 0 for the direct connection
            proxy_url: Proxy URL applied to every request (None for direct)
            http_settings: Transport tuning
        """
        self.proxy_id = proxy_id
        self.proxy_url = proxy_url
        self.http_settings = http_settings or HttpSettings()
        self.logger = get_logger_for_component("egress_client", proxy_id=proxy_id)
        self._session: Optional[aiohttp.ClientSession] = None

        # SSL context for secure requests
        self.ssl_context = ssl.create_default_context(cafile=certifi.where())

    @property
    def is_direct(self) -> bool:
        return self.proxy_url is None

    def _get_session(self) -> aiohttp.ClientSession:
        """Get the pooled session, creating it on first use."""
        if self._session is None or self._session.closed:
            settings = self.http_settings
            connector = aiohttp.TCPConnector(
                ssl=self.ssl_context,
                limit=settings.max_connections,
                limit_per_host=settings.max_connections_per_host,
                keepalive_timeout=settings.idle_timeout,
                enable_cleanup_closed=True,
            )
            timeout = aiohttp.ClientTimeout(
                total=None,
                connect=settings.connect_timeout,
                sock_connect=settings.connect_timeout,
                sock_read=settings.read_timeout,
            )
            self._session = aiohttp.ClientSession(connector=connector, timeout=timeout)
        return self._session

    async def request(self, method: str, url: str,
                      headers: Optional[Dict[str, str]] = None) -> HttpResponse:
        """Issue a request and read the whole body.

        Args:
            method: HTTP method (GET or HEAD)
            url: Absolute URL
            headers: Request headers

        Returns:
            HttpResponse with status, headers and body

        Raises:
            FetchTimeoutError: If the transport deadline expired
            FetchNetworkError: For any other transport-level failure
        """
        session = self._get_session()
        try:
            async with session.request(
                method,
                url,
                headers=headers,
                proxy=self.proxy_url,
                allow_redirects=True,
            ) as response:
                body = b"" if method.upper() == "HEAD" else await response.read()
                return HttpResponse(
                    status=response.status,
                    url=str(response.url),
                    headers=dict(response.headers),
                    body=body,
                    charset=response.charset,
                )
        except asyncio.TimeoutError as e:
            raise FetchTimeoutError(f"Timeout requesting {url}", url=url) from e
        except aiohttp.ClientError as e:
            raise FetchNetworkError(f"{type(e).__name__} requesting {url}: {e}", url=url) from e

    async def get(self, url: str, headers: Optional[Dict[str, str]] = None) -> HttpResponse:
        return await self.request("GET", url, headers)

    async def head(self, url: str, headers: Optional[Dict[str, str]] = None) -> HttpResponse:
        return await self.request("HEAD", url, headers)

    async def close(self) -> None:
        """Close the pooled session."""
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    def __repr__(self) -> str:
        return f"EgressClient(proxy_id={self.proxy_id})"
