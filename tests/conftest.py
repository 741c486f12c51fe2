"""
PyTest Configuration and Fixtures
=================================

Shared fixtures and configuration for Lufeed Parser tests.

HTTP is faked at the ``EgressClient.request`` seam: ``FakeClient`` answers
from a route table and records every request, so no test touches the network.
"""

import pytest
import os
import sys
import random
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union
from unittest.mock import AsyncMock

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

# Set test environment variables before any imports
os.environ["LUFEED_LOGGING__FILE_PATH"] = ""
os.environ["LUFEED_LOGGING__CONSOLE_LOGGING"] = "false"
os.environ["LUFEED_DEBUG"] = "true"

from lufeed_parser.cache.gateway import MemoryCacheGateway
from lufeed_parser.config.settings import LoggingSettings, LufeedSettings, ProxyEntry
from lufeed_parser.egress.client import EgressClient, HttpResponse
from lufeed_parser.egress.pool import EgressPool


Answer = Union[HttpResponse, Exception, int]


def html_response(url: str, body: str, status: int = 200, charset: Optional[str] = "utf-8") -> HttpResponse:
    """Build an HTML response."""
    return HttpResponse(
        status=status,
        url=url,
        headers={"Content-Type": f"text/html; charset={charset}" if charset else "text/html"},
        body=body.encode(charset or "utf-8"),
        charset=charset,
    )


def feed_response(url: str, body: str, status: int = 200) -> HttpResponse:
    """Build an RSS response."""
    return HttpResponse(
        status=status,
        url=url,
        headers={"Content-Type": "application/rss+xml; charset=utf-8"},
        body=body.encode("utf-8"),
        charset="utf-8",
    )


class FakeClient(EgressClient):
    """EgressClient answering from a route table instead of the network.

    Routes map ``(METHOD, url)`` to a list of answers consumed in order; the
    last answer repeats. An answer is an ``HttpResponse``, a bare status code
    or an exception to raise. Unrouted HEADs answer 404, unrouted GETs 404.
    """

    def __init__(self, routes: Optional[Dict[Tuple[str, str], List[Answer]]] = None, proxy_id: int = 0):
        super().__init__(proxy_id)
        self.routes: Dict[Tuple[str, str], List[Answer]] = {}
        for key, answers in (routes or {}).items():
            self.add(key[0], key[1], *answers)
        self.requests: List[Tuple[str, str, Dict[str, str]]] = []

    def add(self, method: str, url: str, *answers: Answer) -> "FakeClient":
        self.routes[(method.upper(), url)] = list(answers)
        return self

    def calls(self, method: Optional[str] = None, url: Optional[str] = None) -> List[Tuple[str, str]]:
        return [
            (m, u) for m, u, _ in self.requests
            if (method is None or m == method) and (url is None or u == url)
        ]

    async def request(self, method, url, headers=None):
        method = method.upper()
        self.requests.append((method, url, dict(headers or {})))
        answers = self.routes.get((method, url))
        if not answers:
            return HttpResponse(status=404, url=url)

        answer = answers.pop(0) if len(answers) > 1 else answers[0]
        if isinstance(answer, Exception):
            raise answer
        if isinstance(answer, int):
            return HttpResponse(status=answer, url=url)
        return answer

    async def close(self):
        pass


def make_pool(client: FakeClient, proxy_count: int = 0) -> EgressPool:
    """Real pool whose every identity is served by the same fake client."""
    proxies = [
        ProxyEntry(id=i, address=f"10.0.0.{i}", port="3128")
        for i in range(1, proxy_count + 1)
    ]
    return EgressPool(
        proxies,
        client_factory=lambda proxy_id, proxy_url, http_settings: client,
        rng=random.Random(7),
    )


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def test_settings():
    """Settings with file logging disabled."""
    return LufeedSettings(logging=LoggingSettings(file_path=None, console_logging=False))


@pytest.fixture
def fake_client():
    return FakeClient()


@pytest.fixture
def pool(fake_client):
    return make_pool(fake_client, proxy_count=2)


@pytest.fixture
def memory_cache():
    return MemoryCacheGateway()


@pytest.fixture
def fake_sleep():
    """Recording replacement for asyncio.sleep."""
    return AsyncMock()


@pytest.fixture
def rng():
    return random.Random(42)
