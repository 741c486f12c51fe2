"""
Egress Pool Manager
===================

Leases egress paths (proxies) to outbound operations.

- One ``EgressClient`` is cached per proxy identity and reused across leases,
  so connection pools survive between requests.
- Leasing is best effort: candidates are shuffled, the first free proxy is
  marked held, and when every proxy is busy the caller gets the direct client
  instead of waiting.
- The occupancy table is keyed by proxy identity; identity 0 is the direct
  connection and is never marked held.
"""

import random
import threading
from contextlib import asynccontextmanager
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from ..config.settings import HttpSettings, LufeedSettings, ProxyEntry
from ..utils.logging import get_logger_for_component
from .client import EgressClient

DIRECT_PROXY_ID = 0

ClientFactory = Callable[[int, Optional[str], HttpSettings], EgressClient]


class EgressPool:
    """Proxy-backed pool of HTTP clients with occupancy tracking."""

    def __init__(self,
                 proxies: Iterable[ProxyEntry] = (),
                 http_settings: Optional[HttpSettings] = None,
                 client_factory: Optional[ClientFactory] = None,
                 rng: Optional[random.Random] = None):
        """Initialize pool.

        Args:
            proxies: Configured proxies; identities must be unique and non-zero
            http_settings: Transport tuning shared by every client
            client_factory: Builds the client for an identity (tests inject fakes)
            rng: Random source used to shuffle candidates
        """
        self._proxies: Dict[int, ProxyEntry] = {}
        for proxy in proxies:
            if proxy.id == DIRECT_PROXY_ID:
                raise ValueError("Proxy id 0 is reserved for the direct connection")
            if proxy.id in self._proxies:
                raise ValueError(f"Duplicate proxy id: {proxy.id}")
            self._proxies[proxy.id] = proxy

        self.http_settings = http_settings or HttpSettings()
        self._client_factory = client_factory or EgressClient
        self._rng = rng or random.Random()
        self.logger = get_logger_for_component("egress_pool")

        self._lock = threading.Lock()
        self._occupied: Dict[int, bool] = {DIRECT_PROXY_ID: False}
        self._occupied.update({proxy_id: False for proxy_id in self._proxies})
        self._clients: Dict[int, EgressClient] = {}

    @classmethod
    def from_settings(cls, settings: LufeedSettings) -> "EgressPool":
        return cls(settings.proxy.proxies, http_settings=settings.http)

    def _client_for(self, proxy_id: int) -> EgressClient:
        """Get the cached client for an identity. Caller holds the lock."""
        client = self._clients.get(proxy_id)
        if client is None:
            proxy = self._proxies.get(proxy_id)
            proxy_url = proxy.url if proxy else None
            client = self._client_factory(proxy_id, proxy_url, self.http_settings)
            self._clients[proxy_id] = client
        return client

    def lease(self) -> Tuple[EgressClient, int]:
        """Lease a client.

        Returns:
            Tuple of (client, proxy_id); proxy_id is 0 for the direct client
        """
        with self._lock:
            if not self._proxies:
                self.logger.debug("No proxies configured, using direct connection")
                return self._client_for(DIRECT_PROXY_ID), DIRECT_PROXY_ID

            candidates: List[int] = list(self._proxies)
            self._rng.shuffle(candidates)

            for proxy_id in candidates:
                if not self._occupied.get(proxy_id, False):
                    self._occupied[proxy_id] = True
                    self.logger.debug(f"Leased {self._proxies[proxy_id]}")
                    return self._client_for(proxy_id), proxy_id

            self.logger.warning("No free proxies available, using direct connection")
            return self._client_for(DIRECT_PROXY_ID), DIRECT_PROXY_ID

    def release(self, proxy_id: int) -> None:
        """Mark an identity free. Unknown or already-free identities are ignored."""
        with self._lock:
            if proxy_id != DIRECT_PROXY_ID and proxy_id in self._occupied:
                self._occupied[proxy_id] = False

    def is_leased(self, proxy_id: int) -> bool:
        with self._lock:
            return self._occupied.get(proxy_id, False)

    def count(self) -> int:
        """Concurrency budget: number of proxies, at least 1."""
        return max(len(self._proxies), 1)

    @asynccontextmanager
    async def lease_client(self):
        """Lease a client for the duration of a block, releasing it on exit."""
        client, proxy_id = self.lease()
        try:
            yield client
        finally:
            self.release(proxy_id)

    async def close(self) -> None:
        """Close every cached client."""
        with self._lock:
            clients = list(self._clients.values())
            self._clients.clear()
        for client in clients:
            await client.close()

    def __len__(self) -> int:
        return len(self._proxies)
