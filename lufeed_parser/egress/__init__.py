"""
Lufeed Parser Egress
====================

Proxy leasing and pooled HTTP clients for outbound requests.
"""

from .client import EgressClient, HttpResponse
from .pool import DIRECT_PROXY_ID, EgressPool

__all__ = ["EgressClient", "HttpResponse", "EgressPool", "DIRECT_PROXY_ID"]
