"""
Lufeed Parser Services
======================

API boundary and pub/sub worker built on the parsers.
"""

from .async_worker import AsyncWorker, ParseSourceRequest, ParseURLRequest
from .parsing_service import APIResponse, ParsingService

__all__ = ["AsyncWorker", "ParseSourceRequest", "ParseURLRequest", "APIResponse", "ParsingService"]
