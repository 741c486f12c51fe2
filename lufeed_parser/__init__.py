"""
Lufeed Parser - Feed Enrichment Service
=======================================

Turns RSS/Atom feeds into richly described sources and feed items by
scraping the pages they link to.

Main Components:
- Egress: proxy leasing with pooled aiohttp clients
- Extraction: Open Graph metadata, icon scoring, main-content text
- Parsing: source-level and item-level orchestrators with retries
- Cache: Redis item cache and pub/sub transport
- Services: API response boundary and pub/sub worker
"""

__version__ = "1.0.0"
__author__ = "Lufeed Development Team"
__description__ = "Feed parsing and page metadata enrichment service"

# Core imports for easy access
from .config.settings import get_settings
from .utils.logging import configure_application_logging, get_logger_for_component
from .utils.exceptions import LufeedError

__all__ = [
    "get_settings",
    "configure_application_logging",
    "get_logger_for_component",
    "LufeedError",
]
