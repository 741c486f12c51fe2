"""
Lufeed Parser Orchestrators
===========================

Source-level and item-level parsing of feeds.
"""

from .item_parser import ItemParser
from .source_parser import SourceParser, resolve_image_url

__all__ = ["ItemParser", "SourceParser", "resolve_image_url"]
