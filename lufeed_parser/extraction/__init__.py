"""
Lufeed Parser Extraction
========================

Page fetching and metadata extraction: Open Graph tags, icons and main
content text.
"""

from .extractor import PageExtractor, check_head

__all__ = ["PageExtractor", "check_head"]
