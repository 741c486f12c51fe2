"""
Lufeed Parser Ingestion
=======================

Feed retrieval and feed-format parsing.
"""

from .feed_reader import FeedReader, ParsedFeed, ParsedFeedEntry, parse_feed_document

__all__ = ["FeedReader", "ParsedFeed", "ParsedFeedEntry", "parse_feed_document"]
