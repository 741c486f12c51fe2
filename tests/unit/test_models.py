"""
Unit Tests for Data Models
==========================
"""

import pytest
from pydantic import ValidationError

from lufeed_parser.models import FeedItem, IconCandidate, Source, WebsiteInformation


class TestFeedItem:

    def test_cache_round_trip(self):
        item = FeedItem(title="Title", description="d", url="https://example.com/a", html="text")
        assert FeedItem.from_cache(item.to_cache().encode()) == item

    def test_invalid_cache_payload(self):
        with pytest.raises(ValidationError):
            FeedItem.from_cache('{"title": "no url"}')

    def test_published_at_defaults_to_aware_now(self):
        assert FeedItem(url="https://example.com/a").published_at.tzinfo is not None


class TestSource:

    def test_identity_is_generated(self):
        first = Source(feed_url="https://example.com/feed")
        second = Source(feed_url="https://example.com/feed")
        assert first.id != second.id
        assert first.html is None


class TestWebsiteInformation:

    def test_backfill_only_fills_empty_fields(self):
        page = WebsiteInformation(description="page", icon="")
        home = WebsiteInformation(image="img", description="home", icon="ico", title="Home")

        page.backfill(home)

        assert page == WebsiteInformation(image="img", description="page", icon="ico", title="Home")

    def test_backfill_without_icon(self):
        page = WebsiteInformation()
        page.backfill(WebsiteInformation(icon="ico"), icon=False)
        assert page.icon == ""


class TestIconCandidate:

    def test_outranks(self):
        low = IconCandidate(href="a", size=16, score=16)
        high = IconCandidate(href="b", size=16, score=96)
        same_score_larger = IconCandidate(href="c", size=32, score=16)

        assert low.outranks(None)
        assert high.outranks(low)
        assert not low.outranks(high)
        assert same_score_larger.outranks(low)
        assert not low.outranks(low)
