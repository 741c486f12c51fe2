"""
Unit Tests for Error Handling
=============================

Tests for the exception hierarchy and error classification helpers.
"""

import asyncio

import pytest

from lufeed_parser.utils.exceptions import (
    CacheError,
    DocumentDecodeError,
    ErrorCode,
    FeedFetchError,
    FeedRateLimitedError,
    FetchNetworkError,
    FetchTimeoutError,
    HTTPStatusError,
    InvalidURLError,
    LufeedError,
    RateLimitedError,
    ValidationError,
    get_user_friendly_message,
    is_input_error,
    is_transient_error,
)


class TestLufeedError:

    def test_str_includes_code(self):
        error = HTTPStatusError("Status 404", url="https://example.com", status=404)
        assert str(error) == "[H004] Status 404"
        assert error.status == 404

    def test_to_dict(self):
        error = InvalidURLError("URL missing host", url="https://")
        data = error.to_dict()

        assert data["error_type"] == "InvalidURLError"
        assert data["error_code"] == ErrorCode.URL_INVALID.value
        assert data["context"] == {"field_name": "url", "url": "https://"}
        assert data["recoverable"] is False

    def test_rate_limited_feed_is_a_fetch_error(self):
        error = FeedRateLimitedError("429", feed_url="https://example.com/feed")
        assert isinstance(error, FeedFetchError)
        assert error.error_code == ErrorCode.FEED_RATE_LIMITED
        assert error.recoverable


class TestClassification:
    """Test cases for is_transient_error and is_input_error."""

    @pytest.mark.parametrize("error", [
        FetchNetworkError("connection reset"),
        FetchTimeoutError("read timed out"),
        asyncio.TimeoutError(),
        EOFError(),
        ConnectionResetError(),
        RuntimeError("unexpected EOF while reading"),
        RuntimeError("context deadline exceeded"),
    ])
    def test_transient(self, error):
        assert is_transient_error(error)

    @pytest.mark.parametrize("error", [
        RateLimitedError("still 429", status=429),
        HTTPStatusError("timeout page", status=408),
        DocumentDecodeError("unknown charset"),
        ValidationError("timeout"),
        RuntimeError("boom"),
    ])
    def test_not_transient(self, error):
        assert not is_transient_error(error)

    def test_input_errors(self):
        assert is_input_error(InvalidURLError("bad"))
        assert not is_input_error(FeedFetchError("down"))


class TestUserFriendlyMessage:

    def test_lufeed_error_message(self):
        assert get_user_friendly_message(CacheError("redis down")) == "Cache operation failed"

    def test_validation_message_names_field(self):
        error = ValidationError("URL is required", field_name="url")
        assert get_user_friendly_message(error) == "Invalid url: URL is required"

    def test_unknown_error(self):
        assert get_user_friendly_message(KeyError("x")).startswith("An unexpected error occurred")

    def test_plain_base_error(self):
        assert get_user_friendly_message(LufeedError("plain")) == "plain"
