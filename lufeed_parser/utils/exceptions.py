"""
Lufeed Parser Exceptions
========================

Exception hierarchy for the feed parser with error codes, context
information and user-friendly messages.
"""

from typing import Optional, Dict, Any
from enum import Enum
import asyncio


class ErrorCode(str, Enum):
    """Error codes for categorizing exceptions."""

    # Configuration errors (C001-C099)
    CONFIG_INVALID = "C001"
    CONFIG_MISSING = "C002"

    # Input errors (V001-V099)
    VALIDATION_REQUIRED_FIELD = "V001"
    VALIDATION_INVALID_FORMAT = "V002"
    URL_INVALID = "V003"
    URL_MISSING_HOST = "V004"

    # Feed retrieval errors (F001-F099)
    FEED_FETCH_FAILED = "F001"
    FEED_RATE_LIMITED = "F002"
    FEED_PARSE_ERROR = "F003"
    FEED_NETWORK_ERROR = "F004"

    # Page fetch errors (H001-H099)
    FETCH_NETWORK_ERROR = "H001"
    FETCH_TIMEOUT = "H002"
    FETCH_RATE_LIMITED = "H003"
    FETCH_HTTP_STATUS = "H004"

    # Document errors (P001-P099)
    DOCUMENT_DECODE_ERROR = "P001"
    DOCUMENT_PARSE_ERROR = "P002"

    # Cache errors (K001-K099)
    CACHE_CONNECTION = "K001"
    CACHE_OPERATION = "K002"


class LufeedError(Exception):
    """Base exception for all feed parser errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[ErrorCode] = None,
        context: Optional[Dict[str, Any]] = None,
        user_message: Optional[str] = None,
        recoverable: bool = False,
    ):
        """Initialize error.

        Args:
            message: Technical error message for logging
            error_code: Categorized error code
            context: Additional context information
            user_message: User-friendly error message
            recoverable: Whether the error is recoverable
        """
        super().__init__(message)
        self.error_code = error_code
        self.context = context or {}
        self.user_message = user_message or message
        self.recoverable = recoverable

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code.value if self.error_code else None,
            "error_message": str(self),
            "user_message": self.user_message,
            "context": self.context,
            "recoverable": self.recoverable,
        }

    def __str__(self) -> str:
        """String representation with error code."""
        if self.error_code:
            return f"[{self.error_code.value}] {super().__str__()}"
        return super().__str__()


def _split_kwargs(kwargs: Dict[str, Any], *names: str) -> Dict[str, Any]:
    return {k: v for k, v in kwargs.items() if k not in names}


class ConfigurationError(LufeedError):
    """Configuration-related errors."""

    def __init__(self, message: str, config_key: Optional[str] = None, **kwargs):
        context = kwargs.get("context", {})
        if config_key:
            context["config_key"] = config_key

        super().__init__(
            message=message,
            error_code=kwargs.get("error_code", ErrorCode.CONFIG_INVALID),
            context=context,
            user_message=kwargs.get("user_message", f"Configuration error: {message}"),
            **_split_kwargs(kwargs, "context", "error_code", "user_message"),
        )


class ValidationError(LufeedError):
    """Input validation errors."""

    def __init__(self, message: str, field_name: Optional[str] = None, **kwargs):
        """Initialize validation error.

        Args:
            message: Error message
            field_name: Field name that failed validation
            **kwargs: Additional arguments for LufeedError
        """
        context = kwargs.get("context", {})
        if field_name:
            context["field_name"] = field_name

        super().__init__(
            message=message,
            error_code=kwargs.get("error_code", ErrorCode.VALIDATION_INVALID_FORMAT),
            context=context,
            user_message=kwargs.get(
                "user_message", f"Invalid {field_name or 'input'}: {message}"
            ),
            recoverable=kwargs.get("recoverable", False),
            **_split_kwargs(kwargs, "context", "error_code", "user_message", "recoverable"),
        )


class InvalidURLError(ValidationError):
    """URL that cannot be normalized into an absolute http(s) address."""

    def __init__(self, message: str, url: Optional[str] = None, **kwargs):
        context = kwargs.get("context", {})
        if url is not None:
            context["url"] = url

        super().__init__(
            message,
            field_name="url",
            error_code=kwargs.get("error_code", ErrorCode.URL_INVALID),
            context=context,
            **_split_kwargs(kwargs, "context", "error_code"),
        )


class FetchError(LufeedError):
    """Page retrieval errors."""

    def __init__(self, message: str, url: Optional[str] = None, **kwargs):
        """Initialize fetch error.

        Args:
            message: Error message
            url: URL being fetched
            **kwargs: Additional arguments for LufeedError
        """
        context = kwargs.get("context", {})
        if url:
            context["url"] = url

        super().__init__(
            message=message,
            error_code=kwargs.get("error_code", ErrorCode.FETCH_NETWORK_ERROR),
            context=context,
            user_message=kwargs.get("user_message", "Page retrieval failed"),
            recoverable=kwargs.get("recoverable", False),
            **_split_kwargs(kwargs, "context", "error_code", "user_message", "recoverable"),
        )


class FetchNetworkError(FetchError):
    """Transport-level failure (connection reset, EOF, DNS)."""

    def __init__(self, message: str, url: Optional[str] = None, **kwargs):
        kwargs.setdefault("error_code", ErrorCode.FETCH_NETWORK_ERROR)
        kwargs.setdefault("recoverable", True)
        super().__init__(message, url=url, **kwargs)


class FetchTimeoutError(FetchError):
    """Request did not complete within the transport deadline."""

    def __init__(self, message: str, url: Optional[str] = None, **kwargs):
        kwargs.setdefault("error_code", ErrorCode.FETCH_TIMEOUT)
        kwargs.setdefault("recoverable", True)
        super().__init__(message, url=url, **kwargs)


class RateLimitedError(FetchError):
    """Origin kept answering 429/503 after every attempt."""

    def __init__(self, message: str, url: Optional[str] = None, status: Optional[int] = None, **kwargs):
        context = kwargs.pop("context", {})
        if status is not None:
            context["status"] = status
        kwargs.setdefault("error_code", ErrorCode.FETCH_RATE_LIMITED)
        super().__init__(message, url=url, context=context, **kwargs)
        self.status = status


class HTTPStatusError(FetchError):
    """Non-retryable, non-200 response."""

    def __init__(self, message: str, url: Optional[str] = None, status: Optional[int] = None, **kwargs):
        context = kwargs.pop("context", {})
        if status is not None:
            context["status"] = status
        kwargs.setdefault("error_code", ErrorCode.FETCH_HTTP_STATUS)
        super().__init__(message, url=url, context=context, **kwargs)
        self.status = status


class DocumentDecodeError(FetchError):
    """Declared character set could not be used to decode the body."""

    def __init__(self, message: str, url: Optional[str] = None, **kwargs):
        kwargs.setdefault("error_code", ErrorCode.DOCUMENT_DECODE_ERROR)
        super().__init__(message, url=url, **kwargs)


class DocumentParseError(FetchError):
    """Markup could not be turned into a document tree."""

    def __init__(self, message: str, url: Optional[str] = None, **kwargs):
        kwargs.setdefault("error_code", ErrorCode.DOCUMENT_PARSE_ERROR)
        super().__init__(message, url=url, **kwargs)


class FeedError(LufeedError):
    """Feed retrieval and parsing errors."""

    def __init__(self, message: str, feed_url: Optional[str] = None, **kwargs):
        """Initialize feed error.

        Args:
            message: Error message
            feed_url: Feed URL that caused the error
            **kwargs: Additional arguments for LufeedError
        """
        context = kwargs.get("context", {})
        if feed_url:
            context["feed_url"] = feed_url

        super().__init__(
            message=message,
            error_code=kwargs.get("error_code", ErrorCode.FEED_FETCH_FAILED),
            context=context,
            user_message=kwargs.get(
                "user_message", f"Feed processing failed: {message}"
            ),
            recoverable=kwargs.get("recoverable", False),
            **_split_kwargs(kwargs, "context", "error_code", "user_message", "recoverable"),
        )


class FeedFetchError(FeedError):
    """Feed could not be retrieved."""

    pass


class FeedRateLimitedError(FeedFetchError):
    """Feed origin answered 429."""

    def __init__(self, message: str, feed_url: Optional[str] = None, **kwargs):
        kwargs.setdefault("error_code", ErrorCode.FEED_RATE_LIMITED)
        kwargs.setdefault("recoverable", True)
        super().__init__(message, feed_url=feed_url, **kwargs)


class FeedParseError(FeedError):
    """Feed body is not a usable RSS/Atom document."""

    def __init__(self, message: str, feed_url: Optional[str] = None, **kwargs):
        kwargs.setdefault("error_code", ErrorCode.FEED_PARSE_ERROR)
        super().__init__(message, feed_url=feed_url, **kwargs)


class CacheError(LufeedError):
    """Cache gateway errors."""

    def __init__(self, message: str, key: Optional[str] = None, **kwargs):
        context = kwargs.get("context", {})
        if key:
            context["key"] = key

        super().__init__(
            message=message,
            error_code=kwargs.get("error_code", ErrorCode.CACHE_OPERATION),
            context=context,
            user_message=kwargs.get("user_message", "Cache operation failed"),
            recoverable=kwargs.get("recoverable", True),
            **_split_kwargs(kwargs, "context", "error_code", "user_message", "recoverable"),
        )


# Exception handling utilities

TRANSIENT_MESSAGES = ("eof", "timeout", "timed out", "deadline exceeded")


def is_transient_error(exception: BaseException) -> bool:
    """Check whether an error is expected to self-resolve on retry.

    Timeouts, connection EOF/resets and deadline-exceeded conditions are
    transient. Rate limiting and terminal HTTP/document errors are not.

    Args:
        exception: Exception to classify

    Returns:
        True if the error is worth retrying
    """
    if isinstance(exception, (RateLimitedError, HTTPStatusError, ValidationError,
                              DocumentDecodeError, DocumentParseError)):
        return False

    if isinstance(exception, (FetchNetworkError, FetchTimeoutError)):
        return True

    if isinstance(exception, (asyncio.TimeoutError, TimeoutError, EOFError, ConnectionResetError)):
        return True

    message = str(exception).lower()
    return any(fragment in message for fragment in TRANSIENT_MESSAGES)


def is_input_error(exception: BaseException) -> bool:
    """Check whether an error was caused by malformed caller input."""
    return isinstance(exception, ValidationError)


def get_user_friendly_message(exception: Exception) -> str:
    """Get user-friendly error message for any exception.

    Args:
        exception: Exception to get message for

    Returns:
        User-friendly error message
    """
    if isinstance(exception, LufeedError):
        return exception.user_message

    return "An unexpected error occurred. Please try again later."
