"""
URL Helpers
===========

Normalization of page URLs and resolution of image/icon references found in
documents. Every URL that reaches an entity goes through these helpers so
that stored URLs are always absolute.
"""

from urllib.parse import urljoin, urlsplit, urlunsplit

from .exceptions import InvalidURLError

ALLOWED_SCHEMES = ("http://", "https://")


def strip_query(url: str) -> str:
    """Drop the query string (and anything after it) from a URL."""
    return (url or "").split("?", 1)[0]


def home_url(url: str) -> str:
    """``scheme://host`` of an absolute URL, or an empty string."""
    try:
        parsed = urlsplit(url)
    except ValueError:
        return ""
    if not parsed.scheme or not parsed.netloc:
        return ""
    return f"{parsed.scheme}://{parsed.netloc}"


def normalize_page_url(raw_url: str, fallback_host: str = "") -> str:
    """Turn user or feed supplied input into an absolute http(s) URL.

    - surrounding whitespace is trimmed
    - ``scheme:/path`` is repaired into ``scheme://path``
    - ``/path`` and ``//host/path`` are resolved against ``fallback_host``
    - a missing scheme defaults to ``https://``

    Args:
        raw_url: URL to normalize
        fallback_host: Absolute URL used to resolve host-less input

    Returns:
        Normalized absolute URL

    Raises:
        InvalidURLError: If the input is empty or has no host
    """
    url = (raw_url or "").strip()
    if not url:
        raise InvalidURLError("Empty URL provided", url=raw_url)

    if "://" not in url:
        url = url.replace(":/", "://", 1)

    if url.startswith("/"):
        try:
            host = urlsplit((fallback_host or "").strip())
        except ValueError:
            host = None
        if host is None or not host.scheme or not host.netloc:
            raise InvalidURLError(
                f"Cannot resolve relative URL with invalid host: {fallback_host}", url=raw_url
            )
        if url.startswith("//"):
            url = f"{host.scheme}:{url}"
        else:
            url = f"{host.scheme}://{host.netloc}{url}"

    if not url.lower().startswith(ALLOWED_SCHEMES):
        url = "https://" + url

    try:
        parsed = urlsplit(url)
    except ValueError as e:
        raise InvalidURLError(f"Invalid URL format: {url}: {e}", url=raw_url) from e

    if not parsed.netloc or not parsed.hostname:
        raise InvalidURLError(f"URL missing host: {url}", url=raw_url)

    return url


def resolve_url(base_url: str, href: str) -> str:
    """Resolve an image or icon reference found on ``base_url``.

    Absolute references pass through. Protocol-relative references inherit
    the base scheme (https when the base has none). Relative references are
    resolved against the base with its last path segment removed.

    Returns:
        Absolute URL, or an empty string when nothing can be resolved
    """
    href = (href or "").strip()
    if not href:
        return ""

    if href.startswith("//"):
        try:
            scheme = urlsplit(base_url or "").scheme
        except ValueError:
            scheme = ""
        return f"{scheme or 'https'}:{href}"

    try:
        if urlsplit(href).scheme:
            return href
        base = urlsplit(base_url or "")
    except ValueError:
        return ""

    if not base.scheme or not base.netloc:
        return ""

    segments = base.path.split("/")
    path = "/".join(segments[:-1]) if len(segments) > 1 else base.path
    trimmed_base = urlunsplit((base.scheme, base.netloc, path, "", ""))
    return urljoin(trimmed_base, href)


def join_url(base_url: str, href: str) -> str:
    """Resolve a link found on ``base_url`` the way a browser would.

    Unlike ``resolve_url`` the base keeps its full path, so ``icon.png`` on
    ``https://a.com/blog/`` becomes ``https://a.com/blog/icon.png``.

    Returns:
        Absolute URL, or an empty string when nothing can be resolved
    """
    href = (href or "").strip()
    if not href:
        return ""

    if href.startswith("//"):
        return resolve_url(base_url, href)

    try:
        if urlsplit(href).scheme:
            return href
        base = urlsplit(base_url or "")
    except ValueError:
        return ""

    if not base.scheme or not base.netloc:
        return ""
    return urljoin(base_url, href)
