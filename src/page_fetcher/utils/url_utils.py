# src/page_fetcher/utils/url_utils.py
import logging
from typing import Optional
from urllib.parse import urljoin, urlparse

from page_fetcher.exceptions import InputError

logger = logging.getLogger(__name__)


class UrlUtils:
    """A collection of static methods for URL parsing and manipulation."""

    @staticmethod
    def require_http_url(url: Optional[str]) -> str:
        """
        Rejects missing or malformed URLs. The URL is returned untouched so
        callers keep control over formatting (cache keys are exact strings).
        """
        if not isinstance(url, str) or not url.strip():
            raise InputError("URL parameter is required")
        try:
            parsed = urlparse(url.strip())
            parsed.port  # out-of-range ports raise ValueError
        except ValueError as e:
            raise InputError(f"Invalid URL format: {e}") from e
        if parsed.scheme not in ("http", "https") or not parsed.hostname:
            raise InputError(f"Invalid URL format: {url}")
        return url

    @staticmethod
    def normalize_user_url(url: Optional[str]) -> str:
        """
        Cleans user typed input: trims whitespace and prepends https:// when
        no scheme is given ('klix.ba' -> 'https://klix.ba').
        """
        if not isinstance(url, str) or not url.strip():
            raise InputError("URL parameter is required")

        url = url.strip()
        if not url.startswith(("http://", "https://")):
            url = "https://" + url

        # Someone typed only the scheme
        if url in ("https://https", "http://https", "https://http", "http://http"):
            raise InputError("Invalid URL format - please enter a complete URL (e.g. example.com)")

        return UrlUtils.require_http_url(url)

    @staticmethod
    def resolve_location(current_url: str, location: str) -> str:
        """Resolves a (possibly relative) Location header against the current URL."""
        return urljoin(current_url, location)

    @staticmethod
    def host_and_port(url: str) -> tuple[str, int]:
        """Returns (hostname, port) with the scheme's default port filled in."""
        parsed = urlparse(UrlUtils.require_http_url(url).strip())
        port = parsed.port or (443 if parsed.scheme == "https" else 80)
        return parsed.hostname or "", port
