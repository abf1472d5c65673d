# src/page_fetcher/exceptions.py
import asyncio
import socket
from typing import Optional

import aiohttp

# Transport codes shared by the proxying service and its clients
TIMEOUT = "TIMEOUT"
DNS_ERROR = "DNS_ERROR"
CONNECTION_ERROR = "CONNECTION_ERROR"
CONNECTION_RESET = "CONNECTION_RESET"
PROXY_UNAVAILABLE = "PROXY_UNAVAILABLE"
EMPTY_CONTENT = "EMPTY_CONTENT"
UNKNOWN_ERROR = "UNKNOWN_ERROR"


class FetchError(Exception):
    """Base class for every retrieval/validation failure."""

    code: str = UNKNOWN_ERROR

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code


class InputError(FetchError):
    """Missing or malformed URL. Never retried."""

    code = "INVALID_URL"


class TransportError(FetchError):
    """DNS failure, refused/reset connection or timeout."""


class UpstreamStatusError(FetchError):
    """The target page answered with a non-2xx/3xx status."""

    def __init__(self, status: int, status_text: str = "", message: Optional[str] = None):
        super().__init__(message or f"HTTP {status}: {status_text}".strip(), code=f"HTTP_{status}")
        self.status = status
        self.status_text = status_text


class RateLimited(UpstreamStatusError):
    """HTTP 429."""

    def __init__(self, status_text: str = "Too Many Requests", message: Optional[str] = None):
        super().__init__(429, status_text, message)


class AccessDenied(UpstreamStatusError):
    """HTTP 403."""

    def __init__(self, status_text: str = "Forbidden", message: Optional[str] = None):
        super().__init__(403, status_text, message)


def status_error(status: int, status_text: str = "") -> UpstreamStatusError:
    """Builds the most specific UpstreamStatusError for a status code."""
    if status == 429:
        return RateLimited(status_text or "Too Many Requests")
    if status == 403:
        return AccessDenied(status_text or "Forbidden")
    return UpstreamStatusError(status, status_text)


def _os_error_code(os_error: Optional[BaseException]) -> Optional[str]:
    if isinstance(os_error, socket.gaierror):
        return DNS_ERROR
    if isinstance(os_error, ConnectionRefusedError):
        return CONNECTION_ERROR
    if isinstance(os_error, ConnectionResetError):
        return CONNECTION_RESET
    if isinstance(os_error, (TimeoutError, socket.timeout)):
        return TIMEOUT
    return None


def transport_error_from(exc: BaseException) -> TransportError:
    """
    Maps aiohttp / asyncio / OS level exceptions onto a TransportError with
    one of the shared codes. Unknown failures keep their class name as an
    opaque code.
    """
    if isinstance(exc, TransportError):
        return exc

    if isinstance(exc, asyncio.TimeoutError):
        return TransportError("Request timeout", code=TIMEOUT)

    if isinstance(exc, aiohttp.ClientConnectorError):
        code = _os_error_code(getattr(exc, "os_error", None)) or CONNECTION_ERROR
        messages = {
            DNS_ERROR: "Domain not found - DNS lookup failed",
            CONNECTION_ERROR: "Connection refused by server",
            CONNECTION_RESET: "Connection reset by server",
            TIMEOUT: "Connection timeout",
        }
        return TransportError(messages.get(code, str(exc)), code=code)

    if isinstance(exc, aiohttp.ServerDisconnectedError):
        return TransportError("Connection reset by server", code=CONNECTION_RESET)

    if isinstance(exc, aiohttp.ClientOSError):
        code = _os_error_code(exc) or _os_error_code(exc.__cause__)
        if code:
            return TransportError(str(exc) or code, code=code)

    code = _os_error_code(exc)
    if code:
        return TransportError(str(exc) or code, code=code)

    return TransportError(str(exc) or type(exc).__name__, code=type(exc).__name__.upper())
