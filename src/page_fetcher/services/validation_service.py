# src/page_fetcher/services/validation_service.py
import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List, Optional, Protocol

import aiohttp

from page_fetcher.exceptions import (
    CONNECTION_ERROR,
    DNS_ERROR,
    TIMEOUT,
    FetchError,
    TransportError,
    transport_error_from,
)
from page_fetcher.model import RedirectHop, ValidationResult
from page_fetcher.services.generate_default_user_agent_service import alternate_headers, browser_headers
from page_fetcher.utils.url_utils import UrlUtils

logger = logging.getLogger(__name__)

REDIRECT_STATUSES = (301, 302, 303, 307, 308)
BLOCKED_STATUSES = (403, 429)
BLOCKED_STATUS_TEXT = {403: "Forbidden", 429: "Too Many Requests"}

STATUS_NOTES = {
    403: "Server returns 403 - page exists but access is restricted",
    429: "Server returns 429 - too many requests (rate limiting)",
}

Sleep = Callable[[float], Awaitable[None]]


@dataclass
class ProbeResponse:
    status: int
    status_text: str = ""
    location: Optional[str] = None


class ValidationTransport(Protocol):
    async def request(self, url: str, headers: Dict[str, str], timeout: float) -> ProbeResponse: ...

    async def probe_tcp(self, host: str, port: int, timeout: float) -> None: ...


class AiohttpValidationTransport:
    """Network edge for the ValidationService: single GETs and raw TCP connects."""

    def __init__(self):
        self.session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self):
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def initialize(self):
        if not self.session or self.session.closed:
            self.session = aiohttp.ClientSession()

    async def close(self):
        if self.session and not self.session.closed:
            await self.session.close()

    async def request(self, url: str, headers: Dict[str, str], timeout: float) -> ProbeResponse:
        if not self.session or self.session.closed:
            await self.initialize()
        try:
            async with self.session.get(
                    url,
                    headers=headers,
                    allow_redirects=False,
                    timeout=aiohttp.ClientTimeout(total=timeout)
            ) as response:
                return ProbeResponse(
                    status=response.status,
                    status_text=response.reason or "",
                    location=response.headers.get("Location"),
                )
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            raise transport_error_from(e) from e

    async def probe_tcp(self, host: str, port: int, timeout: float) -> None:
        try:
            _, writer = await asyncio.wait_for(asyncio.open_connection(host, port), timeout=timeout)
        except (asyncio.TimeoutError, OSError) as e:
            raise transport_error_from(e) from e
        writer.close()
        try:
            await writer.wait_closed()
        except OSError:
            logger.debug("Ignoring error while closing TCP probe to %s:%s", host, port)


class ValidationService:
    """
    Probes whether a URL exists and serves content.

    Stage 1: direct GET with browser headers, redirects followed by hand.
    Stage 2: on 403/429, wait and retry once with an alternate header profile.
    Stage 3: still blocked, try a raw TCP connect to tell "host blocks HTTP"
             apart from "host unusable".
    """

    def __init__(
            self,
            transport: ValidationTransport,
            timeout: float = 20.0,
            retry_timeout: float = 15.0,
            retry_delay: float = 2.0,
            tcp_timeout: float = 5.0,
            max_redirects: int = 5,
            chrome_version: str = "120.0.0.0",
            sleep: Sleep = asyncio.sleep,
    ):
        self.transport = transport
        self.timeout = timeout
        self.retry_timeout = retry_timeout
        self.retry_delay = retry_delay
        self.tcp_timeout = tcp_timeout
        self.max_redirects = max_redirects
        self.primary_headers = browser_headers(chrome_version)
        self.alternate_headers = alternate_headers(chrome_version)
        self._sleep = sleep

    @classmethod
    def from_config(cls, transport: ValidationTransport, config: Dict, chrome_version: str = "120.0.0.0"):
        return cls(
            transport,
            timeout=float(config.get("timeout", 20)),
            retry_timeout=float(config.get("retry_timeout", 15)),
            retry_delay=float(config.get("retry_delay", 2)),
            tcp_timeout=float(config.get("tcp_timeout", 5)),
            max_redirects=int(config.get("max_redirects", 5)),
            chrome_version=chrome_version,
        )

    async def validate(self, url: str) -> ValidationResult:
        """Raises InputError for unusable input; every network outcome is a result."""
        url = UrlUtils.normalize_user_url(url)
        logger.info("Validating: %s", url)

        chain: List[RedirectHop] = []
        try:
            current, probe, redirect_note = await self._follow_redirects(url, chain)
        except TransportError as e:
            return self._transport_failure(url, e, chain)

        if redirect_note:
            return ValidationResult(
                valid=True, reachable=False, url=current, status=probe.status,
                status_text=probe.status_text, method="GET", note=redirect_note,
                redirect_chain=chain,
            )

        if probe.status in BLOCKED_STATUSES:
            logger.info("Got %s, trying alternative approaches for: %s", probe.status, current)
            await self._sleep(self.retry_delay)
            try:
                probe = await self.transport.request(current, self.alternate_headers, self.retry_timeout)
            except FetchError as e:
                logger.warning("Alternative approach failed for %s: %s", current, e.message)

        if probe.status in BLOCKED_STATUSES:
            logger.info("Still getting %s, trying TCP validation only for: %s", probe.status, current)
            host, port = UrlUtils.host_and_port(current)
            try:
                await self.transport.probe_tcp(host, port, self.tcp_timeout)
                return ValidationResult(
                    valid=True, reachable=False, url=current, status=probe.status,
                    status_text=probe.status_text, method="TCP Connection",
                    note=f"Host exists but returns {probe.status} {probe.status_text or BLOCKED_STATUS_TEXT[probe.status]} for HTTP requests",
                    redirect_chain=chain,
                )
            except FetchError as e:
                logger.info("TCP connection failed for %s: %s", current, e.message)

        return self._classify_status(current, probe, chain)

    async def _follow_redirects(self, url: str, chain: List[RedirectHop]):
        """
        Explicit bounded redirect loop. Returns the final URL, its probe and
        a note when the loop had to be cut (cycle or hop limit).
        """
        visited = {url}
        current = url
        probe = await self.transport.request(current, self.primary_headers, self.timeout)

        while probe.status in REDIRECT_STATUSES and probe.location:
            target = UrlUtils.resolve_location(current, probe.location)
            chain.append(RedirectHop(source=current, target=target, status=probe.status))
            logger.debug("Following redirect to: %s", target)

            if target in visited:
                return current, probe, f"Redirect loop detected at {target}"
            if len(chain) > self.max_redirects:
                return current, probe, f"Too many redirects (more than {self.max_redirects})"

            visited.add(target)
            current = target
            probe = await self.transport.request(current, self.primary_headers, self.timeout)

        return current, probe, None

    @staticmethod
    def _classify_status(url: str, probe: ProbeResponse, chain: List[RedirectHop]) -> ValidationResult:
        status = probe.status
        reachable = 200 <= status < 400
        valid = reachable or status in BLOCKED_STATUSES
        return ValidationResult(
            valid=valid,
            reachable=reachable,
            url=url,
            status=status,
            status_text=probe.status_text,
            method="GET",
            note=STATUS_NOTES.get(status),
            redirect_chain=chain,
        )

    @staticmethod
    def _transport_failure(url: str, error: TransportError, chain: List[RedirectHop]) -> ValidationResult:
        """
        DNS failure means the host does not exist. Refused or timed out
        connections mean the host exists but does not serve.
        """
        logger.warning("Validation error for %s: [%s] %s", url, error.code, error.message)
        if error.code == DNS_ERROR:
            valid = False
        elif error.code in (CONNECTION_ERROR, TIMEOUT):
            valid = True
        else:
            valid = False
        return ValidationResult(
            valid=valid,
            reachable=False,
            url=url,
            method="GET",
            error=error.message,
            code=error.code,
            redirect_chain=chain,
        )
