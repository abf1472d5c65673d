# src/page_fetcher/services/retrieval_service.py
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, List, Optional, Protocol
from urllib.parse import urlencode

import aiohttp

from page_fetcher.exceptions import (
    EMPTY_CONTENT,
    PROXY_UNAVAILABLE,
    TIMEOUT,
    UNKNOWN_ERROR,
    FetchError,
    TransportError,
    status_error,
)
from page_fetcher.model import ProxyResponse
from page_fetcher.services.retry_policy import RetrievalState, RetryPolicy
from page_fetcher.utils.url_utils import UrlUtils

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class ProxyTransport(Protocol):
    """Anything able to ask the proxying service for a page."""

    async def get_page(self, url: str) -> ProxyResponse: ...


class ProxyHttpTransport:
    """
    Talks to the proxying service over HTTP (GET /api/proxy?url=...).
    Failures to reach the proxy itself are reported as PROXY_UNAVAILABLE so
    they are never confused with the target host refusing connections.
    """

    def __init__(self, base_url: str, timeout: float = 20.0):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self):
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def initialize(self):
        if not self.session or self.session.closed:
            self.session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout))
            logger.debug("ProxyHttpTransport: Session initialized for %s", self.base_url)

    async def close(self):
        if self.session and not self.session.closed:
            await self.session.close()

    async def get_page(self, url: str) -> ProxyResponse:
        if not self.session or self.session.closed:
            await self.initialize()

        endpoint = f"{self.base_url}/api/proxy?{urlencode({'url': url})}"
        try:
            async with self.session.get(endpoint) as response:
                payload = await response.json(content_type=None)
        except asyncio.TimeoutError as e:
            raise TransportError("Proxy request timed out", code=TIMEOUT) from e
        except (aiohttp.ClientError, ValueError) as e:
            raise TransportError(f"Proxy service unavailable: {e}", code=PROXY_UNAVAILABLE) from e

        if not isinstance(payload, dict):
            raise TransportError("Proxy returned an unexpected payload", code=PROXY_UNAVAILABLE)
        payload.setdefault("success", False)
        return ProxyResponse.model_validate(payload)


@dataclass
class RetrievalOutcome:
    url: str
    state: RetrievalState
    attempts: int
    html: Optional[str] = None
    error: Optional[str] = None
    code: Optional[str] = None
    codes: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.state is RetrievalState.SUCCESS


class RetrievalService:
    """
    Fetches page content through the proxying service.

    Runs an explicit state machine (Attempting -> Backoff -> Attempting ...)
    ending in Success, TerminalFailure or Exhausted. Failures are returned in
    the outcome, never raised; only a malformed URL raises InputError.
    """

    def __init__(self, transport: ProxyTransport, policy: Optional[RetryPolicy] = None,
                 sleep: Sleep = asyncio.sleep):
        self.transport = transport
        self.policy = policy or RetryPolicy()
        self._sleep = sleep

    async def fetch(self, url: str) -> RetrievalOutcome:
        url = UrlUtils.require_http_url(url)

        state = RetrievalState.ATTEMPTING
        attempt = 0
        html: Optional[str] = None
        last_error: Optional[FetchError] = None
        codes: List[str] = []

        while not state.is_final:
            if state is RetrievalState.BACKOFF:
                delay = self.policy.delay_for(attempt)
                logger.info("Retrying %s in %.1fs (attempt %d/%d)", url, delay, attempt + 1, self.policy.max_attempts)
                await self._sleep(delay)
                state = RetrievalState.ATTEMPTING
                continue

            attempt += 1
            try:
                html = await self._attempt(url)
                state = RetrievalState.SUCCESS
            except FetchError as e:
                last_error = e
                codes.append(e.code)
                state = self.policy.next_state(attempt, e.code)
                logger.warning("Attempt %d for %s failed [%s]: %s -> %s", attempt, url, e.code, e.message, state.value)

        if state is RetrievalState.SUCCESS:
            logger.debug("Fetched %s after %d attempt(s)", url, attempt)

        return RetrievalOutcome(
            url=url,
            state=state,
            attempts=attempt,
            html=html,
            error=last_error.message if last_error and state is not RetrievalState.SUCCESS else None,
            code=last_error.code if last_error and state is not RetrievalState.SUCCESS else None,
            codes=codes,
        )

    async def _attempt(self, url: str) -> str:
        response = await self.transport.get_page(url)

        if not response.success:
            if response.code:
                raise TransportError(response.error or response.code, code=response.code)
            if response.status:
                raise status_error(response.status, response.status_text or "")
            raise TransportError(response.error or "Failed to fetch URL content", code=UNKNOWN_ERROR)

        if not response.html:
            raise FetchError("Proxy returned no HTML content", code=EMPTY_CONTENT)

        return response.html
