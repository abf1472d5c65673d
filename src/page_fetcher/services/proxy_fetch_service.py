# src/page_fetcher/services/proxy_fetch_service.py
import asyncio
import logging
import time
from typing import Dict, Optional, Tuple

import aiohttp

from page_fetcher.exceptions import (
    CONNECTION_ERROR,
    CONNECTION_RESET,
    DNS_ERROR,
    TIMEOUT,
    InputError,
    transport_error_from,
)
from page_fetcher.model import ProxyResponse
from page_fetcher.services.generate_default_user_agent_service import browser_headers
from page_fetcher.utils.url_utils import UrlUtils

logger = logging.getLogger(__name__)

# HTTP status the proxy answers with for each transport failure code
TRANSPORT_STATUS = {
    TIMEOUT: 408,
    DNS_ERROR: 404,
    CONNECTION_ERROR: 502,
    CONNECTION_RESET: 502,
}


class ProxyFetchService:
    """
    Performs the real outbound HTTP transaction on behalf of the analyzer.
    Spoofs browser headers, enforces a per-request timeout and reports
    failures with a machine readable code instead of raising.
    """

    def __init__(self, config: Dict):
        self.config = config
        self.timeout = float(config.get('fetch_timeout', 15))
        self.read_timeout = float(config.get('read_timeout', 15))
        self.max_sockets = int(config.get('max_sockets', 5))
        self.headers = browser_headers(config.get('chrome_version', '120.0.0.0'))
        self.session: Optional[aiohttp.ClientSession] = None

    @property
    def ready(self) -> bool:
        """True once the outbound session exists (reported by /api/health)."""
        return self.session is not None and not self.session.closed

    async def __aenter__(self):
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def initialize(self):
        if not self.session or self.session.closed:
            connector = aiohttp.TCPConnector(limit_per_host=self.max_sockets, ttl_dns_cache=300)
            self.session = aiohttp.ClientSession(
                connector=connector,
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                headers=self.headers,
            )
            logger.debug("ProxyFetchService: Session initialized. Timeout: %ss", self.timeout)

    async def close(self):
        if self.session and not self.session.closed:
            await self.session.close()
            logger.debug("ProxyFetchService: Session closed.")

    async def fetch(self, url: str) -> Tuple[ProxyResponse, int]:
        """
        Fetches `url` and returns the proxy payload together with the HTTP
        status the proxy endpoint should answer with.
        """
        try:
            url = UrlUtils.require_http_url(url)
        except InputError as e:
            return ProxyResponse(success=False, error=e.message, code=e.code), 400

        if not self.ready:
            await self.initialize()

        logger.info("Proxying request to: %s", url)
        start = time.perf_counter()
        try:
            async with self.session.get(url) as response:
                status = response.status
                status_text = response.reason or ""

                if not 200 <= status < 300:
                    logger.info("Response not OK: %s %s", status, status_text)
                    return ProxyResponse(
                        success=False,
                        error=f"HTTP {status}: {status_text}",
                        status=status,
                        status_text=status_text,
                    ), status

                html = await self._read_content(response, url)

        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            error = transport_error_from(e)
            if error.code == TIMEOUT:
                error.message = f"Request timeout after {self.timeout:g} seconds"
            logger.warning("Proxy error for %s: [%s] %s", url, error.code, error.message)
            return ProxyResponse(success=False, error=error.message, code=error.code), \
                TRANSPORT_STATUS.get(error.code, 500)

        elapsed = round((time.perf_counter() - start) * 1000, 2)
        logger.info("Successfully fetched %d characters from %s in %sms", len(html), url, elapsed)
        return ProxyResponse(
            success=True,
            status=status,
            status_text=status_text,
            html=html,
            url=url,
            content_length=len(html),
        ), 200

    async def _read_content(self, response: aiohttp.ClientResponse, url: str) -> str:
        """Reads the response body, falling back to lossy decoding."""
        try:
            return await asyncio.wait_for(response.text(), timeout=self.read_timeout)
        except UnicodeDecodeError:
            logger.debug("Falling back to lossy decoding for %s", url)
            content_bytes = await response.read()
            return content_bytes.decode('utf-8', errors='replace')
