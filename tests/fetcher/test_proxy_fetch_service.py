# tests/fetcher/test_proxy_fetch_service.py
import asyncio

import pytest

from page_fetcher.services.proxy_fetch_service import TRANSPORT_STATUS, ProxyFetchService


def test_defaults_from_config():
    service = ProxyFetchService({"fetch_timeout": 12, "max_sockets": 3, "chrome_version": "121.0.0.0"})
    assert service.timeout == 12.0
    assert service.max_sockets == 3
    assert "Chrome/121.0.0.0" in service.headers["User-Agent"]
    assert service.ready is False


@pytest.mark.parametrize("url", ["not-a-url", "https://example.com:99999/"])
def test_invalid_url_is_rejected_without_a_session(url):
    service = ProxyFetchService({})
    payload, status = asyncio.run(service.fetch(url))
    assert status == 400
    assert payload.success is False
    assert payload.code == "INVALID_URL"
    assert service.session is None


def test_initialize_and_close():
    async def lifecycle():
        service = ProxyFetchService({})
        await service.initialize()
        ready = service.ready
        await service.close()
        return ready, service.ready

    assert asyncio.run(lifecycle()) == (True, False)


def test_transport_status_map():
    assert TRANSPORT_STATUS == {
        "TIMEOUT": 408,
        "DNS_ERROR": 404,
        "CONNECTION_ERROR": 502,
        "CONNECTION_RESET": 502,
    }
