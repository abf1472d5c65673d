# tests/analyzer/test_analysis_controller.py
import asyncio

import pytest

from complexity_analyzer.controllers.analysis_controller import AnalysisController
from complexity_analyzer.managers.result_cache_manager import ResultCache
from page_fetcher.exceptions import InputError
from page_fetcher.model import ProxyResponse
from page_fetcher.services.retrieval_service import RetrievalService

PAGE = "<html><body><div><p>Hello</p></div></body></html>"


class FakeTransport:
    """Replays queued proxy responses; the last one repeats."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []
        self.closed = False

    async def get_page(self, url):
        self.calls.append(url)
        if len(self.responses) > 1:
            return self.responses.pop(0)
        return self.responses[0]

    async def close(self):
        self.closed = True


class FakeSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


def ok(html=PAGE):
    return ProxyResponse(success=True, html=html, status=200, status_text="OK")


def failure(code, error="failed"):
    return ProxyResponse(success=False, error=error, code=code)


def build(transport, sleep=None):
    sleep = sleep or FakeSleep()
    controller = AnalysisController(RetrievalService(transport, sleep=sleep), cache=ResultCache())
    return controller, sleep


def test_dns_failure_is_terminal_and_synthetic():
    transport = FakeTransport(failure("DNS_ERROR", "Domain not found - DNS lookup failed"))
    controller, sleep = build(transport)

    metrics = asyncio.run(controller.analyze_from_url("https://no-such-host.example"))

    assert len(transport.calls) == 1
    assert sleep.delays == []
    assert metrics.is_synthetic
    assert metrics.error_code == "DNS_ERROR"
    assert metrics.error == "Domain not found - DNS lookup failed"


def test_two_failures_then_success_is_genuine():
    transport = FakeTransport(failure("TIMEOUT"), failure("CONNECTION_RESET"), ok())
    controller, sleep = build(transport)

    metrics = asyncio.run(controller.analyze_from_url("https://example.com"))

    assert len(transport.calls) == 3
    assert sleep.delays == [1.0, 2.0]
    assert not metrics.is_synthetic
    assert metrics.source == "extracted"
    assert metrics.dom_depth == 2
    assert metrics.url == "https://example.com"


def test_exhausted_retries_fall_back_to_synthetic():
    transport = FakeTransport(failure("TIMEOUT", "Request timeout after 15 seconds"))
    controller, sleep = build(transport)

    metrics = asyncio.run(controller.analyze_from_url("https://slow.example.com"))

    assert len(transport.calls) == 3
    assert sleep.delays == [1.0, 2.0]
    assert metrics.is_synthetic
    assert metrics.error_code == "TIMEOUT"


def test_upstream_404_is_terminal():
    transport = FakeTransport(ProxyResponse(success=False, status=404, status_text="Not Found",
                                            error="HTTP 404: Not Found"))
    controller, _ = build(transport)

    metrics = asyncio.run(controller.analyze_from_url("https://example.com/missing"))

    assert len(transport.calls) == 1
    assert metrics.error_code == "HTTP_404"


def test_empty_html_is_terminal():
    transport = FakeTransport(ok(html=""))
    controller, _ = build(transport)
    metrics = asyncio.run(controller.analyze_from_url("https://example.com"))
    assert len(transport.calls) == 1
    assert metrics.error_code == "EMPTY_CONTENT"


def test_genuine_results_are_cached():
    transport = FakeTransport(ok())
    controller, _ = build(transport)

    async def twice():
        first = await controller.analyze_from_url("https://example.com")
        second = await controller.analyze_from_url("https://example.com")
        return first, second

    first, second = asyncio.run(twice())
    assert first is second
    assert len(transport.calls) == 1


def test_synthetic_results_are_not_cached():
    transport = FakeTransport(failure("DNS_ERROR"))
    controller, _ = build(transport)

    async def twice():
        await controller.analyze_from_url("https://gone.example.com")
        await controller.analyze_from_url("https://gone.example.com")

    asyncio.run(twice())
    assert len(transport.calls) == 2
    assert len(controller.cache) == 0


@pytest.mark.parametrize("bad_url", ["", "   ", "not a url", "ftp://example.com"])
def test_malformed_input_raises(bad_url):
    transport = FakeTransport(ok())
    controller, _ = build(transport)
    with pytest.raises(InputError):
        asyncio.run(controller.analyze_from_url(bad_url))
    assert transport.calls == []


def test_analyze_from_content_is_pure():
    controller, _ = build(FakeTransport(ok()))
    first = controller.analyze_from_content("<html><body><div></div></body></html>")
    second = controller.analyze_from_content("<html><body><div></div></body></html>")

    assert first == second
    assert first.dom_depth == 1
    assert first.total_elements == 1
    assert first.element_types == 1
    assert 0 <= first.complexity_score <= 100
    assert len(controller.cache) == 0


def test_close_releases_transport():
    transport = FakeTransport(ok())
    controller, _ = build(transport)
    asyncio.run(controller.close())
    assert transport.closed


def test_from_config_reads_sections():
    config = {
        "proxy": {"base_url": "http://proxy.local:4000/"},
        "retrieval": {"max_attempts": 5, "backoff_ms": 250},
        "scoring": {"profile": "classic"},
        "css": {"stylesheet_weight": 12},
        "cache": {"ttl_seconds": 30},
    }
    controller = AnalysisController.from_config(config)

    assert controller.retrieval.transport.base_url == "http://proxy.local:4000"
    assert controller.retrieval.policy.max_attempts == 5
    assert controller.retrieval.policy.backoff_ms == 250
    assert controller.scorer.profile == "classic"
    assert controller.extractor.stylesheet_weight == 12
    assert controller.cache.ttl_seconds == 30.0
