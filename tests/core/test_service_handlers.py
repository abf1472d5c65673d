# tests/core/test_service_handlers.py
import json
from unittest.mock import MagicMock, patch

import pytest
import requests

from complexity_shell.core.context.shell_context import ShellContext
from complexity_shell.core.handlers.health_handler import handle_health
from complexity_shell.core.handlers.serve_handler import handle_serve
from complexity_shell.core.handlers.validate_handler import handle_validate
from page_fetcher.model import RedirectHop, ValidationResult


@pytest.fixture
def ctx():
    return ShellContext(config={"proxy": {"base_url": "http://proxy.local:3001/", "host": "127.0.0.1", "port": 3100}})


def _returning(value):
    def runner(coro, *args, **kwargs):
        coro.close()
        return value
    return runner


def test_validate_prints_result(ctx, capsys):
    result = ValidationResult(
        valid=True, reachable=True, url="https://example.com/home", status=200, status_text="OK",
        method="GET", redirect_chain=[RedirectHop(source="https://example.com", target="https://example.com/home",
                                                  status=301)],
    )
    with patch("complexity_shell.core.handlers.validate_handler.run_on_main_loop",
               side_effect=_returning(result)):
        assert handle_validate(["example.com"], ctx) == 0

    out = capsys.readouterr().out
    assert "Reachable:  True" in out
    assert "301 https://example.com -> https://example.com/home" in out


def test_validate_invalid_host_exit_code(ctx, capsys):
    result = ValidationResult(valid=False, reachable=False, url="https://nope.example", method="GET",
                              error="Domain not found - DNS lookup failed", code="DNS_ERROR")
    with patch("complexity_shell.core.handlers.validate_handler.run_on_main_loop",
               side_effect=_returning(result)):
        assert handle_validate(["nope.example", "--json"], ctx) == 1

    body = json.loads(capsys.readouterr().out)
    assert body["code"] == "DNS_ERROR"


def test_validate_usage(ctx):
    assert handle_validate([], ctx) == 1


def test_health_reports_ready(ctx, capsys):
    response = MagicMock()
    response.json.return_value = {"status": "OK", "message": "Proxy server is running",
                                  "timestamp": "2026-01-01T00:00:00+00:00", "fetchAvailable": True}
    with patch("complexity_shell.core.handlers.health_handler.requests.get", return_value=response) as get:
        assert handle_health([], ctx) == 0

    get.assert_called_once_with("http://proxy.local:3001/api/health", timeout=5)
    assert "Proxy server is running" in capsys.readouterr().out


def test_health_proxy_down(ctx, capsys):
    with patch("complexity_shell.core.handlers.health_handler.requests.get",
               side_effect=requests.ConnectionError("refused")):
        assert handle_health([], ctx) == 1
    assert "not reachable" in capsys.readouterr().out


def test_serve_uses_configured_defaults(ctx):
    with patch("page_fetcher.server.app.serve") as serve:
        assert handle_serve([], ctx) == 0
    serve.assert_called_once_with("127.0.0.1", 3100, False)


def test_serve_overrides(ctx):
    with patch("page_fetcher.server.app.serve") as serve:
        assert handle_serve(["--port", "8080", "--debug"], ctx) == 0
    serve.assert_called_once_with("127.0.0.1", 8080, True)


def test_serve_bad_arguments(ctx, capsys):
    assert handle_serve(["--port", "eighty"], ctx) == 1
