"""
Complexity Analyzer - Proxy Server
Flask entry point performing outbound page fetches and URL validation on
behalf of the analyzer.
"""

import argparse
import logging
from typing import Optional

from flask import Flask, jsonify

from complexity_shell.core.loop_runner import ensure_background_loop, run_on_main_loop, stop_background_loop
from complexity_shell.core.managers.config_manager import config_manager
from complexity_shell.core.utils.configure_logging import configure_from_settings
from page_fetcher.server.routers.proxy_api_router import proxy_api_router
from page_fetcher.services.proxy_fetch_service import ProxyFetchService
from page_fetcher.services.validation_service import AiohttpValidationTransport, ValidationService

logger = logging.getLogger(__name__)

SERVICE_NAME = "Web Complexity Analyzer Proxy"
SERVICE_VERSION = "1.0.2"


def build_services():
    """Creates the outbound services from settings.json."""
    chrome_version = config_manager.get_nested("user_agent.chrome_version", "120.0.0.0")
    proxy_config = dict(config_manager.get_section("proxy"))
    proxy_config.setdefault("chrome_version", chrome_version)

    fetch_service = ProxyFetchService(proxy_config)
    validation_transport = AiohttpValidationTransport()
    validation_service = ValidationService.from_config(
        validation_transport,
        config_manager.get_section("validation"),
        chrome_version=chrome_version,
    )
    return fetch_service, validation_service


def request_timeout_budget(validation_config: dict, proxy_config: Optional[dict] = None) -> float:
    """
    Longest a route may wait on the background loop: the worst-case validation
    (every redirect hop timing out, then the alternate-header retry and the TCP
    probe) or a proxied fetch, whichever is larger.
    """
    proxy_config = proxy_config or {}
    hops = int(validation_config.get("max_redirects", 5)) + 1
    validation_worst = (
        float(validation_config.get("timeout", 20)) * hops
        + float(validation_config.get("retry_delay", 2))
        + float(validation_config.get("retry_timeout", 15))
        + float(validation_config.get("tcp_timeout", 5))
    )
    fetch_worst = float(proxy_config.get("fetch_timeout", 15)) + float(proxy_config.get("read_timeout", 15))
    return max(validation_worst, fetch_worst)


def create_app(
        fetch_service: Optional[ProxyFetchService] = None,
        validation_service: Optional[ValidationService] = None,
        start_loop: bool = True,
) -> Flask:
    """
    Application factory. With start_loop the aiohttp sessions are opened on
    the persistent background loop before the first request is served.
    """
    flask_app = Flask(__name__)

    if fetch_service is None or validation_service is None:
        built_fetch, built_validation = build_services()
        fetch_service = fetch_service or built_fetch
        validation_service = validation_service or built_validation

    if start_loop:
        ensure_background_loop()
        run_on_main_loop(fetch_service.initialize())
        transport = getattr(validation_service, "transport", None)
        if hasattr(transport, "initialize"):
            run_on_main_loop(transport.initialize())
        logger.info("Outbound sessions initialized on background loop.")

    flask_app.config['FETCH_SERVICE'] = fetch_service
    flask_app.config['VALIDATION_SERVICE'] = validation_service
    flask_app.config['REQUEST_TIMEOUT'] = request_timeout_budget(
        config_manager.get_section("validation"), config_manager.get_section("proxy")
    )

    flask_app.register_blueprint(proxy_api_router, url_prefix='/api')

    @flask_app.after_request
    def add_cors_headers(response):
        response.headers['Access-Control-Allow-Origin'] = '*'
        response.headers['Access-Control-Allow-Headers'] = 'Content-Type'
        return response

    @flask_app.route('/')
    def index():
        return jsonify({
            "name": SERVICE_NAME,
            "version": SERVICE_VERSION,
            "status": "running",
            "fetchAvailable": fetch_service.ready,
            "endpoints": {
                "proxy": "/api/proxy?url=<URL>",
                "validate": "/api/validate?url=<URL>",
                "health": "/api/health",
            },
            "examples": {
                "validate": "/api/validate?url=example.com",
                "proxy": "/api/proxy?url=https://example.com",
            },
        })

    return flask_app


def serve(host: str, port: int, debug: bool = False) -> None:
    """Builds the application and runs the Flask development server."""
    app = create_app()

    print("\n" + "=" * 50)
    print(f"🚀  {SERVICE_NAME}")
    print("=" * 50)
    print(f"📡  Listening on:  http://{host}:{port}")
    print(f"🔍  Validate:      http://localhost:{port}/api/validate?url=example.com")
    print(f"💓  Health:        http://localhost:{port}/api/health")
    print("-" * 50 + "\n")

    # use_reloader=False prevents a second process from opening its own sessions
    try:
        app.run(debug=debug, host=host, port=port, use_reloader=False)
    finally:
        shutdown(app)


def shutdown(flask_app: Flask) -> None:
    """Closes the outbound sessions and stops the background loop."""
    run_on_main_loop(flask_app.config["FETCH_SERVICE"].close(), timeout=5)
    transport = getattr(flask_app.config["VALIDATION_SERVICE"], "transport", None)
    if hasattr(transport, "close"):
        run_on_main_loop(transport.close(), timeout=5)
    stop_background_loop()
    logger.info("Proxy server stopped; outbound sessions closed.")


def main():
    parser = argparse.ArgumentParser(description=SERVICE_NAME)
    parser.add_argument("--host", type=str, default=config_manager.get_nested("proxy.host", "0.0.0.0"),
                        help="Host interface to bind to")
    parser.add_argument("--port", type=int, default=int(config_manager.get_nested("proxy.port", 3001)),
                        help="Port to bind the server to")
    parser.add_argument("--debug", action="store_true", help="Enable Flask debug mode")
    args = parser.parse_args()

    configure_from_settings(config_manager.get_all())
    serve(args.host, args.port, args.debug)


if __name__ == '__main__':
    main()
