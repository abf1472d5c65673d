import concurrent.futures
import logging
from datetime import datetime, timezone
from functools import wraps

from flask import Blueprint, current_app, jsonify, request

from complexity_shell.core.loop_runner import run_on_main_loop
from page_fetcher.exceptions import InputError
from page_fetcher.model import HealthStatus

logger = logging.getLogger(__name__)

proxy_api_router = Blueprint('proxy_api_router', __name__)


# --- HELPER FUNCTIONS ---

def get_fetch_service():
    """Retrieves the ProxyFetchService from the Flask application context."""
    service = current_app.config.get('FETCH_SERVICE')
    if not service:
        raise RuntimeError("ProxyFetchService is not set in app.config['FETCH_SERVICE']")
    return service


def get_validation_service():
    service = current_app.config.get('VALIDATION_SERVICE')
    if not service:
        raise RuntimeError("ValidationService is not set in app.config['VALIDATION_SERVICE']")
    return service


def ensure_fetch(view):
    """Answers 503 until the outbound fetch capability has been initialised."""
    @wraps(view)
    def wrapper(*args, **kwargs):
        if not get_fetch_service().ready:
            return jsonify({
                "success": False,
                "error": "Service unavailable - fetch not loaded",
                "message": "Server is still starting up, please try again in a moment",
            }), 503
        return view(*args, **kwargs)
    return wrapper


def _request_timeout() -> float:
    # Upper bound for waiting on the background loop; the services enforce their own timeouts
    return float(current_app.config.get('REQUEST_TIMEOUT', 60))


# --- API ROUTES ---

@proxy_api_router.route('/proxy', methods=['GET'])
@ensure_fetch
def proxy():
    """Fetches the target page and returns its HTML wrapped in JSON."""
    url = request.args.get('url')
    if not url:
        return jsonify({"success": False, "error": "URL parameter is required"}), 400

    try:
        payload, status = run_on_main_loop(get_fetch_service().fetch(url), timeout=_request_timeout())
    except concurrent.futures.TimeoutError:
        logger.warning("Proxy request for %s exceeded %.0fs", url, _request_timeout())
        return jsonify({"success": False, "error": "Request timed out", "code": "TIMEOUT", "status": 504}), 504
    return jsonify(payload.to_wire()), status


@proxy_api_router.route('/validate', methods=['GET'])
@ensure_fetch
def validate():
    """Multi-stage reachability check for a user supplied URL."""
    url = request.args.get('url')
    if not url:
        return jsonify({"valid": False, "reachable": False, "error": "URL parameter is required"}), 400

    try:
        result = run_on_main_loop(get_validation_service().validate(url), timeout=_request_timeout())
    except InputError as e:
        return jsonify({
            "valid": False,
            "reachable": False,
            "error": "Invalid URL format",
            "message": e.message,
            "url": url.strip(),
        }), 400
    except concurrent.futures.TimeoutError:
        logger.warning("Validation of %s exceeded %.0fs", url, _request_timeout())
        return jsonify({
            "valid": False,
            "reachable": False,
            "error": "Validation timed out",
            "code": "TIMEOUT",
            "url": url.strip(),
        }), 504

    return jsonify(result.to_wire())


@proxy_api_router.route('/health', methods=['GET'])
def health():
    """Liveness/readiness probe."""
    ready = get_fetch_service().ready
    status = HealthStatus(
        status="OK",
        timestamp=datetime.now(timezone.utc).isoformat(),
        message="Proxy server is running" if ready else "Proxy server is starting",
        fetch_available=ready,
    )
    return jsonify(status.to_wire())
