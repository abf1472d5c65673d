# src/complexity_shell/core/handlers/health_handler.py
import json
import logging
from typing import List, Optional

import requests

from complexity_shell.core.context.shell_context import ShellContext

logger = logging.getLogger(__name__)

health_help_text = """
  health                         Ask the proxying service whether it is up and ready.
""".strip("\n")

HEALTH_TIMEOUT = 5


def handle_health(args: List[str], ctx: ShellContext, _stdin: Optional[str] = None) -> int:
    """Handles the 'health' command. Exit code 0 only when fetches are available."""
    endpoint = f"{ctx.proxy_base_url}/api/health"
    try:
        response = requests.get(endpoint, timeout=HEALTH_TIMEOUT)
        response.raise_for_status()
        payload = response.json()
    except requests.RequestException as e:
        logger.debug("Health check against %s failed: %s", endpoint, e)
        print(f"❌ Proxy service not reachable at {ctx.proxy_base_url}: {e}")
        return 1
    except ValueError:
        print(f"❌ Proxy service at {ctx.proxy_base_url} returned an invalid response.")
        return 1

    if "--json" in args:
        print(json.dumps(payload, indent=2))
    else:
        icon = "✅" if payload.get("fetchAvailable") else "⏳"
        print(f"{icon} {payload.get('status')} - {payload.get('message')} ({payload.get('timestamp')})")
    return 0 if payload.get("fetchAvailable") else 1
