# src/complexity_shell/core/handlers/serve_handler.py
import logging
from typing import List, Optional

from complexity_shell.core.context.shell_context import ShellContext
from complexity_shell.core.utils.arg_parser import NoExitArgumentParser

logger = logging.getLogger(__name__)

serve_help_text = """
SERVER:
  serve [--host H] [--port P] [--debug]
                                 Start the proxying service (/api/proxy, /api/validate, /api/health).
""".strip()


def handle_serve(args: List[str], ctx: ShellContext, _stdin: Optional[str] = None) -> int:
    """Handles the 'serve' command. Blocks until the server is stopped."""
    proxy = ctx.config.get("proxy") or {}
    parser = NoExitArgumentParser(prog="serve", add_help=False)
    parser.add_argument("--host", default=proxy.get("host", "0.0.0.0"))
    parser.add_argument("--port", type=int, default=int(proxy.get("port", 3001)))
    parser.add_argument("--debug", action="store_true")
    try:
        parsed = parser.parse_args(args)
    except ValueError:
        return 1

    # Flask is only imported when the server is actually requested
    from page_fetcher.server.app import serve

    try:
        serve(parsed.host, parsed.port, parsed.debug)
    except OSError as e:
        logger.error("Could not start the proxying service on %s:%s: %s", parsed.host, parsed.port, e)
        print(f"❌ Could not start server: {e}")
        return 1
    return 0
