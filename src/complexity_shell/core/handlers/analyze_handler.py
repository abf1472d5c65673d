# src/complexity_shell/core/handlers/analyze_handler.py
import json
import logging
from pathlib import Path
from typing import List, Optional

from complexity_analyzer.model import ComplexityMetrics
from complexity_shell.core.context.shell_context import ShellContext
from complexity_shell.core.loop_runner import run_on_main_loop
from complexity_shell.core.utils.arg_parser import NoExitArgumentParser
from complexity_shell.core.utils.metrics_printer import print_metrics
from page_fetcher.exceptions import InputError
from page_fetcher.utils.url_utils import UrlUtils

logger = logging.getLogger(__name__)

analyze_help_text = """
ANALYSIS:
  analyze <url> [--json]         Fetch a page through the proxy and score it.
  analyze --file <path> [--json] Score a local HTML document.
""".strip()


def _build_parser() -> NoExitArgumentParser:
    parser = NoExitArgumentParser(prog="analyze", add_help=False)
    parser.add_argument("url", nargs="?")
    parser.add_argument("--file", dest="file_path")
    parser.add_argument("--json", action="store_true")
    return parser


async def _analyze_url(ctx: ShellContext, url: str) -> ComplexityMetrics:
    controller = ctx.controller
    try:
        return await controller.analyze_from_url(url)
    finally:
        await controller.close()


def handle_analyze(args: List[str], ctx: ShellContext, _stdin: Optional[str] = None) -> int:
    """Handles the 'analyze' command for a URL or a local file."""
    try:
        parsed = _build_parser().parse_args(args)
    except ValueError:
        return 1

    if bool(parsed.url) == bool(parsed.file_path):
        print("Usage: analyze <url> | analyze --file <path> [--json]")
        return 1

    try:
        if parsed.file_path:
            path = Path(parsed.file_path)
            html = path.read_text(encoding="utf-8", errors="replace")
            metrics = ctx.controller.analyze_from_content(html, url=path.resolve().as_uri())
        else:
            url = UrlUtils.normalize_user_url(parsed.url)
            metrics = run_on_main_loop(_analyze_url(ctx, url))
    except InputError as e:
        print(f"❌ {e.message}")
        return 1
    except OSError as e:
        print(f"❌ Could not read file: {e}")
        return 1

    if parsed.json:
        print(json.dumps(metrics.to_wire(), indent=2))
    else:
        print_metrics(metrics)
    return 0
