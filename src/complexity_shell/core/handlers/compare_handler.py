# src/complexity_shell/core/handlers/compare_handler.py
import logging
from typing import List, Optional

import pandas as pd
from tqdm.auto import tqdm

from complexity_analyzer.model import ComplexityMetrics
from complexity_shell.core.context.shell_context import ShellContext
from complexity_shell.core.loop_runner import run_on_main_loop
from page_fetcher.exceptions import InputError
from page_fetcher.utils.url_utils import UrlUtils

logger = logging.getLogger(__name__)

compare_help_text = """
COMPARISON:
  compare <url> <url> [...]      Analyse several pages and rank them by score.
""".strip()

TABLE_COLUMNS = [
    "url", "score", "level", "source", "domDepth", "totalElements",
    "imageCount", "cssRules", "clickableElements", "colorCount",
]


async def _analyze_all(ctx: ShellContext, urls: List[str]) -> List[ComplexityMetrics]:
    """Sequential on purpose: the proxy rate limits and retries are per request."""
    controller = ctx.controller
    results: List[ComplexityMetrics] = []
    pbar = tqdm(total=len(urls), desc="Analysing", unit="page")
    try:
        for url in urls:
            results.append(await controller.analyze_from_url(url))
            pbar.update(1)
    finally:
        pbar.close()
        await controller.close()
    return results


def build_comparison_frame(results: List[ComplexityMetrics]) -> pd.DataFrame:
    rows = []
    for metrics in results:
        wire = metrics.to_wire()
        row = {
            "url": metrics.url,
            "score": metrics.complexity_score,
            "level": metrics.complexity_level,
            "source": metrics.source,
        }
        row.update({col: wire.get(col) for col in TABLE_COLUMNS if col not in row})
        rows.append(row)

    df = pd.DataFrame(rows, columns=TABLE_COLUMNS)
    return df.sort_values("score", ascending=False, kind="stable").reset_index(drop=True)


def handle_compare(args: List[str], ctx: ShellContext, _stdin: Optional[str] = None) -> int:
    """Handles the 'compare' command."""
    if len(args) < 2:
        print("Usage: compare <url> <url> [...]")
        return 1

    max_urls = int((ctx.config.get("compare") or {}).get("max_urls", 10))
    if len(args) > max_urls:
        print(f"❌ At most {max_urls} URLs can be compared at once.")
        return 1

    try:
        urls = [UrlUtils.normalize_user_url(arg) for arg in args]
    except InputError as e:
        print(f"❌ {e.message}")
        return 1

    results = run_on_main_loop(_analyze_all(ctx, urls))
    df = build_comparison_frame(results)

    print("\n--- Complexity Comparison ---")
    print(df.to_string(index=False))

    synthetic = [m for m in results if m.is_synthetic]
    if synthetic:
        print("\n⚠️  Simulated results (page could not be retrieved):")
        for metrics in synthetic:
            print(f"  {metrics.url}: {metrics.error} [{metrics.error_code}]")
    print()
    return 0
