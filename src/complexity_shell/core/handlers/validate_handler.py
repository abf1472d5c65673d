# src/complexity_shell/core/handlers/validate_handler.py
import json
import logging
from typing import List, Optional

from complexity_shell.core.context.shell_context import ShellContext
from complexity_shell.core.loop_runner import run_on_main_loop
from page_fetcher.exceptions import InputError
from page_fetcher.model import ValidationResult

logger = logging.getLogger(__name__)

validate_help_text = """
VALIDATION:
  validate <url> [--json]        Check whether a URL exists and serves content.
""".strip()


async def _validate(ctx: ShellContext, url: str) -> ValidationResult:
    service = ctx.build_validation_service()
    async with service.transport:
        return await service.validate(url)


def _print_result(result: ValidationResult) -> None:
    icon = "✅" if result.reachable else ("⚠️ " if result.valid else "❌")
    print(f"\n{icon} {result.url}")
    print(f"  Valid:      {result.valid}")
    print(f"  Reachable:  {result.reachable}")
    print(f"  Status:     {result.status if result.status is not None else '-'} {result.status_text or ''}".rstrip())
    print(f"  Summary:    {result.status_hint}")
    print(f"  Method:     {result.method}")
    if result.note:
        print(f"  Note:       {result.note}")
    if result.error:
        print(f"  Error:      {result.error} [{result.code}]")
    for hop in result.redirect_chain:
        print(f"  Redirect:   {hop.status} {hop.source} -> {hop.target}")
    print()


def handle_validate(args: List[str], ctx: ShellContext, _stdin: Optional[str] = None) -> int:
    """Handles the 'validate' command. Exit code 0 means the URL is valid."""
    as_json = "--json" in args
    targets = [a for a in args if a != "--json"]
    if len(targets) != 1:
        print("Usage: validate <url> [--json]")
        return 1

    try:
        result = run_on_main_loop(_validate(ctx, targets[0]))
    except InputError as e:
        print(f"❌ {e.message}")
        return 1

    if as_json:
        print(json.dumps(result.to_wire(), indent=2))
    else:
        _print_result(result)
    return 0 if result.valid else 1
