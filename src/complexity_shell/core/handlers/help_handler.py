# src/complexity_shell/core/handlers/help_handler.py
from typing import List, Optional

from complexity_shell.core.command_registry import COMMAND_HELP_TEXTS
from complexity_shell.core.context.shell_context import ShellContext

HEADER_HELP_TEXT = """
🚀 Complexity Analyzer - Help

Scores the visual complexity (0-100) of web pages.

Usage: complexity <command> [arguments]
""".strip()

help_help_text = """
GENERAL:
  help                           Show this help text.
""".strip()

# Sections are printed in this order; anything else follows alphabetically
ORDER = ["analyze", "compare", "validate", "serve", "health", "config", "help"]


def build_help_text() -> str:
    names = [n for n in ORDER if n in COMMAND_HELP_TEXTS]
    names += sorted(n for n in COMMAND_HELP_TEXTS if n not in ORDER)
    return "\n\n".join([HEADER_HELP_TEXT] + [COMMAND_HELP_TEXTS[n] for n in names])


def handle_help(args: List[str], ctx: ShellContext, _stdin: Optional[str] = None) -> int:
    print(build_help_text())
    return 0
