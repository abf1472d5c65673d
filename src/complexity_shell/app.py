from __future__ import annotations

import asyncio
import logging
import sys

from complexity_shell.core.command_registry import CommandRegistry, register_all_commands
from complexity_shell.core.context.shell_context import ShellContext
from complexity_shell.core.managers.config_manager import config_manager
from complexity_shell.core.utils.configure_logging import configure_from_settings

logger = logging.getLogger(__name__)


def _setup_windows_event_loop_if_needed() -> None:
    """Installs Windows compatible asyncio policy if possible."""
    if not sys.platform.startswith("win"):
        return
    try:
        asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())
        logger.info("Using WindowsSelectorEventLoopPolicy for asyncio on Windows.")
    except AttributeError as exc:  # pragma: no cover
        logger.warning("Could not set WindowsSelectorEventLoopPolicy: %s", exc)


def dispatch(argv: list[str], ctx: ShellContext | None = None) -> int:
    """Runs one command line (`<command> [args...]`) and returns its exit code."""
    if not CommandRegistry:
        register_all_commands()

    if not argv:
        argv = ["help"]

    name, args = argv[0], argv[1:]
    handler = CommandRegistry.get(name)
    if handler is None:
        print(f"Unknown command: '{name}'. Run 'complexity help' for a list of commands.")
        return 1

    ctx = ctx or ShellContext()
    try:
        return handler(args, ctx)
    except KeyboardInterrupt:
        print("\nInterrupted.")
        return 130


def main(argv: list[str] | None = None) -> int:
    """Entrypoint for the `complexity` command."""
    configure_from_settings(config_manager.get_all())
    _setup_windows_event_loop_if_needed()
    return dispatch(sys.argv[1:] if argv is None else argv)


if __name__ == "__main__":
    sys.exit(main())
