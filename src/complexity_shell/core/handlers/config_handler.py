# src/complexity_shell/core/handlers/config_handler.py
import json
import logging
from typing import List, Optional

from complexity_shell.core.context.shell_context import ShellContext
from complexity_shell.core.managers.config_manager import config_manager
from complexity_shell.core.utils.configure_logging import configure_from_settings

logger = logging.getLogger(__name__)

config_help_text = """
CONFIGURATION:
  config list                    Show the current configuration as JSON.
  config get <key>               Show one value (e.g., retrieval.max_attempts).
  config set <key> <value>       Change a value for this run (e.g., scoring.profile dense).
  config reset                   Reload the configuration from settings.json.
""".strip()


def _refresh(ctx: ShellContext, key_path: Optional[str] = None) -> None:
    """Points the context at the live settings and rebuilds what depends on them."""
    ctx.config = config_manager.get_all()
    ctx.reset_services()
    if key_path is None or key_path.startswith("debug."):
        configure_from_settings(ctx.config)


def handle_config(args: List[str], ctx: ShellContext, _stdin: Optional[str] = None) -> int:
    """Handles the 'config' command for viewing and modifying session configuration."""
    action = args[0] if args else None

    if action == "list":
        print(json.dumps(config_manager.get_all(), indent=2))
        return 0

    if action == "get" and len(args) == 2:
        value = config_manager.get_nested(args[1])
        if value is None:
            print(f"❌ No config value for '{args[1]}'.")
            return 1
        print(json.dumps(value, indent=2) if isinstance(value, dict) else value)
        return 0

    if action == "set" and len(args) >= 3:
        key_path = args[1]
        value = " ".join(args[2:]).strip('"')
        if not config_manager.set_nested(key_path, value):
            print(f"❌ Error: Rejected value '{value}' for '{key_path}'. See the log for details.")
            return 1
        _refresh(ctx, key_path)
        new_value = config_manager.get_nested(key_path)
        print(f"✅ Config updated: {key_path} = {new_value} (type: {type(new_value).__name__})")
        return 0

    if action == "reset":
        config_manager.reset()
        _refresh(ctx)
        print("✅ Configuration has been reset to the values from settings.json.")
        return 0

    print(config_help_text)
    return 1
