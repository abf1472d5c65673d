# src/complexity_shell/core/command_registry.py
import logging
from typing import Callable, Dict

from complexity_shell.core.discovery import discover_handlers

logger = logging.getLogger(__name__)

# Populated from the *_handler.py modules on first dispatch.
CommandRegistry: Dict[str, Callable[..., int]] = {}
COMMAND_HELP_TEXTS: Dict[str, str] = {}


def register_command(name: str, handler: Callable[..., int], help_text: str = "") -> None:
    CommandRegistry[name] = handler
    if help_text:
        COMMAND_HELP_TEXTS[name] = help_text
    logger.debug("Registered command '%s'", name)


def register_all_commands() -> int:
    """Registers every discovered command that is not registered yet; returns the total."""
    handlers, help_texts = discover_handlers()

    for name, handler in handlers.items():
        if name in CommandRegistry:
            continue
        if name not in help_texts:
            logger.warning("Command '%s' has no help text; it will not be listed by 'help'.", name)
        register_command(name, handler, help_texts.get(name, ""))

    logger.debug("%d commands available.", len(CommandRegistry))
    return len(CommandRegistry)
