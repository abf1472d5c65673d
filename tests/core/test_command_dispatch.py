# tests/core/test_command_dispatch.py
import logging

import pytest

from complexity_shell.app import dispatch
from complexity_shell.core.command_registry import COMMAND_HELP_TEXTS, CommandRegistry, register_all_commands
from complexity_shell.core.context.shell_context import ShellContext
from complexity_shell.core.discovery import discover_handlers
from complexity_shell.core.utils.configure_logging import LogWithTqdm, configure_logger


def test_discovery_finds_every_command():
    handlers, help_texts = discover_handlers()
    assert {"analyze", "compare", "validate", "serve", "health", "config", "help"} <= set(handlers)
    assert "analyze" in help_texts


def test_help_lists_commands(capsys):
    register_all_commands()
    assert dispatch(["help"], ShellContext(config={})) == 0
    out = capsys.readouterr().out
    assert "analyze <url>" in out
    assert "compare <url> <url>" in out
    assert out.index("ANALYSIS") < out.index("CONFIGURATION")


def test_no_arguments_shows_help(capsys):
    assert dispatch([], ShellContext(config={})) == 0
    assert "Usage: complexity <command>" in capsys.readouterr().out


def test_unknown_command(capsys):
    assert dispatch(["frobnicate"], ShellContext(config={})) == 1
    assert "Unknown command: 'frobnicate'" in capsys.readouterr().out


def test_registry_is_populated():
    register_all_commands()
    assert callable(CommandRegistry["analyze"])
    assert "config" in COMMAND_HELP_TEXTS


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    named = {name: logging.getLogger(name).level for name in ("page_fetcher", "urllib3")}
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    for name, lvl in named.items():
        logging.getLogger(name).setLevel(lvl)


def test_configure_logger(restore_logging):
    configure_logger("DEBUG", {"page_fetcher": "WARNING"}, {"urllib3": "ERROR"})
    root = logging.getLogger()
    assert root.level == logging.DEBUG
    assert len(root.handlers) == 1
    assert isinstance(root.handlers[0], LogWithTqdm)
    assert logging.getLogger("page_fetcher").level == logging.WARNING
    assert logging.getLogger("urllib3").level == logging.ERROR

    # Calling again does not stack handlers
    configure_logger("INFO")
    assert len(root.handlers) == 1
    assert root.level == logging.INFO
