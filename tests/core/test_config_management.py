# tests/core/test_config_management.py
import json
import logging

import pytest

from complexity_shell.core.context.shell_context import ShellContext
from complexity_shell.core.handlers.config_handler import handle_config
from complexity_shell.core.managers.config_manager import ConfigManager
from complexity_shell.core.utils.path_utils import PathUtils

# A small, predictable configuration for these tests
MOCK_SETTINGS_CONTENT = {
    "debug": {
        "level": "WARNING"
    },
    "retrieval": {
        "max_attempts": 3,
        "backoff_ms": 1000
    },
    "styles": {
        "resolver": "heuristic"
    },
    "cache": {
        "ttl_seconds": 10
    }
}


@pytest.fixture
def config_env(tmp_path, monkeypatch):
    """
    Sets up an isolated environment for the ConfigManager:
    - writes a fake settings.json into a temporary package root,
    - points PathUtils at it,
    - reloads the singleton from that file (and from the real one afterwards).
    """
    settings_file = tmp_path / "settings.json"
    settings_file.write_text(json.dumps(MOCK_SETTINGS_CONTENT))
    monkeypatch.setattr(PathUtils, "get_settings_file", lambda: settings_file)

    manager = ConfigManager()
    manager.reset()

    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level

    yield manager, ShellContext(config=manager.get_all())

    root.handlers[:] = handlers
    root.setLevel(level)
    monkeypatch.undo()
    manager.reset()


# --- ConfigManager ---

def test_config_manager_load(config_env):
    manager, _ = config_env
    config = manager.get_all()
    assert config["debug"]["level"] == "WARNING"
    assert config["retrieval"]["max_attempts"] == 3


def test_config_manager_is_a_singleton(config_env):
    manager, _ = config_env
    assert ConfigManager() is manager


def test_config_manager_get_nested(config_env):
    manager, _ = config_env
    assert manager.get_nested("retrieval.backoff_ms") == 1000
    assert manager.get_nested("non.existent.key", "default") == "default"


def test_config_manager_set_nested(config_env):
    manager, _ = config_env

    manager.set_nested("debug.level", "INFO")
    assert manager.get_nested("debug.level") == "INFO"

    manager.set_nested("new_feature.enabled", "True")
    assert manager.get_nested("new_feature.enabled") == "True"

    # The original value is an int, so the string '5' is cast to int
    manager.set_nested("retrieval.max_attempts", "5")
    assert manager.get_nested("retrieval.max_attempts") == 5
    assert isinstance(manager.get_nested("retrieval.max_attempts"), int)


def test_config_manager_bool_cast(config_env):
    manager, _ = config_env
    manager.set_nested("flags.verbose", False)
    manager.set_nested("flags.verbose", "yes")
    assert manager.get_nested("flags.verbose") is True
    manager.set_nested("flags.verbose", "off")
    assert manager.get_nested("flags.verbose") is False


def test_config_manager_validates_known_keys(config_env):
    manager, _ = config_env
    assert manager.set_nested("css.stylesheet_weight", 12)
    assert not manager.set_nested("css.stylesheet_weight", 40)
    assert manager.get_nested("css.stylesheet_weight") == 12

    assert not manager.set_nested("styles.resolver", "telepathy")
    assert manager.get_nested("styles.resolver") == "heuristic"

    assert not manager.set_nested("retrieval.max_attempts", "0")
    assert not manager.set_nested("retrieval.max_attempts", "many")
    assert manager.get_nested("retrieval.max_attempts") == 3


def test_config_manager_section(config_env):
    manager, _ = config_env
    assert manager.get_section("cache") == {"ttl_seconds": 10}
    assert manager.get_section("nope") == {}


def test_config_manager_reset(config_env):
    manager, _ = config_env
    manager.set_nested("debug.level", "DEBUG")
    manager.reset()
    assert manager.get_nested("debug.level") == "WARNING"


def test_missing_settings_file_gives_empty_config(tmp_path, monkeypatch):
    monkeypatch.setattr(PathUtils, "get_settings_file", lambda: tmp_path / "missing.json")
    manager = ConfigManager()
    try:
        manager.reset()
        assert manager.get_all() == {}
    finally:
        monkeypatch.undo()
        manager.reset()


def test_shipped_settings_file_exists():
    settings = json.loads(PathUtils.get_settings_file().read_text(encoding="utf-8"))
    assert settings["retrieval"]["max_attempts"] == 3
    assert settings["cache"]["ttl_seconds"] == 10
    assert settings["scoring"]["profile"] == "standard"


# --- 'config' command handler ---

def test_handle_config_list(config_env, capsys):
    _, ctx = config_env
    assert handle_config(["list"], ctx) == 0
    output_json = json.loads(capsys.readouterr().out)
    assert output_json["retrieval"]["max_attempts"] == 3


def test_handle_config_set(config_env, capsys):
    manager, ctx = config_env
    assert handle_config(["set", "cache.ttl_seconds", "30"], ctx) == 0
    assert "Config updated: cache.ttl_seconds = 30" in capsys.readouterr().out
    assert manager.get_nested("cache.ttl_seconds") == 30
    assert ctx.config["cache"]["ttl_seconds"] == 30


def test_handle_config_set_drops_built_pipeline(config_env):
    _, ctx = config_env
    first = ctx.controller
    handle_config(["set", "retrieval.max_attempts", "4"], ctx)
    second = ctx.controller
    assert first is not second
    assert second.retrieval.policy.max_attempts == 4


def test_handle_config_reset(config_env, capsys):
    manager, ctx = config_env
    handle_config(["set", "debug.level", "CRITICAL"], ctx)
    assert manager.get_nested("debug.level") == "CRITICAL"

    assert handle_config(["reset"], ctx) == 0
    assert "Configuration has been reset" in capsys.readouterr().out
    assert manager.get_nested("debug.level") == "WARNING"


def test_handle_config_usage(config_env, capsys):
    _, ctx = config_env
    assert handle_config([], ctx) == 1
    assert handle_config(["set", "only.key"], ctx) == 1
    assert handle_config(["explode"], ctx) == 1


def test_handle_config_get(config_env, capsys):
    _, ctx = config_env
    assert handle_config(["get", "retrieval.max_attempts"], ctx) == 0
    assert capsys.readouterr().out.strip() == "3"
    assert handle_config(["get", "no.such.key"], ctx) == 1


def test_handle_config_set_rejected(config_env, capsys):
    manager, ctx = config_env
    assert handle_config(["set", "styles.resolver", "telepathy"], ctx) == 1
    assert "Rejected value" in capsys.readouterr().out
    assert manager.get_nested("styles.resolver") == "heuristic"
