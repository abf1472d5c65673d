# src/complexity_shell/core/managers/config_manager.py
import json
import logging
from typing import Any, Callable, Dict, Optional

from complexity_analyzer.services.complexity_scorer_service import PROFILES
from complexity_analyzer.styles.style_resolver import RESOLVERS
from complexity_shell.core.utils.path_utils import PathUtils

logger = logging.getLogger(__name__)

TRUE_STRINGS = ("1", "true", "yes", "on")
LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


def _in_range(low: float, high: Optional[float] = None) -> Callable[[Any], Optional[str]]:
    def check(value: Any) -> Optional[str]:
        if not isinstance(value, (int, float)) or isinstance(value, bool):
            return "must be a number"
        if value < low or (high is not None and value > high):
            return f"must be between {low} and {high}" if high is not None else f"must be at least {low}"
        return None
    return check


def _one_of(choices) -> Callable[[Any], Optional[str]]:
    def check(value: Any) -> Optional[str]:
        if value not in choices:
            return f"must be one of: {', '.join(choices)}"
        return None
    return check


# Keys whose values the analyzer depends on; anything else is stored as given
VALIDATORS: Dict[str, Callable[[Any], Optional[str]]] = {
    "css.stylesheet_weight": _in_range(10, 15),
    "scoring.profile": _one_of(tuple(PROFILES)),
    "styles.resolver": _one_of(tuple(RESOLVERS)),
    "retrieval.max_attempts": _in_range(1),
    "retrieval.backoff_ms": _in_range(0),
    "cache.ttl_seconds": _in_range(0),
    "validation.max_redirects": _in_range(0),
    "compare.max_urls": _in_range(2),
    "debug.level": _one_of(LOG_LEVELS),
}


def _cast_like(value: Any, original: Any, key_path: str) -> Any:
    """Casts a (usually string) value to the type already stored under key_path."""
    if original is None or isinstance(value, type(original)):
        return value
    if isinstance(original, bool) and isinstance(value, str):
        return value.strip().lower() in TRUE_STRINGS
    try:
        return type(original)(value)
    except (ValueError, TypeError):
        logger.warning(
            "Could not cast new value for '%s' to type %s. Storing as given.",
            key_path, type(original).__name__
        )
        return value


class ConfigManager:
    """
    Singleton holding the analyzer settings loaded from settings.json.
    Values can be changed in memory for the current run; keys the pipeline
    depends on are validated before they are accepted.
    """
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(ConfigManager, cls).__new__(cls)
            cls._instance._config = {}
            cls._instance.reset()
        return cls._instance

    def get_all(self) -> Dict[str, Any]:
        return self._config

    def get_section(self, name: str) -> Dict[str, Any]:
        """A top-level section such as 'retrieval'; empty when missing."""
        section = self._config.get(name)
        return section if isinstance(section, dict) else {}

    def get_nested(self, key_path: str, default: Optional[Any] = None) -> Any:
        """Dotted lookup, e.g. 'retrieval.max_attempts'."""
        node: Any = self._config
        for key in key_path.split('.'):
            if not isinstance(node, dict):
                return default
            node = node.get(key)
        return default if node is None else node

    def set_nested(self, key_path: str, value: Any) -> bool:
        """
        Sets a dotted key in memory, casting to the type of the current value.
        Returns False when the path crosses a non-section or validation fails.
        """
        *parents, leaf = key_path.split('.')
        section = self._config
        for key in parents:
            section = section.setdefault(key, {})
            if not isinstance(section, dict):
                logger.error("Cannot set '%s': '%s' is not a section.", key_path, key)
                return False

        value = _cast_like(value, section.get(leaf), key_path)

        validator = VALIDATORS.get(key_path)
        problem = validator(value) if validator else None
        if problem:
            logger.error("Rejected value for '%s': %r %s.", key_path, value, problem)
            return False

        section[leaf] = value
        logger.info("Configuration updated: %s = %s", key_path, value)
        return True

    def reset(self) -> None:
        """Reloads settings.json, discarding in-memory changes."""
        settings_file = PathUtils.get_settings_file()
        if not settings_file.exists():
            logger.warning("settings.json not found at %s. Using empty config.", settings_file)
            self._config = {}
            return
        try:
            with open(settings_file, "r", encoding="utf-8") as f:
                self._config = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error("Failed to load settings.json: %s", e, exc_info=True)
            self._config = {}
            return
        logger.debug("Configuration (re)loaded from %s.", settings_file)


# The global singleton instance that the entire application will use.
config_manager = ConfigManager()
