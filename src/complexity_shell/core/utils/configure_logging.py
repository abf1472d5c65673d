# src/complexity_shell/core/utils/configure_logging.py
import logging
import sys
from typing import Any, Dict, Optional, Union

from tqdm import tqdm

Level = Union[str, int]
LOG_FORMAT = "%(asctime)s - %(levelname)s - [%(name)s:%(lineno)d] - %(message)s"


class LogWithTqdm(logging.Handler):
    """
    Routes log records through `tqdm.write()` so they print above the
    progress bar of the 'compare' command instead of breaking it.
    """
    def emit(self, record):
        try:
            tqdm.write(self.format(record), file=sys.stderr)
            self.flush()
        except Exception:
            self.handleError(record)


def _to_level(level: Level, fallback: int) -> int:
    if isinstance(level, int):
        return level
    return getattr(logging, str(level).upper(), fallback)


def configure_logger(general_level: Level = 'INFO',
                     module_specific_levels: Optional[Dict[str, Level]] = None,
                     silenced_loggers: Optional[Dict[str, Level]] = None) -> None:
    """
    Installs a single tqdm-aware handler on the root logger and applies
    per-logger levels. Safe to call repeatedly (e.g. after 'config set debug.level').
    """
    handler = LogWithTqdm()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(_to_level(general_level, logging.INFO))

    for name, level in (module_specific_levels or {}).items():
        logging.getLogger(name).setLevel(_to_level(level, logging.INFO))

    # Third-party chatter (werkzeug request lines, urllib3 retries)
    for name, level in (silenced_loggers or {}).items():
        logging.getLogger(name).setLevel(_to_level(level, logging.CRITICAL))


def configure_from_settings(config: Dict[str, Any]) -> None:
    """Applies the 'debug' section of settings.json."""
    debug = config.get("debug") or {}
    configure_logger(
        debug.get("level", "INFO"),
        module_specific_levels=debug.get("module_levels"),
        silenced_loggers=debug.get("silenced_loggers"),
    )
