# src/complexity_shell/core/context/shell_context.py
import logging
from typing import Any, Dict, Optional

from complexity_analyzer.controllers.analysis_controller import AnalysisController
from complexity_analyzer.managers.result_cache_manager import ResultCache
from complexity_shell.core.managers.config_manager import config_manager
from page_fetcher.services.validation_service import AiohttpValidationTransport, ValidationService

logger = logging.getLogger(__name__)


class ShellContext:
    """
    Session state shared by the command handlers: the active configuration,
    the result cache and the lazily built analysis pipeline.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = config if config is not None else config_manager.get_all()
        self.cache = ResultCache(float(self._section("cache").get("ttl_seconds", 10)))
        self._controller: Optional[AnalysisController] = None

    def _section(self, name: str) -> Dict[str, Any]:
        return self.config.get(name) or {}

    @property
    def controller(self) -> AnalysisController:
        if self._controller is None:
            logger.debug("Building analysis pipeline from configuration.")
            self._controller = AnalysisController.from_config(self.config, cache=self.cache)
        return self._controller

    def build_validation_service(self) -> ValidationService:
        chrome_version = self._section("user_agent").get("chrome_version", "120.0.0.0")
        return ValidationService.from_config(
            AiohttpValidationTransport(),
            self._section("validation"),
            chrome_version=chrome_version,
        )

    @property
    def proxy_base_url(self) -> str:
        return str(self._section("proxy").get("base_url", "http://localhost:3001")).rstrip("/")

    def reset_services(self) -> None:
        """Drops the built pipeline so the next command picks up changed settings."""
        self._controller = None
        self.cache.clear()
