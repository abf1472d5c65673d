# src/complexity_analyzer/managers/result_cache_manager.py
import logging
import time
from typing import Callable, Dict, Optional, Tuple

from complexity_analyzer.model import ComplexityMetrics

logger = logging.getLogger(__name__)


class ResultCache:
    """
    In-memory analysis results keyed by the exact URL string.
    An entry is served while `now - stored_at < ttl_seconds`; an expired
    entry is evicted by the lookup that finds it.
    """

    def __init__(self, ttl_seconds: float = 10.0, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, Tuple[float, ComplexityMetrics]] = {}

    def get(self, url: str) -> Optional[ComplexityMetrics]:
        entry = self._entries.get(url)
        if entry is None:
            return None

        stored_at, metrics = entry
        if self._clock() - stored_at < self.ttl_seconds:
            logger.debug("Cache hit for %s", url)
            return metrics

        del self._entries[url]
        logger.debug("Cache entry expired for %s", url)
        return None

    def put(self, url: str, metrics: ComplexityMetrics) -> None:
        self._entries[url] = (self._clock(), metrics)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, url: str) -> bool:
        return url in self._entries
