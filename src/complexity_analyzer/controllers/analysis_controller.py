# src/complexity_analyzer/controllers/analysis_controller.py
import asyncio
import logging
from typing import Any, Dict, Optional

from complexity_analyzer.managers.result_cache_manager import ResultCache
from complexity_analyzer.model import ComplexityMetrics, RawMetrics
from complexity_analyzer.services.complexity_scorer_service import ComplexityScorer
from complexity_analyzer.services.metrics_extractor_service import DocumentMetricsExtractor
from complexity_analyzer.services.synthetic_metrics_service import SyntheticMetricsGenerator
from complexity_analyzer.styles.style_resolver import create_style_resolver
from page_fetcher.services.retrieval_service import ProxyHttpTransport, RetrievalService
from page_fetcher.services.retry_policy import RetryPolicy
from page_fetcher.utils.url_utils import UrlUtils

logger = logging.getLogger(__name__)

ANALYSIS_ERROR = "ANALYSIS_ERROR"


class AnalysisController:
    """
    Orchestrates an analysis: cache lookup, retrieval through the proxying
    service, extraction and scoring. Retrieval failures degrade to
    synthetic metrics that carry the failure; only malformed input raises.
    """

    def __init__(
            self,
            retrieval: RetrievalService,
            extractor: Optional[DocumentMetricsExtractor] = None,
            scorer: Optional[ComplexityScorer] = None,
            synthetic: Optional[SyntheticMetricsGenerator] = None,
            cache: Optional[ResultCache] = None,
    ):
        self.retrieval = retrieval
        self.extractor = extractor or DocumentMetricsExtractor()
        self.scorer = scorer or ComplexityScorer()
        self.synthetic = synthetic or SyntheticMetricsGenerator()
        self.cache = cache if cache is not None else ResultCache()

    @classmethod
    def from_config(cls, config: Dict[str, Any], cache: Optional[ResultCache] = None) -> "AnalysisController":
        """Builds the full pipeline from the settings.json sections."""
        proxy = config.get("proxy", {})
        retrieval_cfg = config.get("retrieval", {})

        transport = ProxyHttpTransport(
            proxy.get("base_url", "http://localhost:3001"),
            timeout=float(retrieval_cfg.get("client_timeout", 20)),
        )
        policy = RetryPolicy(
            max_attempts=int(retrieval_cfg.get("max_attempts", 3)),
            backoff_ms=int(retrieval_cfg.get("backoff_ms", 1000)),
        )
        extractor = DocumentMetricsExtractor(
            style_resolver=create_style_resolver(config.get("styles", {}).get("resolver", "heuristic")),
            stylesheet_weight=int(config.get("css", {}).get("stylesheet_weight", 10)),
        )
        return cls(
            retrieval=RetrievalService(transport, policy),
            extractor=extractor,
            scorer=ComplexityScorer(config.get("scoring", {}).get("profile", "standard")),
            cache=cache if cache is not None else ResultCache(float(config.get("cache", {}).get("ttl_seconds", 10))),
        )

    async def close(self) -> None:
        """Releases the retrieval transport (its aiohttp session) if it holds one."""
        closer = getattr(self.retrieval.transport, "close", None)
        if closer is not None:
            await closer()

    def analyze_from_content(self, html: str, url: Optional[str] = None) -> ComplexityMetrics:
        """Synchronous and side-effect free: parse, measure, score."""
        raw = self.extractor.extract(html)
        return self._finish(raw, url)

    async def analyze_from_url(self, url: str) -> ComplexityMetrics:
        url = UrlUtils.require_http_url(url)

        cached = self.cache.get(url)
        if cached is not None:
            logger.info("Using cached analysis for %s", url)
            return cached

        outcome = await self.retrieval.fetch(url)
        if not outcome.success:
            logger.warning(
                "Retrieval of %s ended %s after %d attempt(s) [%s]",
                url, outcome.state.value, outcome.attempts, outcome.code
            )
            return self.synthetic.generate(url, error=outcome.error, error_code=outcome.code)

        try:
            if self.extractor.style_resolver.blocking:
                metrics = await asyncio.to_thread(self.analyze_from_content, outcome.html, url)
            else:
                metrics = self.analyze_from_content(outcome.html, url)
        except Exception as e:
            logger.error("Analysis of %s failed: %s", url, e, exc_info=True)
            return self.synthetic.generate(url, error=f"Analysis failed: {e}", error_code=ANALYSIS_ERROR)

        self.cache.put(url, metrics)
        logger.info("Analysis complete for %s: score %s", url, metrics.complexity_score)
        return metrics

    def _finish(self, raw: RawMetrics, url: Optional[str]) -> ComplexityMetrics:
        return ComplexityMetrics(
            **raw.raw_fields(),
            complexity_score=self.scorer.score(raw),
            url=url,
        )
