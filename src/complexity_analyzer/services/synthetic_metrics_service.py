# src/complexity_analyzer/services/synthetic_metrics_service.py
import logging
import math
from typing import Callable, Optional, Sequence, Tuple

from complexity_analyzer.model import SOURCE_SYNTHETIC, ComplexityMetrics

logger = logging.getLogger(__name__)

# (substrings, offset): an entry applies once when any of its substrings occurs
DEFAULT_KEYWORD_OFFSETS: Sequence[Tuple[Tuple[str, ...], float]] = (
    ((".edu",), 0.10),
    (("landing",), -0.20),
    (("shop", "store"), 0.25),
    (("github",), 0.10),
    (("google",), -0.10),
    (("facebook",), 0.20),
)

FACTOR_BAND = (0.1, 0.9)

# field -> (scale, offset)
INTEGER_FIELDS = {
    "dom_depth": (25, 5),
    "total_elements": (800, 100),
    "element_types": (40, 10),
    "image_count": (200, 20),
    "text_length": (10000, 1000),
    "css_rules": (400, 50),
    "layout_elements": (80, 10),
    "positioned_elements": (20, 2),
    "clickable_elements": (40, 5),
    "form_elements": (5, 1),
    "input_elements": (15, 2),
    "font_families": (8, 2),
    "font_sizes": (15, 5),
    "color_count": (25, 8),
    "contrast_issues": (10, 0),
    "complexity_score": (100, 0),
}

# field -> (scale, offset, decimals)
RATIO_FIELDS = {
    "nesting_ratio": (0.05, 0.01, 3),
    "image_to_text_ratio": (5, 1, 2),
}


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def string_hash(text: str) -> int:
    """
    Rolling `hash * 31 + unit` over UTF-16 code units, wrapped to a signed
    32-bit integer, returned as its absolute value.
    """
    value = 0
    encoded = text.encode("utf-16-le", "surrogatepass")
    for i in range(0, len(encoded), 2):
        unit = encoded[i] | (encoded[i + 1] << 8)
        value = _to_int32((value << 5) - value + unit)
    return abs(value)


def seeded_random(seed: float) -> float:
    """Fractional part of sin(seed) * 10000; in [0, 1)."""
    x = math.sin(seed) * 10000
    return x - math.floor(x)


class SyntheticMetricsGenerator:
    """
    Deterministic stand-in metrics for a URL that could not be retrieved.
    The same URL always produces the same numbers; nothing touches the network.
    """

    def __init__(
            self,
            keyword_offsets: Sequence[Tuple[Tuple[str, ...], float]] = DEFAULT_KEYWORD_OFFSETS,
            random_fn: Callable[[float], float] = seeded_random,
    ):
        self.keyword_offsets = keyword_offsets
        self.random_fn = random_fn

    def base_factor(self, url: str) -> float:
        return self.random_fn(string_hash(url)) * 0.6 + 0.2

    def complexity_factor(self, url: str) -> float:
        factor = self.base_factor(url)
        url_lower = url.lower()
        for keywords, offset in self.keyword_offsets:
            if any(keyword in url_lower for keyword in keywords):
                factor += offset
        low, high = FACTOR_BAND
        return max(low, min(high, factor))

    def generate(self, url: str, error: Optional[str] = None, error_code: Optional[str] = None) -> ComplexityMetrics:
        factor = self.complexity_factor(url)
        values = {
            name: int(math.floor(factor * scale + offset))
            for name, (scale, offset) in INTEGER_FIELDS.items()
        }
        for name, (scale, offset, decimals) in RATIO_FIELDS.items():
            values[name] = round(factor * scale + offset, decimals)

        logger.warning("Using synthetic metrics for %s (factor %.3f): %s", url, factor, error or "no reason given")
        return ComplexityMetrics(
            **values,
            source=SOURCE_SYNTHETIC,
            url=url,
            error=error,
            error_code=error_code,
        )
