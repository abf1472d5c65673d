# src/complexity_analyzer/services/complexity_scorer_service.py
import logging
import math
from typing import Dict, Union

from complexity_analyzer.model import RawMetrics

logger = logging.getLogger(__name__)

# Sums to 1.0
WEIGHTS: Dict[str, float] = {
    "dom_depth": 0.15,
    "total_elements": 0.12,
    "element_types": 0.10,
    "image_count": 0.08,
    "layout_elements": 0.12,
    "clickable_elements": 0.08,
    "font_sizes": 0.10,
    "color_count": 0.10,
    "css_rules": 0.15,
}

SCALES: Dict[str, float] = {
    "dom_depth": 20,
    "total_elements": 1000,
    "element_types": 50,
    "layout_elements": 100,
    "clickable_elements": 50,
    "font_sizes": 20,
    "color_count": 30,
    "css_rules": 500,
}

# imageCount scale differs between historical versions of the scoring model
PROFILES: Dict[str, float] = {
    "classic": 100,
    "standard": 250,
    "dense": 300,
}
DEFAULT_PROFILE = "standard"


class ComplexityScorer:
    """Weighted composite of nine normalised metrics, as an integer 0..100."""

    def __init__(self, profile: str = DEFAULT_PROFILE):
        if profile not in PROFILES:
            raise ValueError(f"Unknown scoring profile '{profile}'. Choose from: {', '.join(PROFILES)}")
        self.profile = profile
        self.scales = dict(SCALES, image_count=PROFILES[profile])

    def normalized(self, raw: Union[RawMetrics, Dict[str, float]]) -> Dict[str, float]:
        values = raw.raw_fields() if isinstance(raw, RawMetrics) else raw
        return {
            name: min(max(float(values[name]), 0.0) / scale, 1.0)
            for name, scale in self.scales.items()
        }

    def score(self, raw: Union[RawMetrics, Dict[str, float]]) -> int:
        normalized = self.normalized(raw)
        weighted = sum(WEIGHTS[name] * value for name, value in normalized.items())
        # Half-up rounding; Python's round() would bank 0.5 to even
        result = int(math.floor(weighted * 100 + 0.5))
        return max(0, min(100, result))
