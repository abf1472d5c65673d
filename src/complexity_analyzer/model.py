# src/complexity_analyzer/model.py (Analysis Layer)
import logging
from typing import Any, Dict, FrozenSet, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)

SOURCE_EXTRACTED = "extracted"
SOURCE_SYNTHETIC = "synthetic"


class RawMetrics(BaseModel):
    """
    The sixteen measured inputs of a visual complexity analysis.
    Serialised with camelCase aliases (domDepth, totalElements, ...).
    """
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    # Structure
    dom_depth: int = Field(ge=0)
    total_elements: int = Field(ge=0)
    element_types: int = Field(ge=0)
    nesting_ratio: float = Field(ge=0)

    # Visual content
    image_count: int = Field(ge=0)
    text_length: int = Field(ge=0)
    image_to_text_ratio: float = Field(ge=0)

    # Layout
    css_rules: int = Field(ge=0)
    layout_elements: int = Field(ge=0)
    positioned_elements: int = Field(ge=0)

    # Interaction
    clickable_elements: int = Field(ge=0)
    form_elements: int = Field(ge=0)
    input_elements: int = Field(ge=0)

    # Typography
    font_families: int = Field(ge=0)
    font_sizes: int = Field(ge=0)

    # Colour
    color_count: int = Field(ge=0)
    contrast_issues: int = Field(ge=0)

    def raw_fields(self) -> Dict[str, Any]:
        """Only the measured inputs, whatever subclass this is."""
        return self.model_dump(include=set(RawMetrics.model_fields))


class ComplexityMetrics(RawMetrics):
    """
    A finished analysis: the raw metrics plus the composite score and the
    provenance of the numbers. Synthetic results always carry the failure
    that triggered them.
    """
    complexity_score: int = Field(ge=0, le=100)
    source: Literal["extracted", "synthetic"] = SOURCE_EXTRACTED
    url: Optional[str] = None
    error: Optional[str] = None
    error_code: Optional[str] = None

    @property
    def is_synthetic(self) -> bool:
        return self.source == SOURCE_SYNTHETIC

    @property
    def complexity_level(self) -> str:
        if self.complexity_score < 30:
            return "low"
        if self.complexity_score < 70:
            return "medium"
        return "high"

    def to_wire(self) -> Dict[str, Any]:
        data = self.model_dump(by_alias=True, exclude_none=True)
        data["isSynthetic"] = self.is_synthetic
        data["complexityLevel"] = self.complexity_level
        return data


class StyleSummary(BaseModel):
    """What a StyleResolver could learn about typography and colour."""
    model_config = ConfigDict(frozen=True)

    font_families: FrozenSet[str] = frozenset()
    font_sizes: FrozenSet[str] = frozenset()
    colors: FrozenSet[str] = frozenset()
    contrast_issues: int = 0
    estimated: bool = True
