# src/complexity_shell/core/utils/metrics_printer.py
from typing import List, Tuple

from complexity_analyzer.model import ComplexityMetrics

SECTIONS: List[Tuple[str, List[Tuple[str, str]]]] = [
    ("Structure", [
        ("DOM depth", "dom_depth"),
        ("Total elements", "total_elements"),
        ("Element types", "element_types"),
        ("Nesting ratio", "nesting_ratio"),
    ]),
    ("Visual content", [
        ("Images", "image_count"),
        ("Text length", "text_length"),
        ("Images per 1000 chars", "image_to_text_ratio"),
    ]),
    ("Layout", [
        ("CSS rules (est.)", "css_rules"),
        ("Layout elements", "layout_elements"),
        ("Positioned elements", "positioned_elements"),
    ]),
    ("Interaction", [
        ("Clickable elements", "clickable_elements"),
        ("Forms", "form_elements"),
        ("Inputs", "input_elements"),
    ]),
    ("Typography & colour", [
        ("Font families", "font_families"),
        ("Font sizes", "font_sizes"),
        ("Colours", "color_count"),
        ("Contrast issues", "contrast_issues"),
    ]),
]


def _format_value(value) -> str:
    if isinstance(value, float):
        return f"{value:.3f}".rstrip("0").rstrip(".")
    return str(value)


def print_metrics(metrics: ComplexityMetrics) -> None:
    """Pretty prints a single analysis result."""
    title = metrics.url or "local document"
    print(f"\n--- Visual Complexity: {title} ---")
    print(f"Score: {metrics.complexity_score}/100 ({metrics.complexity_level})")

    if metrics.is_synthetic:
        print("⚠️  Simulated results: the page could not be retrieved.")
        print(f"   Reason: {metrics.error or 'unknown'} [{metrics.error_code or 'UNKNOWN_ERROR'}]")

    for section, fields in SECTIONS:
        print(f"\n[{section}]")
        for label, name in fields:
            print(f"  {label:<24} {_format_value(getattr(metrics, name))}")
    print()
