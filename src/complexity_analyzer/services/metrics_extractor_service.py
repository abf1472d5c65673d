# src/complexity_analyzer/services/metrics_extractor_service.py
import logging
import re
from typing import Dict, List, Optional, Tuple, Union

from bs4 import BeautifulSoup, Tag

from complexity_analyzer.model import RawMetrics, StyleSummary
from complexity_analyzer.styles.style_resolver import (
    HeuristicStyleResolver,
    StyleResolutionError,
    StyleResolver,
)

logger = logging.getLogger(__name__)

CSS_URL_RE = re.compile(r'url\s*\([^)]+\)', re.IGNORECASE)
POSITIONED_RE = re.compile(r'position\s*:\s*(absolute|fixed|relative|sticky)', re.IGNORECASE)

CLICKABLE_TAGS = ("button", "a")
INPUT_TAGS = ("input", "textarea", "select")

# Plausibility bands applied only to markup-based (estimated) typography counts
ESTIMATE_BANDS: Dict[str, Tuple[int, int]] = {
    "font_families": (5, 20),
    "font_sizes": (6, 40),
    "color_count": (10, 60),
}


def _clamp(value: int, band: Tuple[int, int]) -> int:
    low, high = band
    return max(low, min(high, value))


class DocumentMetricsExtractor:
    """
    Turns an HTML document into the sixteen RawMetrics.

    Structural counts (depth, elements, layout, interaction) are taken over
    the descendants of <body>; when a document has no body the whole parsed
    tree is used. The CSS surface (stylesheets, inline styles, class tokens)
    and url() references are counted document wide.
    """

    def __init__(self, style_resolver: Optional[StyleResolver] = None, stylesheet_weight: int = 10):
        self.style_resolver = style_resolver or HeuristicStyleResolver()
        self.stylesheet_weight = stylesheet_weight
        self._fallback_resolver = HeuristicStyleResolver()

    @staticmethod
    def parse(html: str) -> BeautifulSoup:
        """Lenient parse; malformed markup never raises."""
        return BeautifulSoup((html or "").replace('\ufeff', ''), "html.parser")

    def extract(self, document: Union[str, BeautifulSoup]) -> RawMetrics:
        soup = document if isinstance(document, BeautifulSoup) else self.parse(document)
        root = soup.body or soup
        elements: List[Tag] = root.find_all(True)

        total_elements = len(elements)
        dom_depth = self._max_depth(root)
        element_types = len({el.name for el in elements})

        image_count = self._count_images(soup, elements)
        text_length = len(root.get_text())
        image_to_text_ratio = (image_count / text_length) * 1000 if text_length > 0 else 0.0

        styles = self._resolve_styles(soup, elements)
        font_families = len(styles.font_families)
        font_sizes = len(styles.font_sizes)
        color_count = len(styles.colors)
        if styles.estimated:
            font_families = _clamp(font_families, ESTIMATE_BANDS["font_families"])
            font_sizes = _clamp(font_sizes, ESTIMATE_BANDS["font_sizes"])
            color_count = _clamp(color_count, ESTIMATE_BANDS["color_count"])

        return RawMetrics(
            dom_depth=dom_depth,
            total_elements=total_elements,
            element_types=element_types,
            nesting_ratio=dom_depth / total_elements if total_elements else 0.0,
            image_count=image_count,
            text_length=text_length,
            image_to_text_ratio=image_to_text_ratio,
            css_rules=self._count_css_rules(soup),
            layout_elements=sum(1 for el in elements if self._is_layout(el)),
            positioned_elements=sum(1 for el in elements if POSITIONED_RE.search(el.get("style") or "")),
            clickable_elements=sum(1 for el in elements if self._is_clickable(el)),
            form_elements=sum(1 for el in elements if el.name == "form"),
            input_elements=sum(1 for el in elements if el.name in INPUT_TAGS),
            font_families=font_families,
            font_sizes=font_sizes,
            color_count=color_count,
            contrast_issues=styles.contrast_issues,
        )

    @staticmethod
    def _max_depth(root: Tag) -> int:
        """Longest chain of element descendants below root (root itself is depth 0)."""
        deepest = 0
        stack = [(child, 1) for child in root.find_all(True, recursive=False)]
        while stack:
            node, depth = stack.pop()
            if depth > deepest:
                deepest = depth
            stack.extend((child, depth + 1) for child in node.find_all(True, recursive=False))
        return deepest

    def _count_images(self, soup: BeautifulSoup, elements: List[Tag]) -> int:
        """
        Sum of several overlapping signals. An <img> inside a <picture> counts
        twice; this is intentional for comparability between runs.
        """
        img_tags = sum(1 for el in elements if el.name == "img")
        svg_tags = sum(1 for el in elements if el.name == "svg")
        backgrounds = sum(1 for el in elements if "background" in (el.get("style") or "").lower())
        media = sum(1 for el in elements if self._is_media(el))
        css_urls = sum(len(CSS_URL_RE.findall(style.get_text())) for style in soup.find_all("style"))

        logger.debug(
            "Image breakdown: img=%s svg=%s background=%s media=%s css_url=%s",
            img_tags, svg_tags, backgrounds, media, css_urls
        )
        return img_tags + svg_tags + backgrounds + media + css_urls

    @staticmethod
    def _is_media(el: Tag) -> bool:
        if el.name in ("picture", "video"):
            return True
        return el.name == "source" and el.has_attr("srcset")

    def _count_css_rules(self, soup: BeautifulSoup) -> int:
        everything = soup.find_all(True)
        style_blocks = len(soup.find_all("style"))
        linked = sum(
            1 for link in soup.find_all("link")
            if "stylesheet" in [rel.lower() for rel in (link.get("rel") or [])]
        )
        inline = sum(1 for el in everything if el.has_attr("style"))
        classes = {cls for el in everything for cls in (el.get("class") or [])}
        return (style_blocks + linked) * self.stylesheet_weight + inline + len(classes)

    @staticmethod
    def _is_layout(el: Tag) -> bool:
        style = (el.get("style") or "").lower()
        if "display" in style or "position" in style:
            return True
        return any("flex" in cls or "grid" in cls for cls in (el.get("class") or []))

    @staticmethod
    def _is_clickable(el: Tag) -> bool:
        return (
            el.name in CLICKABLE_TAGS
            or el.has_attr("onclick")
            or (el.get("role") or "").lower() == "button"
        )

    def _resolve_styles(self, soup: BeautifulSoup, elements: List[Tag]) -> StyleSummary:
        try:
            return self.style_resolver.resolve(soup, elements)
        except StyleResolutionError as e:
            logger.warning("%s. Falling back to markup estimates.", e)
            return self._fallback_resolver.resolve(soup, elements)
