# src/complexity_analyzer/styles/style_resolver.py
import abc
import importlib.util
import logging
import re
from typing import Dict, List, Optional, Set

from bs4 import BeautifulSoup, Tag

from complexity_analyzer.model import StyleSummary

logger = logging.getLogger(__name__)

# Only the properties we care about; the lookbehind keeps 'border-color' out of 'color'
DECLARATION_RE = re.compile(
    r'(?<![\w-])(font-family|font-size|color|background-color|background)\s*:\s*([^;{}]+)',
    re.IGNORECASE,
)
COLOR_TOKEN_RE = re.compile(r'^(#[0-9a-f]{3,8}|(?:rgb|rgba|hsl|hsla)\([^)]*\)|[a-z]+)$')
TRANSPARENT = {"transparent", "rgba(0, 0, 0, 0)", "rgba(0,0,0,0)", "inherit", "initial", "unset", "none"}
HEADING_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6")


class StyleResolutionError(RuntimeError):
    """Resolved-style inspection failed (no browser, render error, ...)."""


def _normalize(value: str) -> str:
    value = value.replace("!important", "").strip().lower()
    return re.sub(r'\s+', ' ', value)


def parse_declarations(css_text: Optional[str]) -> Dict[str, List[str]]:
    """
    Collects typography/colour declarations from an inline style attribute
    or a <style> block. A `background` shorthand counts as a background
    colour only when it is a single colour token.
    """
    found: Dict[str, List[str]] = {}
    if not css_text:
        return found
    for prop, raw_value in DECLARATION_RE.findall(css_text):
        prop = prop.lower()
        value = _normalize(raw_value)
        if not value:
            continue
        if prop == "background":
            if not COLOR_TOKEN_RE.match(value):
                continue
            prop = "background-color"
        found.setdefault(prop, []).append(value)
    return found


class StyleResolver(metaclass=abc.ABCMeta):
    """
    Capability interface for reading resolved typography and colour values.
    Implementations that block (e.g. drive a browser) set `blocking`.
    """
    blocking: bool = False

    @abc.abstractmethod
    def resolve(self, soup: BeautifulSoup, elements: List[Tag]) -> StyleSummary:
        raise NotImplementedError("Every style resolver must implement 'resolve'.")


class HeuristicStyleResolver(StyleResolver):
    """
    Best-effort resolver working on markup only: inline declarations, legacy
    <font> attributes, <style> blocks and heading levels. Results are
    flagged as estimates so the extractor can clamp them.
    """

    def resolve(self, soup: BeautifulSoup, elements: List[Tag]) -> StyleSummary:
        families: Set[str] = set()
        sizes: Set[str] = set()
        colors: Set[str] = set()
        contrast_issues = 0

        for el in elements:
            decl = parse_declarations(el.get("style"))

            if el.name == "font":
                if el.get("face"):
                    decl.setdefault("font-family", []).append(_normalize(el["face"]))
                if el.get("size"):
                    decl.setdefault("font-size", []).append(_normalize(el["size"]))
                if el.get("color"):
                    decl.setdefault("color", []).append(_normalize(el["color"]))

            families.update(decl.get("font-family", []))
            sizes.update(decl.get("font-size", []))

            fg = decl.get("color", [None])[-1]
            bg = decl.get("background-color", [None])[-1]
            if fg:
                colors.add(fg)
            if bg and bg not in TRANSPARENT:
                colors.add(bg)

            # Exact string comparison only, not a perceptual contrast check
            if fg and bg and fg == bg:
                contrast_issues += 1

            if el.name in HEADING_TAGS:
                sizes.add(el.name)

        for style_tag in soup.find_all("style"):
            decl = parse_declarations(style_tag.get_text())
            families.update(decl.get("font-family", []))
            sizes.update(decl.get("font-size", []))
            colors.update(decl.get("color", []))
            colors.update(c for c in decl.get("background-color", []) if c not in TRANSPARENT)

        return StyleSummary(
            font_families=frozenset(families),
            font_sizes=frozenset(sizes),
            colors=frozenset(colors - TRANSPARENT),
            contrast_issues=contrast_issues,
            estimated=True,
        )


COMPUTED_STYLE_SCRIPT = """
() => {
    const root = document.body || document.documentElement;
    const fonts = new Set(), sizes = new Set(), colors = new Set();
    let issues = 0;
    for (const el of root.querySelectorAll('*')) {
        const cs = window.getComputedStyle(el);
        if (cs.fontFamily) fonts.add(cs.fontFamily);
        if (cs.fontSize) sizes.add(cs.fontSize);
        if (cs.color) colors.add(cs.color);
        if (cs.backgroundColor && cs.backgroundColor !== 'rgba(0, 0, 0, 0)') colors.add(cs.backgroundColor);
        if (cs.color && cs.backgroundColor && cs.color === cs.backgroundColor) issues++;
    }
    return {fonts: [...fonts], sizes: [...sizes], colors: [...colors], issues};
}
"""


class PlaywrightStyleResolver(StyleResolver):
    """
    Precise resolver: renders the markup in headless Chromium and reads
    getComputedStyle for every element. Page scripts are stripped before
    rendering so none of the target page's JavaScript runs.
    Requires the optional 'render' extra (playwright + installed browser).
    """
    blocking = True

    def __init__(self, timeout_ms: int = 15000):
        self.timeout_ms = timeout_ms

    def resolve(self, soup: BeautifulSoup, elements: List[Tag]) -> StyleSummary:
        from playwright.sync_api import Error as PlaywrightError, sync_playwright

        try:
            with sync_playwright() as p:
                browser = p.chromium.launch(headless=True)
                try:
                    page = browser.new_page()
                    page.set_default_timeout(self.timeout_ms)
                    page.set_content(self._without_scripts(soup), wait_until="domcontentloaded")
                    data = page.evaluate(COMPUTED_STYLE_SCRIPT)
                finally:
                    browser.close()
        except PlaywrightError as e:
            raise StyleResolutionError(f"Computed style inspection failed: {e}") from e

        return StyleSummary(
            font_families=frozenset(data.get("fonts", [])),
            font_sizes=frozenset(data.get("sizes", [])),
            colors=frozenset(data.get("colors", [])),
            contrast_issues=int(data.get("issues", 0)),
            estimated=False,
        )

    @staticmethod
    def _without_scripts(soup: BeautifulSoup) -> str:
        copy = BeautifulSoup(str(soup), "html.parser")
        for script in copy.find_all("script"):
            script.decompose()
        return str(copy)


RESOLVERS = {
    "heuristic": HeuristicStyleResolver,
    "playwright": PlaywrightStyleResolver,
}


def create_style_resolver(name: str = "heuristic") -> StyleResolver:
    """Selects the resolver named in settings.json (styles.resolver)."""
    if name not in RESOLVERS:
        raise ValueError(f"Unknown style resolver '{name}'. Choose from: {', '.join(RESOLVERS)}")
    if name == "playwright" and importlib.util.find_spec("playwright") is None:
        raise ValueError("The 'playwright' style resolver needs the optional 'render' extra installed.")
    return RESOLVERS[name]()
