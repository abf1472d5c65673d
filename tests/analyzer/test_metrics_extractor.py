# tests/analyzer/test_metrics_extractor.py
import pytest

from complexity_analyzer.model import StyleSummary
from complexity_analyzer.services.metrics_extractor_service import DocumentMetricsExtractor
from complexity_analyzer.styles.style_resolver import StyleResolutionError, StyleResolver


@pytest.fixture
def extractor():
    return DocumentMetricsExtractor()


def test_single_empty_div(extractor):
    raw = extractor.extract("<html><body><div></div></body></html>")
    assert raw.dom_depth == 1
    assert raw.total_elements == 1
    assert raw.element_types == 1
    assert raw.nesting_ratio == 1.0
    assert raw.text_length == 0
    assert raw.image_to_text_ratio == 0.0


def test_empty_body_never_divides_by_zero(extractor):
    raw = extractor.extract("<html><body></body></html>")
    assert raw.total_elements == 0
    assert raw.dom_depth == 0
    assert raw.nesting_ratio == 0.0


def test_empty_and_malformed_input(extractor):
    assert extractor.extract("").total_elements == 0
    raw = extractor.extract("<div><p>unclosed <span>tags")
    assert raw.total_elements == 3


def test_structure_counts(extractor):
    html = "<body><div><section><p><span>x</span></p></section></div><div></div></body>"
    raw = extractor.extract(html)
    assert raw.dom_depth == 4
    assert raw.total_elements == 5
    assert raw.element_types == 4
    assert raw.nesting_ratio == pytest.approx(0.8)


def test_text_length_and_ratio(extractor):
    raw = extractor.extract("<body><p>Hello</p><p>World</p><img src='a.png'></body>")
    assert raw.text_length == 10
    assert raw.image_count == 1
    assert raw.image_to_text_ratio == pytest.approx(100.0)


def test_image_in_picture_is_counted_by_every_signal(extractor):
    html = '<body><picture><source srcset="a.webp"><img src="a.jpg"></picture></body>'
    # img + picture + source[srcset]
    assert extractor.extract(html).image_count == 3


def test_svg_with_background_counts_twice(extractor):
    html = '<body><svg style="background: red"></svg><video></video></body>'
    assert extractor.extract(html).image_count == 3


def test_style_block_urls_are_counted_document_wide(extractor):
    html = (
        "<html><head><style>.a{background:url(x.png)} .b{background-image: URL( 'y.png' )}</style></head>"
        "<body><div></div></body></html>"
    )
    assert extractor.extract(html).image_count == 2


def test_css_rules_estimate():
    html = (
        '<html><head><style>p{}</style><link rel="stylesheet" href="a.css"><link rel="icon" href="f.ico"></head>'
        '<body><div class="a b" style="color:red"></div><p class="a"></p></body></html>'
    )
    assert DocumentMetricsExtractor().extract(html).css_rules == 23
    assert DocumentMetricsExtractor(stylesheet_weight=15).extract(html).css_rules == 33


def test_layout_and_interaction_counts(extractor):
    html = (
        '<body>'
        '<div style="display:flex"></div><div class="grid-wrap"></div>'
        '<span style="position: absolute"></span><span style="position:static"></span>'
        '<a href="#">x</a><button>b</button><div onclick="f()"></div><div role="button"></div>'
        '<form><input><textarea></textarea><select></select></form>'
        '</body>'
    )
    raw = extractor.extract(html)
    assert raw.layout_elements == 4
    assert raw.positioned_elements == 1
    assert raw.clickable_elements == 4
    assert raw.form_elements == 1
    assert raw.input_elements == 3


def test_estimated_typography_is_clamped(extractor):
    raw = extractor.extract("<body><p>plain</p></body>")
    assert raw.font_families == 5
    assert raw.font_sizes == 6
    assert raw.color_count == 10

    many_fonts = "".join(f'<p style="font-family: Font{i}">x</p>' for i in range(30))
    assert extractor.extract(f"<body>{many_fonts}</body>").font_families == 20


def test_exact_colour_match_is_a_contrast_issue(extractor):
    html = (
        '<body><p style="color:#fff;background-color:#fff">a</p>'
        '<p style="color:#fff;background:#000">b</p></body>'
    )
    assert extractor.extract(html).contrast_issues == 1


class _PreciseResolver(StyleResolver):
    def resolve(self, soup, elements):
        return StyleSummary(font_families=frozenset({"arial"}), font_sizes=frozenset({"16px"}),
                            colors=frozenset({"rgb(0, 0, 0)"}), contrast_issues=2, estimated=False)


class _BrokenResolver(StyleResolver):
    def resolve(self, soup, elements):
        raise StyleResolutionError("no browser")


def test_precise_resolver_values_are_not_clamped():
    raw = DocumentMetricsExtractor(style_resolver=_PreciseResolver()).extract("<body><p>x</p></body>")
    assert raw.font_families == 1
    assert raw.font_sizes == 1
    assert raw.color_count == 1
    assert raw.contrast_issues == 2


def test_failed_resolver_falls_back_to_markup_estimates():
    raw = DocumentMetricsExtractor(style_resolver=_BrokenResolver()).extract("<body><p>x</p></body>")
    assert raw.font_families == 5
