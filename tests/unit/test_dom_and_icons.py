"""
Unit Tests for Document Traversal and Icon Scoring
==================================================

Tests for the preorder walk, main-content detection and icon candidate
scoring.
"""

import pytest
from bs4 import BeautifulSoup

from lufeed_parser.extraction.dom import (
    extract_text,
    find_first,
    find_main_content,
    is_element,
    meta_content,
    walk,
)
from lufeed_parser.extraction.icons import best_icon, is_icon_rel, iter_icon_candidates, score_icon
from lufeed_parser.models import IconCandidate


def _soup(markup):
    return BeautifulSoup(markup, "html.parser", multi_valued_attributes=None)


class TestWalk:
    """Test cases for walk and find_first."""

    def test_preorder_order(self):
        doc = _soup("<div><a></a><b><i></i></b></div><p></p>")
        names = [node.name for node in walk(doc) if is_element(node)]
        assert names == ["div", "a", "b", "i", "p"]

    def test_prune_skips_children_but_yields_node(self):
        doc = _soup("<div><b><i></i></b><u></u></div>")
        names = [node.name for node in walk(doc, prune=lambda n: n.name == "b") if is_element(node)]
        assert names == ["div", "b", "u"]

    def test_find_first_returns_first_truthy_value(self):
        doc = _soup('<a href=""></a><a href="/one"></a><a href="/two"></a>')
        found = find_first(doc, lambda n: n.get("href") if is_element(n) else None)
        assert found == "/one"

    def test_deeply_nested_text(self):
        doc = _soup("<div>" * 300 + "deep" + "</div>" * 300)
        assert extract_text(doc) == "deep"


class TestMetaContent:

    def test_property_match(self):
        doc = _soup('<meta property="og:description" content="desc">')
        assert meta_content(doc, "og:description") == "desc"

    def test_name_not_accepted_unless_requested(self):
        doc = _soup('<meta name="og:title" content="t">')
        assert meta_content(doc, "og:title") == ""
        assert meta_content(doc, "og:title", keys=("property", "name")) == "t"


class TestMainContent:
    """Test cases for main-content detection and text extraction."""

    def test_article_with_content_class_wins(self):
        doc = _soup('<div>short</div><article class="main-content"><p>Body text</p></article>')
        main = find_main_content(doc)
        assert main.name == "article"

    def test_long_text_raises_score(self):
        long_text = "x" * 1200
        doc = _soup(f'<article>a</article><section><p>{long_text}</p></section>')
        # section: 5 + 12, article: 10
        assert find_main_content(doc).name == "section"

    def test_first_element_wins_ties(self):
        doc = _soup('<div id="first">a</div><div id="second">b</div>')
        assert find_main_content(doc)["id"] == "first"

    def test_no_scored_element_returns_none(self):
        assert find_main_content(_soup("<p>plain</p>")) is None

    def test_text_skips_scripts_and_styles(self):
        doc = _soup(
            "<main><h1> Title </h1><style>.a{}</style><p>Para <b>bold</b></p>"
            "<noscript>enable js</noscript><iframe>frame</iframe><script>x()</script></main>"
        )
        assert extract_text(doc) == "Title Para bold"

    def test_comments_are_not_text(self):
        doc = _soup("<main><!-- hidden --><p>shown</p></main>")
        assert extract_text(doc) == "shown"


class TestIconScoring:
    """Test cases for icon candidate scoring."""

    @pytest.mark.parametrize("rel", ["icon", "shortcut icon", "apple-touch-icon", "mask-icon", "my-icon-set"])
    def test_icon_rels_accepted(self, rel):
        assert is_icon_rel(rel)

    def test_other_rels_rejected(self):
        assert not is_icon_rel("stylesheet")
        assert score_icon("/style.css", rel="stylesheet") is None

    def test_svg_scores_highest(self):
        candidate = score_icon("/icon.svg", rel="icon")
        assert candidate.score == 2000
        assert candidate.size == 1000

    def test_sizes_any(self):
        candidate = score_icon("/icon.png", rel="icon", sizes="any")
        assert candidate.score == 1500
        assert candidate.size == 800

    def test_sizes_attribute_uses_larger_dimension(self):
        candidate = score_icon("/icon.png", rel="icon", sizes="48x64")
        assert candidate.size == 64
        assert candidate.score == 64

    def test_filename_size(self):
        candidate = score_icon("/favicon-96x96.png", rel="icon")
        assert candidate.size == 96
        assert candidate.score == 96

    def test_unknown_size(self):
        candidate = score_icon("/favicon.ico", rel="icon")
        assert candidate.size == 16
        assert candidate.score == 16

    def test_apple_touch_bonus(self):
        candidate = score_icon("/touch.png", rel="apple-touch-icon", sizes="180x180")
        assert candidate.score == 380

    def test_any_beats_32x32(self):
        doc = _soup('<link rel="icon" href="/a-32x32.png" sizes="32x32"><link rel="icon" href="/b.png" sizes="any">')
        best = best_icon(iter_icon_candidates(doc))
        assert best.href == "/b.png"

    def test_ties_prefer_larger_size(self):
        small = IconCandidate(href="/a", size=16, score=100)
        large = IconCandidate(href="/b", size=32, score=100)
        assert best_icon([small, large]) is large
        assert best_icon([large, small]) is large

    def test_empty_href_ignored(self):
        doc = _soup('<link rel="icon" href="">')
        assert list(iter_icon_candidates(doc)) == []
