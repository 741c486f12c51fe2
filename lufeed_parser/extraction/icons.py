"""
Icon Candidate Scoring
======================

Scores ``<link>`` icon declarations so the sharpest usable icon wins.
"""

import re
from typing import Iterator, Optional

from bs4 import PageElement

from ..models import IconCandidate
from .dom import attr, is_element, walk

ICON_REL_TOKENS = frozenset({
    "icon",
    "shortcut",
    "shortcut-icon",
    "apple-touch-icon",
    "apple-touch-icon-precomposed",
    "mask-icon",
    "fluid-icon",
})

# Checked in order when the document declares no usable icon
FALLBACK_ICON_PATHS = (
    "/favicon.ico",
    "/favicon.svg",
    "/apple-touch-icon.png",
    "/apple-touch-icon-precomposed.png",
    "/favicon/favicon.ico",
    "/favicon/favicon.svg",
)

SIZE_PATTERN = re.compile(r"(\d+)x(\d+)")

SVG_SCORE = 2000
SVG_SIZE = 1000
ANY_SIZE_SCORE = 1500
ANY_SIZE_FLOOR = 800
UNKNOWN_SIZE = 16
APPLE_TOUCH_BONUS = 200


def is_icon_rel(rel: str) -> bool:
    """Whether a lowercased rel value declares an icon."""
    if any(token in ICON_REL_TOKENS for token in rel.split()):
        return True
    return "icon" in rel


def score_icon(href: str, rel: str = "", sizes: str = "", type_: str = "") -> Optional[IconCandidate]:
    """Score one icon declaration.

    Args:
        href: Icon reference as written in the document
        rel: Lowercased rel attribute
        sizes: Lowercased sizes attribute
        type_: Lowercased type attribute

    Returns:
        Candidate (href left unresolved), or None when the link is not an icon
    """
    if not href or not is_icon_rel(rel):
        return None

    score = 0
    size = 0

    if "svg" in type_ or href.lower().endswith(".svg"):
        score += SVG_SCORE
        size = SVG_SIZE

    if sizes == "any":
        score += ANY_SIZE_SCORE
        size = max(size, ANY_SIZE_FLOOR)
    elif sizes:
        match = SIZE_PATTERN.search(sizes)
        if match:
            width, height = int(match.group(1)), int(match.group(2))
            if width > 0 and height > 0:
                size = max(width, height)
                score += size

    if size == 0:
        # Filenames such as icon-192x192.png
        match = SIZE_PATTERN.search(href)
        if match:
            size = int(match.group(1))
            score += size

    if size == 0:
        size = UNKNOWN_SIZE
        score += UNKNOWN_SIZE

    if "apple-touch-icon" in rel:
        score += APPLE_TOUCH_BONUS

    return IconCandidate(href=href, size=size, score=score)


def iter_icon_candidates(root: PageElement) -> Iterator[IconCandidate]:
    """Yield scored icon candidates in document order."""
    for node in walk(root):
        if not is_element(node) or node.name != "link":
            continue
        candidate = score_icon(
            href=attr(node, "href"),
            rel=attr(node, "rel").lower(),
            sizes=attr(node, "sizes").lower(),
            type_=attr(node, "type").lower(),
        )
        if candidate is not None:
            yield candidate


def best_icon(candidates) -> Optional[IconCandidate]:
    """Highest score wins; ties go to the larger size, then document order."""
    best = None
    for candidate in candidates:
        if candidate.outranks(best):
            best = candidate
    return best
