"""
Document Traversal
==================

Preorder traversal helpers over BeautifulSoup trees plus the main-content
heuristic used to produce a page's raw text.

All traversals are iterative so deeply nested markup cannot exhaust the
interpreter stack.
"""

from typing import Callable, Dict, Iterator, Optional, TypeVar

from bs4 import BeautifulSoup, NavigableString, PageElement, Tag
from bs4.element import PreformattedString

T = TypeVar("T")

# Elements whose text never belongs to the page's readable content
SKIPPED_TEXT_ELEMENTS = frozenset({"script", "style", "noscript", "iframe"})

CONTENT_MARKERS = ("content", "main", "article", "blog", "post")


def is_element(node: PageElement) -> bool:
    """True for real elements (the document root itself is excluded)."""
    return isinstance(node, Tag) and not isinstance(node, BeautifulSoup)


def is_text(node: PageElement) -> bool:
    """True for character data; comments, doctypes and CDATA are excluded."""
    return isinstance(node, NavigableString) and not isinstance(node, PreformattedString)


def attr(node: Tag, name: str) -> str:
    """Attribute value as a string, empty when missing."""
    value = node.get(name)
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return " ".join(value)
    return str(value)


def walk(root: PageElement,
         prune: Optional[Callable[[PageElement], bool]] = None) -> Iterator[PageElement]:
    """Yield ``root`` and its descendants in document (preorder) order.

    Args:
        root: Node to start from
        prune: Predicate; children of a node for which it returns True are
            not visited (the node itself is still yielded)
    """
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        if isinstance(node, Tag) and not (prune and prune(node)):
            stack.extend(reversed(node.contents))


def find_first(root: PageElement,
               visitor: Callable[[PageElement], Optional[T]]) -> Optional[T]:
    """Return the first non-empty value produced by ``visitor`` in preorder."""
    for node in walk(root):
        value = visitor(node)
        if value:
            return value
    return None


def meta_content(root: PageElement, value: str, keys=("property",)) -> str:
    """Content of the first ``<meta>`` whose key attribute equals ``value``.

    Metas with an empty ``content`` are skipped, so a later duplicate can win.
    """
    def visitor(node: PageElement) -> Optional[str]:
        if is_element(node) and node.name == "meta":
            if any(attr(node, key) == value for key in keys):
                return attr(node, "content")
        return None

    return find_first(root, visitor) or ""


def text_lengths(root: PageElement) -> Dict[int, int]:
    """Total trimmed text length below every element, keyed by ``id(node)``.

    Computed in one pass: nodes are visited in reverse preorder so every
    child is settled before its parent.
    """
    lengths: Dict[int, int] = {}
    nodes = list(walk(root))
    for node in reversed(nodes):
        if isinstance(node, Tag):
            lengths[id(node)] = sum(
                lengths.get(id(child), 0) if isinstance(child, Tag)
                else (len(child.strip()) if is_text(child) else 0)
                for child in node.contents
            )
    return lengths


def content_score(node: Tag, text_length: int) -> int:
    """Heuristic score of an element as the page's main content."""
    score = 0
    if node.name in ("main", "article"):
        score += 10
    elif node.name in ("div", "section"):
        score += 5

    for name in ("id", "class"):
        value = attr(node, name).lower()
        if value and any(marker in value for marker in CONTENT_MARKERS):
            score += 5

    return score + text_length // 100


def find_main_content(root: PageElement) -> Optional[Tag]:
    """Element most likely to hold the main content, or None.

    The first element in document order with the highest positive score wins.
    """
    lengths = text_lengths(root)
    best: Optional[Tag] = None
    best_score = 0
    for node in walk(root):
        if not is_element(node):
            continue
        score = content_score(node, lengths.get(id(node), 0))
        if score > best_score:
            best, best_score = node, score
    return best


def extract_text(root: PageElement) -> str:
    """Readable text of the main content (or the whole document).

    Text inside script, style, noscript and iframe is skipped; remaining
    text nodes are trimmed and joined with single spaces.
    """
    start = find_main_content(root) or root

    def prune(node: PageElement) -> bool:
        return is_element(node) and node.name in SKIPPED_TEXT_ELEMENTS

    parts = []
    for node in walk(start, prune=prune):
        if is_text(node):
            text = node.strip()
            if text:
                parts.append(text)
    return " ".join(parts)
