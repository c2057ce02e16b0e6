"""
document.py
===========
Parsed markup tree with stable per-node integer ids.

Wraps an lxml HTML tree. Every element gets an integer id in document order
when the document is built; stages key their bookkeeping (deduplication,
preservation sets) on those ids rather than on element objects.
"""

from collections.abc import Iterator

import lxml.html
from cssselect import SelectorError
from lxml import etree
from lxml.html import HtmlElement

from domsift.exceptions import LocatorSyntaxError

ROOT_TAG = 'html'
HEAD_TAG = 'head'
BODY_TAG = 'body'
TITLE_TAG = 'title'
DOCTYPE = '<!DOCTYPE html>'


def _is_element(node) -> bool:
    # Comments and processing instructions carry a callable as their tag
    return isinstance(node.tag, str)


def normalize_text(text: str | None) -> str:
    """Collapse whitespace runs and trim the ends."""
    if not text:
        return ''
    return ' '.join(text.split())


class MarkupDocument:
    """An ordered, rooted element tree with integer node ids.

    The tree owns its elements top-down; ``parent()`` is only used for
    upward walks. Ids are assigned once, in pre-order, so two structurally
    identical elements at different positions always have different ids.

    Attributes:
        root: The ``<html>`` root element

    """

    def __init__(self, root: HtmlElement):
        """Index the tree below ``root``.

        Args:
            root: Root element of an lxml HTML tree

        """
        self.root = root
        # Holding every proxy keeps lxml from recycling them, so lookups by element stay valid
        self._nodes: list[HtmlElement] = []
        self._ids: dict[HtmlElement, int] = {}
        for element in root.iter():
            if not _is_element(element):
                continue
            self._ids[element] = len(self._nodes)
            self._nodes.append(element)

    @classmethod
    def from_html(cls, html: str) -> 'MarkupDocument':
        """Parse markup into a document.

        Fragments are wrapped, so the result always has an ``<html>`` root
        and a ``<body>`` container.

        Args:
            html: Raw markup

        Returns:
            The parsed document.

        Raises:
            lxml.etree.ParserError: If the markup is empty.

        """
        return cls(lxml.html.document_fromstring(html))

    def __len__(self) -> int:
        return len(self._nodes)

    # ------------------------------------------------------------------
    # Identity and navigation
    # ------------------------------------------------------------------

    def node_id(self, node: HtmlElement) -> int:
        """Return the integer id of an element of this document.

        Raises:
            KeyError: If the element does not belong to this document.

        """
        return self._ids[node]

    def node_by_id(self, node_id: int) -> HtmlElement:
        """Return the element with the given id."""
        return self._nodes[node_id]

    def contains(self, node: HtmlElement) -> bool:
        """Whether ``node`` is an indexed element of this document."""
        return node in self._ids

    def iter_nodes(self) -> Iterator[HtmlElement]:
        """Iterate all elements in document order."""
        return iter(self._nodes)

    @staticmethod
    def parent(node: HtmlElement) -> HtmlElement | None:
        return node.getparent()

    @staticmethod
    def children(node: HtmlElement) -> list[HtmlElement]:
        """Element children of ``node`` in document order."""
        return [child for child in node if _is_element(child)]

    @staticmethod
    def ancestors(node: HtmlElement) -> Iterator[HtmlElement]:
        """Walk from the parent of ``node`` up to the root."""
        current = node.getparent()
        while current is not None:
            yield current
            current = current.getparent()

    @staticmethod
    def tag(node: HtmlElement) -> str:
        return str(node.tag).lower()

    @staticmethod
    def attribute(node: HtmlElement, name: str) -> str | None:
        """Attribute lookup with a case-insensitive name."""
        return node.get(name.lower())

    @staticmethod
    def classes(node: HtmlElement) -> list[str]:
        return (node.get('class') or '').split()

    @staticmethod
    def own_text(node: HtmlElement) -> str:
        """Text that belongs to ``node`` itself, excluding descendants' text."""
        parts = [node.text or '']
        parts.extend(child.tail or '' for child in node)
        return normalize_text(' '.join(parts))

    def find_first(self, tag: str) -> HtmlElement | None:
        """First element with the given tag name, in document order."""
        tag = tag.lower()
        for node in self._nodes:
            if self.tag(node) == tag:
                return node
        return None

    @property
    def head(self) -> HtmlElement | None:
        return self.find_first(HEAD_TAG)

    @property
    def body(self) -> HtmlElement | None:
        return self.find_first(BODY_TAG)

    @property
    def title(self) -> str | None:
        head = self.head
        if head is None:
            return None
        for child in self.children(head):
            if self.tag(child) == TITLE_TAG:
                return normalize_text(child.text_content())
        return None

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def find_by_id(self, element_id: str) -> HtmlElement | None:
        """First element whose id attribute equals ``element_id``."""
        for node in self._nodes:
            if node.get('id') == element_id:
                return node
        return None

    def find_by_attribute(self, name: str, value: str | None = None, contains: bool = False) -> list[HtmlElement]:
        """Find elements by attribute.

        Args:
            name: Attribute name (case-insensitive)
            value: Required value; None only checks that the attribute is present
            contains: Match ``value`` as a substring instead of exactly

        Returns:
            Matching elements in document order.

        """
        name = name.lower()
        matches = []
        for node in self._nodes:
            actual = node.get(name)
            if actual is None:
                continue
            if value is None:
                matches.append(node)
            elif contains:
                if value and value in actual:
                    matches.append(node)
            elif actual == value:
                matches.append(node)
        return matches

    def find_by_tag_and_class(self, tag: str | None = None, css_class: str | None = None) -> list[HtmlElement]:
        """Elements matching a tag name, a class, or both."""
        tag = tag.lower() if tag else None
        matches = []
        for node in self._nodes:
            if tag and self.tag(node) != tag:
                continue
            if css_class and css_class not in self.classes(node):
                continue
            matches.append(node)
        return matches

    def select_css(self, selector: str) -> list[HtmlElement]:
        """Evaluate a CSS selector against the document.

        Raises:
            LocatorSyntaxError: If the selector cannot be parsed or translated.

        """
        try:
            found = self.root.cssselect(selector, translator='html')
        except (SelectorError, etree.XPathError, ValueError) as e:
            raise LocatorSyntaxError(selector, 'css', str(e)) from e
        return [node for node in found if _is_element(node) and node in self._ids]

    def select_xpath(self, expression: str) -> list[HtmlElement]:
        """Evaluate an XPath expression against the document.

        Only element results are returned; strings, numbers and attribute
        values produced by the expression are dropped.

        Raises:
            LocatorSyntaxError: If the expression cannot be compiled or evaluated.

        """
        try:
            found = self.root.xpath(expression)
        except (etree.XPathError, ValueError) as e:
            raise LocatorSyntaxError(expression, 'xpath', str(e)) from e
        if not isinstance(found, list):
            return []
        return [node for node in found if isinstance(node, etree._Element) and _is_element(node) and node in self._ids]

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_html(self) -> str:
        """Serialize the document with an HTML5 doctype."""
        return lxml.html.tostring(self.root, encoding='unicode', doctype=DOCTYPE)
