"""
query.py
========
Read-only DOM query surface for interactive locator analysis.

Every query runs against an explicit DocumentQueryContext built for a single
request and answers with a short text report, so a model can call the queries
as tools. Queries never raise: invalid selectors and expressions come back as
text, and a closed context answers 'Document not set'.

Example:
    >>> with DocumentQueryContext.from_html(html, locator='#searchBox') as context:
    ...     print(find_by_id(context, 'searchBox'))
"""

import logfire
from lxml.html import HtmlElement

from domsift.cleaning import HTMLCleaner
from domsift.document import MarkupDocument, normalize_text
from domsift.exceptions import LocatorSyntaxError

DOCUMENT_NOT_SET = 'Document not set'
NOT_FOUND = 'Not found'
NO_ELEMENTS = 'No elements found'

INTERACTIVE_TAGS = ('input', 'button', 'a', 'select', 'textarea')
INTERACTIVE_LIMIT = 50
SELECTOR_LIMIT = 10
TEXT_PREVIEW_LENGTH = 50


class DocumentQueryContext:
    """The document one analysis request is allowed to query.

    Use it as a context manager; the document is released on exit and any
    later query on the same context answers 'Document not set'.

    Attributes:
        document: The queried document, None once closed
        locator: The failing locator the request is about
        page_url: Page URL, for logs only
        max_results: Result limit for text and attribute searches

    """

    def __init__(
        self,
        document: MarkupDocument | None,
        locator: str = '',
        page_url: str = '',
        max_results: int = 20,
    ):
        self.document = document
        self.locator = locator
        self.page_url = page_url
        self.max_results = max_results

    @classmethod
    def from_html(
        cls,
        html: str,
        locator: str = '',
        page_url: str = '',
        max_results: int = 20,
        cleaner: HTMLCleaner | None = None,
    ) -> 'DocumentQueryContext':
        """Build a context over the noise-cleaned, un-pruned document.

        Args:
            html: Full page markup
            locator: The failing locator
            page_url: Page URL
            max_results: Result limit for text and attribute searches
            cleaner: Noise remover. Defaults to HTMLCleaner().

        Returns:
            An open context.

        """
        cleaned = (cleaner or HTMLCleaner()).remove_noise(html)
        return cls(MarkupDocument.from_html(cleaned), locator=locator, page_url=page_url, max_results=max_results)

    @property
    def is_open(self) -> bool:
        return self.document is not None

    def close(self) -> None:
        """Release the document."""
        self.document = None

    def __enter__(self) -> 'DocumentQueryContext':
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()


# ============================================================================
# Formatting
# ============================================================================


def format_element(node: HtmlElement) -> str:
    """One-line summary of an element with its key locator attributes.

    Args:
        node: Element to describe

    Returns:
        ``<tag id="…" class="…" name="…" data-testid="…">text</tag>``, with the
        text cut to 50 characters.

    """
    tag = str(node.tag).lower()
    text = normalize_text(node.text_content())
    if len(text) > TEXT_PREVIEW_LENGTH:
        text = text[:TEXT_PREVIEW_LENGTH] + '...'

    return '<{tag} id="{id}" class="{cls}" name="{name}" data-testid="{testid}">{text}</{tag}>'.format(
        tag=tag,
        id=node.get('id', ''),
        cls=node.get('class', ''),
        name=node.get('name', ''),
        testid=node.get('data-testid', ''),
        text=text,
    )


def format_elements(nodes: list[HtmlElement], limit: int) -> str:
    """Summarize up to ``limit`` elements, noting how many were left out."""
    if not nodes:
        return NO_ELEMENTS

    lines = [format_element(node) for node in nodes[:limit]]
    if len(nodes) > limit:
        lines.append(f'... and {len(nodes) - limit} more elements')

    return f'Found {min(len(nodes), limit)} elements:\n' + '\n'.join(lines)


# ============================================================================
# Queries
# ============================================================================


def find_by_id(context: DocumentQueryContext, element_id: str) -> str:
    """Find the element with the given id."""
    if context.document is None:
        return DOCUMENT_NOT_SET

    node = context.document.find_by_id(element_id)
    if node is None:
        logfire.debug('Element not found by ID', element_id=element_id)
        return NOT_FOUND

    logfire.debug('Found element by ID', element_id=element_id)
    return format_element(node)


def find_by_css(context: DocumentQueryContext, selector: str) -> str:
    """Evaluate a CSS selector; syntax errors are reported as text."""
    if context.document is None:
        return DOCUMENT_NOT_SET

    try:
        nodes = context.document.select_css(selector)
    except LocatorSyntaxError as e:
        logfire.warn('Invalid CSS selector', selector=selector, error=e.reason)
        return f'Invalid selector: {e.reason}'

    logfire.debug('CSS selector matched', selector=selector, count=len(nodes))
    return format_elements(nodes, SELECTOR_LIMIT)


def find_by_xpath(context: DocumentQueryContext, expression: str) -> str:
    """Evaluate an XPath expression; syntax errors are reported as text."""
    if context.document is None:
        return DOCUMENT_NOT_SET

    try:
        nodes = context.document.select_xpath(expression)
    except LocatorSyntaxError as e:
        logfire.warn('Invalid XPath', expression=expression, error=e.reason)
        return f'Invalid XPath: {e.reason}'

    logfire.debug('XPath matched', expression=expression, count=len(nodes))
    return format_elements(nodes, SELECTOR_LIMIT)


def find_by_text(context: DocumentQueryContext, text: str) -> str:
    """Elements whose own text contains ``text``, ignoring case."""
    if context.document is None:
        return DOCUMENT_NOT_SET

    needle = normalize_text(text).casefold()
    if not needle:
        return 'Search failed: text is required'

    document = context.document
    nodes = [node for node in document.iter_nodes() if needle in document.own_text(node).casefold()]
    logfire.debug('Text search matched', text=text, count=len(nodes))
    return format_elements(nodes, context.max_results)


def list_interactive_elements(context: DocumentQueryContext) -> str:
    """Inputs, buttons, links, selects and textareas in document order (first 50)."""
    if context.document is None:
        return DOCUMENT_NOT_SET

    document = context.document
    nodes = [node for node in document.iter_nodes() if document.tag(node) in INTERACTIVE_TAGS]
    logfire.debug('Listed interactive elements', count=len(nodes))
    return format_elements(nodes, INTERACTIVE_LIMIT)


def find_by_attribute(context: DocumentQueryContext, name: str, value: str | None = None) -> str:
    """Elements carrying attribute ``name``, optionally with an exact ``value``."""
    if context.document is None:
        return DOCUMENT_NOT_SET

    if not name or not name.strip():
        return 'Search failed: attribute name is required'

    nodes = context.document.find_by_attribute(name.strip(), value or None)
    logfire.debug('Attribute search matched', name=name, value=value, count=len(nodes))
    return format_elements(nodes, context.max_results)
