"""Noise removal, minification and safe truncation for page markup."""

import html as html_lib
import re
from typing import Protocol

import logfire
from bs4 import BeautifulSoup, Comment, Tag

TRUNCATION_MARKER = '\n<!-- Truncated -->'

NOISE_TAGS = ['script', 'style', 'noscript', 'meta', 'link']

HIDDEN_STYLE_PATTERN = re.compile(r'display\s*:\s*none|visibility\s*:\s*hidden', re.IGNORECASE)
COMMENT_PATTERN = re.compile(r'<!--(?!\[if).*?-->', re.DOTALL)


class Minifier(Protocol):
    """Protocol for the final size-reduction step."""

    def minify(self, html: str) -> str:
        """Return a smaller, equivalent rendering of ``html``."""
        ...


class HTMLCleaner:
    """Strips markup that never helps locate an element.

    Removes scripts, styles, metadata, hidden elements and comments.
    """

    def __init__(self, parser: str = 'lxml'):
        """Initialize the cleaner.

        Args:
            parser: BeautifulSoup tree builder. Defaults to 'lxml'.

        """
        self.parser = parser

    @logfire.instrument('remove_noise', extract_args=False)
    def remove_noise(self, html: str) -> str:
        """Remove noise elements from markup.

        Args:
            html: Raw HTML content

        Returns:
            Cleaned HTML string.

        """
        soup = BeautifulSoup(html, self.parser)
        self.remove_noise_elements(soup)
        return str(soup)

    def remove_noise_elements(self, soup: BeautifulSoup) -> int:
        """Remove noise elements from a parsed document in place.

        Args:
            soup: BeautifulSoup parsed HTML

        Returns:
            Number of elements and comments removed.

        """
        removed = 0

        # 1. Scripts, styles, metadata and linked resources
        for tag in soup.find_all(NOISE_TAGS):
            tag.decompose()
            removed += 1

        # 2. Hidden elements (they can't be interacted with)
        for tag in soup.find_all(True):
            if not isinstance(tag, Tag) or tag.decomposed:
                continue
            if (
                tag.get('hidden') is not None
                or tag.get('aria-hidden') == 'true'
                or HIDDEN_STYLE_PATTERN.search(tag.get('style') or '')
            ):
                tag.decompose()
                removed += 1

        # 3. Comments
        for comment in soup.find_all(string=lambda text: isinstance(text, Comment)):
            comment.extract()
            removed += 1

        logfire.debug('Removed noise elements', removed=removed)
        return removed


class HTMLMinifier:
    """Default minifier: drops comments and collapses whitespace."""

    def minify(self, html: str) -> str:
        """Minify markup.

        Args:
            html: HTML content to condense

        Returns:
            The minified markup; empty input is returned as-is.

        """
        if not html:
            logfire.warn('Empty HTML provided for minification')
            return html

        original_size = len(html)

        minified = COMMENT_PATTERN.sub('', html)
        # Whitespace between tags → nothing
        minified = re.sub(r'>\s+<', '><', minified)
        # Runs of whitespace → single space
        minified = re.sub(r'\s{2,}', ' ', minified)
        minified = minified.strip()

        logfire.debug('Minification complete', original=original_size, minified=len(minified))
        return minified


def truncate_safely(html: str, max_bytes: int) -> str:
    """Truncate markup at a tag boundary so it fits in ``max_bytes`` of UTF-8.

    The marker comment appended after a cut counts against the limit. Within
    the remaining budget, cuts at the last ``<`` when that keeps at least 80%
    of the budget, otherwise cuts hard, dropping any character the cut split.

    Args:
        html: HTML content to truncate
        max_bytes: Maximum encoded size of the result

    Returns:
        The (possibly) truncated markup.

    """
    encoded = html.encode('utf-8')
    if len(encoded) <= max_bytes:
        return html

    budget = max(0, max_bytes - len(TRUNCATION_MARKER.encode('utf-8')))

    # '<' is a single byte that never occurs inside a multibyte sequence
    tag_start = encoded.rfind(b'<', 0, budget)
    if tag_start > budget * 0.8:
        return encoded[:tag_start].decode('utf-8') + TRUNCATION_MARKER

    return encoded[:budget].decode('utf-8', errors='ignore') + TRUNCATION_MARKER


def no_match_response(locator: str) -> str:
    """Build the placeholder document returned when no candidate matched.

    Args:
        locator: The locator that had no matches

    Returns:
        A small, complete HTML document naming the escaped locator.

    """
    return (
        '<!DOCTYPE html><html><head><title>No Match</title></head><body>'
        f'<p>No matching elements found for locator: <code>{html_lib.escape(locator or "")}</code></p>'
        '<p>The locator may be incorrect or the element may not exist in the page.</p>'
        '</body></html>'
    )

