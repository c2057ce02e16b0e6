"""
hints.py
========
Turns a raw locator (XPath or CSS selector) into semantic hints.

This is a pattern-based extractor, not a grammar: it pulls out ids, classes,
tag names, attributes and literal text wherever they appear and never fails
on malformed input.
"""

import re
from typing import Protocol

import logfire

from domsift.models import LocatorHints, LocatorKind

# XPath patterns
XPATH_ID_PATTERN = re.compile(r"""@id\s*=\s*['"]([^'"]+)['"]""")
XPATH_CLASS_PATTERN = re.compile(r"""@class\s*=\s*['"]([^'"]+)['"]""")
XPATH_ATTR_PATTERN = re.compile(r"""@([a-zA-Z_][\w:.-]*)\s*=\s*['"]([^'"]+)['"]""")
XPATH_TEXT_PATTERN = re.compile(
    r"""text\(\)\s*=\s*['"]([^'"]+)['"]|contains\s*\(\s*text\(\)\s*,\s*['"]([^'"]+)['"]\s*\)"""
)
XPATH_TAG_PATTERN = re.compile(r"/{1,2}([a-zA-Z][a-zA-Z0-9-]*|\*)(?![a-zA-Z0-9-]|\s*\()")

# CSS patterns
CSS_ID_PATTERN = re.compile(r'#([a-zA-Z_][\w-]*)')
CSS_CLASS_PATTERN = re.compile(r'\.([a-zA-Z_][\w-]*)')
# [name], [name='v'], [name^='v'] and the other operator forms; the value may be unquoted
CSS_ATTR_PATTERN = re.compile(
    r"""\[\s*(?P<name>[a-zA-Z_][\w:-]*)\s*"""
    r"""(?:(?P<operator>[~|^$*]?=)\s*(?:['"](?P<value>[^'"]*)['"]|(?P<ident>[\w-]+))\s*(?:[iIsS]\s*)?)?\]"""
)
CSS_TAG_PATTERN = re.compile(r'^\s*([a-zA-Z][a-zA-Z0-9]*|\*)|[>+~\s,]\s*([a-zA-Z][a-zA-Z0-9]*|\*)')

# Classification cues
XPATH_POSITION_PATTERN = re.compile(r'\[\d+\]')
CSS_ATTR_EXPRESSION_PATTERN = re.compile(r'\[[^\]]*\]')
CSS_LEADING_TAG_PATTERN = re.compile(r'^[a-zA-Z][a-zA-Z0-9]*')

HANDLED_ATTRIBUTES = {'id', 'class'}


class HintExtractor(Protocol):
    """Protocol for locator hint extraction strategies."""

    def parse(self, locator: str | None) -> LocatorHints:
        """Extract hints from a locator; must not raise."""
        ...


def detect_locator_kind(locator: str) -> LocatorKind:
    """Classify a locator as XPath, CSS-like or unknown.

    XPath cues are checked first because they are more specific.

    Args:
        locator: Raw locator string

    Returns:
        The detected LocatorKind.

    """
    locator = locator.strip()
    if not locator:
        return LocatorKind.UNKNOWN

    if (
        locator.startswith('/')
        or '[@' in locator
        or 'contains(' in locator
        or 'text()' in locator
        or XPATH_POSITION_PATTERN.search(locator)
    ):
        return LocatorKind.XPATH

    if (
        locator.startswith(('#', '.'))
        or any(combinator in locator for combinator in '>+~')
        or CSS_ATTR_EXPRESSION_PATTERN.search(locator)
        or CSS_LEADING_TAG_PATTERN.match(locator)
    ):
        return LocatorKind.CSS_SELECTOR

    return LocatorKind.UNKNOWN


def _first_group(match: re.Match) -> str | None:
    """Value of the first participating group of a match."""
    return next((group for group in match.groups() if group is not None), None)


class LocatorHintExtractor:
    """Extracts ids, classes, tags, attributes and text from locators."""

    def parse(self, locator: str | None) -> LocatorHints:
        """Parse a locator into hints.

        Empty, missing or unclassifiable locators produce UNKNOWN hints with
        every collection empty.

        Args:
            locator: The XPath or CSS selector string

        Returns:
            Frozen LocatorHints.

        """
        if locator is None or not locator.strip():
            logfire.warn('Empty or missing locator provided')
            return LocatorHints(kind=LocatorKind.UNKNOWN, raw_locator=locator or '')

        kind = detect_locator_kind(locator)
        logfire.debug('Detected locator kind {kind}', kind=kind.value, locator=locator)

        if kind is LocatorKind.XPATH:
            return self._parse_xpath(locator)
        if kind is LocatorKind.CSS_SELECTOR:
            return self._parse_css(locator)
        return LocatorHints(kind=LocatorKind.UNKNOWN, raw_locator=locator)

    def _parse_xpath(self, xpath: str) -> LocatorHints:
        ids = [m.group(1) for m in XPATH_ID_PATTERN.finditer(xpath)]

        classes = []
        for match in XPATH_CLASS_PATTERN.finditer(xpath):
            classes.extend(match.group(1).split())

        attributes = {}
        for match in XPATH_ATTR_PATTERN.finditer(xpath):
            name, value = match.group(1).lower(), match.group(2)
            if name not in HANDLED_ATTRIBUTES:
                attributes.setdefault(name, value)

        text = None
        text_match = XPATH_TEXT_PATTERN.search(xpath)
        if text_match:
            text = _first_group(text_match)

        tag_names = self._extract_tags(XPATH_TAG_PATTERN, xpath)

        hints = LocatorHints(
            kind=LocatorKind.XPATH,
            raw_locator=xpath,
            ids=ids,
            classes=classes,
            tag_names=tag_names,
            attributes=attributes,
            text=text,
        )
        logfire.debug(
            'Parsed XPath hints',
            ids=len(hints.ids),
            classes=len(hints.classes),
            tags=len(hints.tag_names),
            attributes=len(hints.attributes),
            has_text=hints.text is not None,
        )
        return hints

    def _parse_css(self, css: str) -> LocatorHints:
        # Quoted attribute values may contain '#' or '.', so scan ids and classes outside brackets only
        outside_brackets = CSS_ATTR_EXPRESSION_PATTERN.sub(' ', css)

        ids = [m.group(1) for m in CSS_ID_PATTERN.finditer(outside_brackets)]
        classes = [m.group(1) for m in CSS_CLASS_PATTERN.finditer(outside_brackets)]

        attributes = {}
        for match in CSS_ATTR_PATTERN.finditer(css):
            name = match.group('name').lower()
            if name in HANDLED_ATTRIBUTES:
                continue
            if match.group('operator') is None:
                # A bare [name] only asks for the attribute to be present
                value = None
            elif match.group('value') is not None:
                value = match.group('value')
            else:
                value = match.group('ident')
            attributes.setdefault(name, value)

        tag_names = self._extract_tags(CSS_TAG_PATTERN, outside_brackets)

        hints = LocatorHints(
            kind=LocatorKind.CSS_SELECTOR,
            raw_locator=css,
            ids=ids,
            classes=classes,
            tag_names=tag_names,
            attributes=attributes,
        )
        logfire.debug(
            'Parsed CSS hints',
            ids=len(hints.ids),
            classes=len(hints.classes),
            tags=len(hints.tag_names),
            attributes=len(hints.attributes),
        )
        return hints

    @staticmethod
    def _extract_tags(pattern: re.Pattern, locator: str) -> list[str]:
        tags = []
        for match in pattern.finditer(locator):
            tag = _first_group(match)
            if tag and tag != '*':
                tags.append(tag.lower())
        return tags
