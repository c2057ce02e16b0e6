"""Value records shared by the reduction stages and the analysis boundary."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal

from lxml.html import HtmlElement
from pydantic import BaseModel, ConfigDict, Field, field_validator


class LocatorKind(str, Enum):
    """Query language a raw locator is written in."""

    XPATH = 'XPATH'
    CSS_SELECTOR = 'CSS_SELECTOR'
    UNKNOWN = 'UNKNOWN'


class LocatorHints(BaseModel):
    """Semantic hints extracted from a locator string.

    Hints are frozen once built. The id, class and tag collections are ordered
    by first appearance in the locator and never contain empty strings.

    Attributes:
        kind: Detected locator language
        raw_locator: The locator exactly as received
        ids: Candidate id values
        classes: Candidate class names
        tag_names: Candidate tag names (lower-cased, wildcard removed)
        attributes: Attribute name to value, excluding id and class; None means only presence is required
        text: Literal text fragment referenced by the locator

    """

    model_config = ConfigDict(frozen=True)

    kind: LocatorKind = LocatorKind.UNKNOWN
    raw_locator: str = ''
    ids: tuple[str, ...] = ()
    classes: tuple[str, ...] = ()
    tag_names: tuple[str, ...] = ()
    attributes: dict[str, str | None] = Field(default_factory=dict)
    text: str | None = None

    @field_validator('ids', 'classes', 'tag_names')
    @classmethod
    def _drop_empty(cls, values: tuple[str, ...]) -> tuple[str, ...]:
        return tuple(dict.fromkeys(v for v in values if v))

    @property
    def is_empty(self) -> bool:
        """Whether the hints carry nothing to search for."""
        return not (self.ids or self.classes or self.tag_names or self.attributes or self.text)


@dataclass
class ScoredCandidate:
    """A node judged to plausibly match the locator's intent.

    Attributes:
        node: Element in the source document
        node_id: Integer id of the node in its MarkupDocument
        score: Relative confidence; higher is stronger
        reason: Human-readable match reason

    """

    node: HtmlElement
    node_id: int
    score: int
    reason: str

    def describe(self) -> str:
        """Short label for logs and tables, e.g. ``input#searchBox``."""
        label = str(self.node.tag)
        element_id = self.node.get('id')
        if element_id:
            label += f'#{element_id}'
        classes = (self.node.get('class') or '').split()
        if classes:
            label += '.' + '.'.join(classes[:2])
        return label


ReductionPath = Literal['empty', 'passthrough', 'pruned', 'no_match', 'fallback']


@dataclass
class CandidateSummary:
    """Serializable view of a ScoredCandidate kept on the result."""

    node_id: int
    label: str
    score: int
    reason: str


@dataclass
class ReductionResult:
    """Outcome of one pipeline run.

    Attributes:
        html: The markup handed to the caller (never None)
        path: Which route the pipeline took
        original_size: Input size in bytes
        final_size: Output size in bytes
        hints: Hints extracted from the locator, if that stage ran
        candidates: Ranked candidates, if discovery ran
        stages: Names of the stages that completed, in order
        error: Message of the failure that triggered the fallback, if any
        elapsed: Wall time in seconds

    """

    html: str
    path: ReductionPath
    original_size: int = 0
    final_size: int = 0
    hints: LocatorHints | None = None
    candidates: list[CandidateSummary] = field(default_factory=list)
    stages: list[str] = field(default_factory=list)
    error: str | None = None
    elapsed: float = 0.0

    @property
    def reduction_ratio(self) -> float:
        """Percentage of the input removed (0 when nothing was removed)."""
        if self.original_size <= 0:
            return 0.0
        return max(0.0, (1 - self.final_size / self.original_size) * 100)


class LocatorAnalysisResult(BaseModel):
    """Structured model answer for a failed locator."""

    primary_id: str | None = Field(default=None, description='Best ID-based locator if available (By.id)')
    primary_name: str | None = Field(default=None, description='Best name-based locator if available (By.name)')
    primary_class_name: str | None = Field(default=None, description='Best class name locator (By.className)')
    primary_tag_name: str | None = Field(default=None, description='Best tag name for group selection')
    primary_link_text: str | None = Field(default=None, description='Best link text for hyperlinks')
    primary_partial_link_text: str | None = Field(default=None, description='Best partial link text')
    primary_css_selector: str | None = Field(default=None, description='Most reliable CSS selector found')
    alternative_css_selectors: list[str] = Field(
        default_factory=list, description='Alternative CSS selectors in order of reliability'
    )
    primary_xpath: str | None = Field(default=None, description='Best XPath selector found')
    alternative_xpaths: list[str] = Field(default_factory=list, description='Alternative XPaths in order of reliability')
    confidence: int = Field(default=0, ge=0, le=100, description='Confidence the element was identified, 0-100')
    explanation: str = Field(default='', description='Which locator strategy is recommended and why')
    element_found: bool = Field(default=False, description='Whether the element was found in the HTML')
    recommended_locator_type: str | None = Field(
        default=None,
        description='One of ID, NAME, CLASS_NAME, TAG_NAME, LINK_TEXT, PARTIAL_LINK_TEXT, CSS_SELECTOR, XPATH',
    )
    recommended_locator: str | None = Field(default=None, description='Locator string for the recommended type')
    warnings: str | None = Field(default=None, description='Caveats such as brittle XPath or dynamic IDs')


class XPathAnalysisResult(BaseModel):
    """Structured model answer when only a description of the element is known."""

    primary_xpath: str | None = Field(default=None, description='The best and most reliable XPath selector found')
    alternative_xpaths: list[str] = Field(
        default_factory=list, description='Alternative XPath selectors in order of reliability'
    )
    primary_css_selector: str | None = Field(default=None, description='The best CSS selector for the element')
    alternative_css_selectors: list[str] = Field(default_factory=list, description='Alternative CSS selectors')
    confidence: int = Field(default=0, ge=0, le=100, description='Confidence the element was identified, 0-100')
    explanation: str = Field(
        default='', description='How the element was identified and why the primary selector is recommended'
    )
    element_found: bool = Field(default=False, description='Whether the element was found in the HTML')
    warnings: str | None = Field(default=None, description='Caveats or notes about the selectors')
