"""
analyzer.py
===========
Model-backed locator suggestions.

Two entry points share one agent and the query tools in domsift.query:
    - analyze: repair a failing locator. The page is reduced around the
      locator's candidates before the model reads it.
    - find_element: find selectors for an element known only by a
      description. The page is cleaned and truncated, not pruned.

In both cases the model checks its ideas against the full (noise-cleaned)
page through the query tools.
"""

from typing import TypeVar, cast

import logfire
from lxml import etree
from pydantic import BaseModel
from pydantic_ai import Agent, RunContext
from pydantic_ai.models import Model
from rich.console import Console

from domsift import query
from domsift.exceptions import LLMGenerationError
from domsift.llm_config import LLMConfig, create_agent
from domsift.models import LocatorAnalysisResult, ReductionResult, XPathAnalysisResult
from domsift.pipeline import ReductionPipeline
from domsift.query import DocumentQueryContext
from domsift.utils.prompts import load_prompt
from domsift.utils.retry import get_retryer, retry_reporter

SYSTEM_PROMPT_NAME = 'locator_analysis'

AnalysisT = TypeVar('AnalysisT', bound=BaseModel)


def validate_request(html: str | None, locator: str | None) -> list[str]:
    """Check an analysis request before any work is done.

    Args:
        html: Page markup
        locator: The failing locator

    Returns:
        Error messages; empty when the request is valid.

    """
    errors = []
    if not html or not html.strip():
        errors.append('HTML content is required')
    if not locator or not locator.strip():
        errors.append('Locator is required')
    return errors


def validate_find_request(html: str | None, element_description: str | None) -> list[str]:
    """Same checks as validate_request, for a description-only selector search."""
    errors = []
    if not html or not html.strip():
        errors.append('HTML content is required')
    if not element_description or not element_description.strip():
        errors.append('Element description is required')
    return errors


# ============================================================================
# Agent tools
# ============================================================================


def find_by_id(ctx: RunContext[DocumentQueryContext], element_id: str) -> str:
    """Find an element by its id attribute. Answers 'Not found' when there is none.

    Args:
        element_id: The element id to look up

    """
    return query.find_by_id(ctx.deps, element_id)


def find_by_css(ctx: RunContext[DocumentQueryContext], selector: str) -> str:
    """Evaluate a CSS selector against the page and list the matching elements.

    Args:
        selector: CSS selector to evaluate

    """
    return query.find_by_css(ctx.deps, selector)


def find_by_xpath(ctx: RunContext[DocumentQueryContext], expression: str) -> str:
    """Evaluate an XPath expression against the page and list the matching elements.

    Args:
        expression: XPath expression to evaluate

    """
    return query.find_by_xpath(ctx.deps, expression)


def find_by_text(ctx: RunContext[DocumentQueryContext], text: str) -> str:
    """List elements whose own text contains the given text (case-insensitive).

    Args:
        text: Visible text to search for

    """
    return query.find_by_text(ctx.deps, text)


def list_interactive_elements(ctx: RunContext[DocumentQueryContext]) -> str:
    """List inputs, buttons, links, selects and textareas with their ids, names and classes (first 50)."""
    return query.list_interactive_elements(ctx.deps)


def find_by_attribute(ctx: RunContext[DocumentQueryContext], name: str, value: str | None = None) -> str:
    """List elements carrying an attribute such as data-testid, aria-label or role.

    Args:
        name: Attribute name
        value: Exact attribute value; omit to match any value

    """
    return query.find_by_attribute(ctx.deps, name, value)


QUERY_TOOLS = [
    find_by_xpath,
    find_by_css,
    find_by_id,
    list_interactive_elements,
    find_by_text,
    find_by_attribute,
]


def build_agent(
    model: Model | str, system_prompt: str | None = None
) -> Agent[DocumentQueryContext, LocatorAnalysisResult]:
    """Create the analysis agent around any pydantic-ai model.

    Args:
        model: Model instance or pydantic-ai model name (e.g. 'test')
        system_prompt: Overrides the packaged prompt

    Returns:
        Agent with the query tools registered and a LocatorAnalysisResult output.

    """
    return Agent(
        model,
        output_type=LocatorAnalysisResult,
        deps_type=DocumentQueryContext,
        system_prompt=system_prompt or load_prompt(SYSTEM_PROMPT_NAME),
        tools=QUERY_TOOLS,
    )


# ============================================================================
# Analyzer
# ============================================================================


class LocatorAnalyzer:
    """Suggests working locators for a failing locator or a described element.

    Attributes:
        agent: pydantic-ai agent; each run picks its output model
        pipeline: Reduction pipeline applied before the model sees the page
        console: Rich console for progress lines
        max_attempts: Model call attempts before giving up
        model_id: 'provider:model_name' of the configured model

    """

    def __init__(
        self,
        llm_config: LLMConfig | None = None,
        agent: Agent | None = None,
        pipeline: ReductionPipeline | None = None,
        console: Console | None = None,
        max_attempts: int = 2,
    ):
        """Initialize the analyzer with an LLM configuration or an agent.

        Args:
            llm_config: Configuration for the LLM provider and model
            agent: Prebuilt agent (see build_agent); wins over llm_config
            pipeline: Reduction pipeline. Defaults to ReductionPipeline(console=console).
            console: Rich console for progress lines
            max_attempts: Model call attempts. Defaults to 2.

        Raises:
            ValueError: Must provide llm_config or an agent.

        """
        self.console = console or Console()
        self.pipeline = pipeline or ReductionPipeline(console=console)
        self.max_attempts = max_attempts

        if agent is not None:
            self.agent: Agent[DocumentQueryContext, LocatorAnalysisResult] = agent
            self.model_id = 'custom-agent'
        elif llm_config is not None:
            self.agent = create_agent(
                llm_config,
                load_prompt(SYSTEM_PROMPT_NAME),
                output_type=LocatorAnalysisResult,
                deps_type=DocumentQueryContext,
                tools=QUERY_TOOLS,
            )
            self.model_id = llm_config.model_id
        else:
            raise ValueError('Either provide llm_config or agent parameter')

    @logfire.instrument('analyze_locator', extract_args=False)
    def analyze(
        self, html: str, locator: str, page_url: str = '', element_description: str = ''
    ) -> LocatorAnalysisResult | None:
        """Reduce the page and ask the model for replacement locators.

        Args:
            html: Full page markup
            locator: The failing locator
            page_url: Page URL, passed to the model as context
            element_description: What the locator was meant to find, if known

        Returns:
            The model's analysis, or None when the request is invalid or the model failed.

        """
        errors = validate_request(html, locator)
        if errors:
            logfire.warn('Invalid analysis request', errors=errors)
            self.console.print(f'[red]{"; ".join(errors)}[/red]')
            return None

        logfire.info('Starting locator analysis', locator=locator, page_url=page_url, model=self.model_id)

        reduction = self.pipeline.process(html, locator, page_url)
        prompt = build_prompt(locator, reduction, page_url, element_description)

        result = self._query_page(html, prompt, LocatorAnalysisResult, locator=locator, page_url=page_url)
        if result is None:
            return None

        logfire.info(
            'Locator analysis complete',
            element_found=result.element_found,
            recommended=result.recommended_locator,
            recommended_type=result.recommended_locator_type,
            confidence=result.confidence,
        )
        self.console.print(f'[green]  ✓ Analysis complete ({result.confidence}% confidence)[/green]')
        return result

    @logfire.instrument('find_element', extract_args=False)
    def find_element(self, html: str, element_description: str, page_url: str = '') -> XPathAnalysisResult | None:
        """Ask the model for selectors of an element known only by its description.

        There is no locator to guide pruning, so the page is only cleaned,
        minified and truncated before the model sees it. The query tools still
        run against the full cleaned page.

        Args:
            html: Full page markup
            element_description: What to find, e.g. 'search box' or 'login button'
            page_url: Page URL, passed to the model as context

        Returns:
            XPath and CSS suggestions, or None when the request is invalid or the model failed.

        """
        errors = validate_find_request(html, element_description)
        if errors:
            logfire.warn('Invalid selector search request', errors=errors)
            self.console.print(f'[red]{"; ".join(errors)}[/red]')
            return None

        logfire.info(
            'Starting selector search', description=element_description, page_url=page_url, model=self.model_id
        )

        reduction = self.pipeline.process_without_locator(html, page_url)
        prompt = build_find_prompt(element_description, reduction, page_url)

        result = self._query_page(html, prompt, XPathAnalysisResult, page_url=page_url)
        if result is None:
            return None

        logfire.info(
            'Selector search complete',
            element_found=result.element_found,
            primary_xpath=result.primary_xpath,
            confidence=result.confidence,
        )
        self.console.print(f'[green]  ✓ Selector search complete ({result.confidence}% confidence)[/green]')
        return result

    # ============================================================================
    # Private helper methods
    # ============================================================================

    def _query_page(
        self, html: str, prompt: str, output_type: type[AnalysisT], locator: str = '', page_url: str = ''
    ) -> AnalysisT | None:
        """Open a query context on ``html`` and run the agent inside it.

        Returns:
            The model output, or None when the page could not be parsed or every attempt failed.

        """
        try:
            context = DocumentQueryContext.from_html(
                html,
                locator=locator,
                page_url=page_url,
                max_results=self.pipeline.config.max_query_results,
                cleaner=self.pipeline.cleaner,
            )
        except (etree.ParserError, ValueError) as e:
            logfire.error('Could not build query context', error=str(e))
            self.console.print(f'[red]  ✗ Could not parse the page: {e}[/red]')
            return None

        with context:
            try:
                return self._run_agent(prompt, context, output_type)
            except LLMGenerationError as e:
                logfire.error('Model request failed', error=str(e), model=self.model_id)
                self.console.print(f'[red]  ✗ {e}[/red]')
                return None

    @logfire.instrument('llm_analysis_request', extract_args=False)
    def _run_agent(self, prompt: str, context: DocumentQueryContext, output_type: type[AnalysisT]) -> AnalysisT:
        """Run the agent with retries.

        Raises:
            LLMGenerationError: If every attempt failed.

        """
        retryer = get_retryer(
            max_attempts=self.max_attempts,
            log_callback=retry_reporter('analysis', self.max_attempts, self.console),
        )

        try:
            for attempt in retryer:
                with attempt:
                    run = self.agent.run_sync(prompt, deps=context, output_type=output_type)
        except Exception as e:
            raise LLMGenerationError(f'Model request failed after {self.max_attempts} attempt(s): {e}') from e

        return cast(AnalysisT, run.output)


def build_prompt(locator: str, reduction: ReductionResult, page_url: str = '', element_description: str = '') -> str:
    """User prompt for one analysis request.

    Args:
        locator: The failing locator
        reduction: Output of the reduction pipeline for the page
        page_url: Page URL
        element_description: What the locator was meant to find

    Returns:
        Prompt text containing the reduced markup.

    """
    lines = [
        'A browser test failed with this locator:',
        f'Locator: {locator}',
        f'Element description: {element_description or "not provided"}',
        f'Page URL: {page_url or "not provided"}',
    ]

    if reduction.candidates:
        lines.append('')
        lines.append('Likely candidates found while reducing the page:')
        lines.extend(f'- {c.label} (score {c.score}, {c.reason})' for c in reduction.candidates)

    lines.extend(
        [
            '',
            f'Page markup ({reduction.path}, {reduction.final_size:,} of {reduction.original_size:,} bytes):',
            '```html',
            reduction.html,
            '```',
            '',
            'Use the tools to find out why the locator failed, find the intended element, '
            'test your alternatives, and return the analysis.',
        ]
    )
    return '\n'.join(lines)


def format_analysis(result: LocatorAnalysisResult) -> str:
    """Render an analysis as plain text for logs and the console.

    Args:
        result: The model's analysis

    Returns:
        Multi-line summary; locator types the model left empty are omitted.

    """
    lines = [
        '=== Locator Analysis Result ===',
        f'Recommended: {result.recommended_locator_type} = {result.recommended_locator}',
        f'Confidence: {result.confidence}%',
        f'Element found: {"yes" if result.element_found else "no"}',
    ]

    strategies = [
        ('By.id', result.primary_id),
        ('By.name', result.primary_name),
        ('By.className', result.primary_class_name),
        ('By.tagName', result.primary_tag_name),
        ('By.linkText', result.primary_link_text),
        ('By.partialLinkText', result.primary_partial_link_text),
        ('By.cssSelector', result.primary_css_selector),
        ('By.xpath', result.primary_xpath),
    ]
    lines.extend(f'{label}: {value}' for label, value in strategies if value)

    if result.alternative_css_selectors:
        lines.append(f'Alternative CSS: {", ".join(result.alternative_css_selectors)}')
    if result.alternative_xpaths:
        lines.append(f'Alternative XPath: {", ".join(result.alternative_xpaths)}')

    lines.append('')
    lines.append(f'Explanation: {result.explanation}')
    if result.warnings:
        lines.append(f'Warnings: {result.warnings}')

    return '\n'.join(lines)


def build_find_prompt(element_description: str, reduction: ReductionResult, page_url: str = '') -> str:
    """User prompt for a description-only selector search."""
    return '\n'.join(
        [
            'Locate this element on the page:',
            f'Element description: {element_description}',
            f'Page URL: {page_url or "not provided"}',
            '',
            f'Page markup ({reduction.path}, {reduction.final_size:,} of {reduction.original_size:,} bytes):',
            '```html',
            reduction.html,
            '```',
            '',
            'Use the tools to find the element, test each selector you suggest, and return '
            'the best XPath and CSS selector with alternatives in order of reliability.',
        ]
    )


def format_selectors(result: XPathAnalysisResult) -> str:
    """Render a selector search result as plain text."""
    lines = [
        '=== Selector Search Result ===',
        f'Primary XPath: {result.primary_xpath or "-"}',
        f'Primary CSS: {result.primary_css_selector or "-"}',
        f'Confidence: {result.confidence}%',
        f'Element found: {"yes" if result.element_found else "no"}',
    ]
    if result.alternative_xpaths:
        lines.append(f'Alternative XPath: {", ".join(result.alternative_xpaths)}')
    if result.alternative_css_selectors:
        lines.append(f'Alternative CSS: {", ".join(result.alternative_css_selectors)}')

    lines.append('')
    lines.append(f'Explanation: {result.explanation}')
    if result.warnings:
        lines.append(f'Warnings: {result.warnings}')

    return '\n'.join(lines)
