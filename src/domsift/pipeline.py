"""
pipeline.py
===========
Orchestrates markup reduction for a failing locator.

Stages:
    1. Early size check  - small pages pass through (minified only)
    2. Locator parsing   - extract semantic hints from the XPath/CSS locator
    3. Noise removal     - drop scripts, styles, hidden elements, comments
    4. Candidate search  - multi-tier matching against the parsed document
    5. Pruning           - keep only the context around the candidates
    6. Minification      - final size reduction

A missing locator or any failure in stages 2-5 takes the fallback path
(noise removal + safe truncation). The pipeline always returns markup.
"""

import time

import logfire
from lxml import etree
from rich.console import Console

from domsift.candidates import CandidateDiscovery, CandidateFinder
from domsift.cleaning import HTMLCleaner, HTMLMinifier, Minifier, no_match_response, truncate_safely
from domsift.config import ProcessingConfig
from domsift.document import MarkupDocument
from domsift.exceptions import ReductionError
from domsift.hints import HintExtractor, LocatorHintExtractor
from domsift.models import CandidateSummary, ReductionResult, ScoredCandidate
from domsift.pruning import Pruner, TreePruner


def byte_size(html: str | None) -> int:
    """Size of markup in UTF-8 bytes."""
    return len(html.encode('utf-8')) if html else 0


class ReductionPipeline:
    """Selector-guided markup reduction.

    Every stage is swappable through the constructor; the defaults are the
    tiered strategies in this package.

    Attributes:
        config: Processing limits and scores shared by the default stages
        extractor: Locator hint extraction stage
        finder: Candidate discovery stage
        pruner: Tree pruning stage
        cleaner: Noise removal used before discovery and on the fallback path
        minifier: Final size-reduction step
        console: Optional Rich console for progress lines

    """

    def __init__(
        self,
        config: ProcessingConfig | None = None,
        extractor: HintExtractor | None = None,
        finder: CandidateFinder | None = None,
        pruner: Pruner | None = None,
        cleaner: HTMLCleaner | None = None,
        minifier: Minifier | None = None,
        console: Console | None = None,
    ):
        self.config = config or ProcessingConfig()
        self.extractor = extractor or LocatorHintExtractor()
        self.finder = finder or CandidateDiscovery(self.config)
        self.pruner = pruner or TreePruner(self.config)
        self.cleaner = cleaner or HTMLCleaner()
        self.minifier = minifier or HTMLMinifier()
        self.console = console

    def needs_preprocessing(self, html: str | None) -> bool:
        """Whether ``html`` is large enough to go through discovery and pruning."""
        return bool(html and html.strip()) and byte_size(html) > self.config.early_return_size

    def preprocess_html(self, html: str, locator: str | None, page_url: str | None = None) -> str:
        """Shortcut for ``process(...).html``."""
        return self.process(html, locator, page_url).html

    @logfire.instrument('reduce_markup', extract_args=False)
    def process(self, html: str, locator: str | None, page_url: str | None = None) -> ReductionResult:
        """Reduce ``html`` to the context needed to reason about ``locator``.

        Args:
            html: Page markup, any size
            locator: The failing XPath/CSS locator (may be empty)
            page_url: Page URL, only carried into logs

        Returns:
            ReductionResult whose ``html`` is never None.

        """
        started = time.perf_counter()

        if not html or not html.strip():
            return self._finish(ReductionResult(html=html or '', path='empty'), started)

        original_size = byte_size(html)
        logfire.info(
            'Starting markup reduction', size=original_size, locator=locator, page_url=page_url or ''
        )

        passthrough = self._early_size_check(html, original_size)
        if passthrough is not None:
            return self._finish(passthrough, started)

        if not locator or not locator.strip():
            logfire.warn('Empty or missing locator, using fallback processing')
            return self._finish(self._fallback(html, original_size, error='missing locator'), started)

        result = ReductionResult(html='', path='pruned', original_size=original_size, stages=['early_size_check'])
        try:
            self._reduce(html, locator, result)
        except ReductionError as e:
            logfire.warn('Reduction stage failed, using fallback', stage=e.stage, reason=e.reason)
            self._print(f'[yellow]  → {e}, using fallback[/yellow]')
            return self._finish(self._fallback_after(html, result, str(e)), started)
        except Exception as e:
            logfire.exception('Markup reduction failed, using fallback', error=str(e))
            self._print(f'[red]  ✗ Reduction failed ({e}), using fallback[/red]')
            return self._finish(self._fallback_after(html, result, str(e)), started)

        return self._finish(result, started)

    @logfire.instrument('reduce_markup_without_locator', extract_args=False)
    def process_without_locator(self, html: str, page_url: str | None = None) -> ReductionResult:
        """Reduce ``html`` when only a description of the target element is known.

        With no locator there is nothing to anchor pruning on, so pages above
        the early-return threshold go straight through noise removal,
        minification and safe truncation.

        Args:
            html: Page markup, any size
            page_url: Page URL, only carried into logs

        Returns:
            ReductionResult with path 'empty', 'passthrough' or 'fallback'.

        """
        started = time.perf_counter()

        if not html or not html.strip():
            return self._finish(ReductionResult(html=html or '', path='empty'), started)

        original_size = byte_size(html)
        logfire.info('Starting markup reduction without locator', size=original_size, page_url=page_url or '')

        passthrough = self._early_size_check(html, original_size)
        if passthrough is not None:
            return self._finish(passthrough, started)

        return self._finish(self._fallback(html, original_size), started)

    # ============================================================================
    # Private helper methods
    # ============================================================================

    def _early_size_check(self, html: str, original_size: int) -> ReductionResult | None:
        """Minified passthrough result for small pages, None otherwise."""
        with logfire.span('early_size_check', size=original_size, threshold=self.config.early_return_size):
            if original_size > self.config.early_return_size:
                return None

            self._print(f'  → Markup already small ({original_size:,} bytes), passing through')
            return ReductionResult(
                html=self.minifier.minify(html),
                path='passthrough',
                original_size=original_size,
                stages=['early_size_check', 'minify'],
            )

    def _reduce(self, html: str, locator: str, result: ReductionResult) -> None:
        """Run stages 2-6, filling ``result`` as each stage completes."""
        with logfire.span('parse_locator', locator=locator):
            hints = self.extractor.parse(locator)
        result.hints = hints
        result.stages.append('parse_locator')
        logfire.debug(
            'Parsed hints',
            kind=hints.kind.value,
            ids=list(hints.ids),
            classes=list(hints.classes),
            tags=list(hints.tag_names),
            text=hints.text,
        )

        with logfire.span('remove_noise'):
            cleaned = self.cleaner.remove_noise(html)
            try:
                document = MarkupDocument.from_html(cleaned)
            except (etree.ParserError, ValueError) as e:
                raise ReductionError('remove_noise', f'nothing left to parse after cleaning ({e})') from e
        result.stages.append('remove_noise')

        with logfire.span('find_candidates', kind=hints.kind.value):
            candidates = self.finder.find_candidates(document, hints)
        result.candidates = [self._summarize(c) for c in candidates]
        result.stages.append('find_candidates')
        logfire.info('Found {count} candidate elements', count=len(candidates))

        if not candidates:
            logfire.warn('No candidates found, returning minimal context', locator=locator)
            self._print('[yellow]  → No candidates found[/yellow]')
            result.path = 'no_match'
            result.html = no_match_response(locator)
            return

        for rank, candidate in enumerate(candidates[:3], 1):
            logfire.debug(
                'Candidate {rank}',
                rank=rank,
                score=candidate.score,
                reason=candidate.reason,
                element=candidate.describe(),
            )

        with logfire.span('prune_tree', candidates=len(candidates)):
            pruned_html = self.pruner.prune(document, candidates).to_html()
        result.stages.append('prune_tree')
        logfire.debug('Pruned markup', size=byte_size(pruned_html))

        with logfire.span('minify'):
            output = self.minifier.minify(pruned_html)
        result.stages.append('minify')

        if byte_size(output) > self.config.max_output_size:
            output = truncate_safely(output, self.config.max_output_size)
            result.stages.append('truncate')

        self._print(f'  → Kept {len(candidates)} candidate(s), best: {candidates[0].describe()}')
        result.html = output

    def _fallback(self, html: str, original_size: int, error: str | None = None) -> ReductionResult:
        """Strip noise and truncate at a tag boundary."""
        with logfire.span('fallback', reason=error or ''):
            stages = ['fallback']
            try:
                cleaned = self.cleaner.remove_noise(html)
                if not cleaned.strip():
                    # Cleaning removed everything; hand back the raw markup instead
                    cleaned = html
                output = truncate_safely(self.minifier.minify(cleaned), self.config.max_output_size)
            except Exception as e:
                logfire.error('Fallback processing failed', error=str(e))
                output = truncate_safely(html, self.config.max_output_size)
                stages.append('raw_truncate')

        return ReductionResult(
            html=output,
            path='fallback',
            original_size=original_size,
            stages=stages,
            error=error,
        )

    def _fallback_after(self, html: str, partial: ReductionResult, error: str) -> ReductionResult:
        """Fallback that keeps whatever the failed run already learned."""
        fallback = self._fallback(html, partial.original_size, error=error)
        fallback.hints = partial.hints
        fallback.candidates = partial.candidates
        fallback.stages = partial.stages + fallback.stages
        return fallback

    def _finish(self, result: ReductionResult, started: float) -> ReductionResult:
        result.final_size = byte_size(result.html)
        result.elapsed = time.perf_counter() - started
        if result.path != 'empty':
            logfire.info(
                'Reduction complete',
                path=result.path,
                original=result.original_size,
                final=result.final_size,
                reduction=f'{result.reduction_ratio:.1f}%',
                elapsed_ms=round(result.elapsed * 1000, 1),
            )
            self._print(
                f'  → {result.path}: {result.original_size:,} → {result.final_size:,} bytes '
                f'({result.reduction_ratio:.0f}% savings)'
            )
        return result

    @staticmethod
    def _summarize(candidate: ScoredCandidate) -> CandidateSummary:
        return CandidateSummary(
            node_id=candidate.node_id,
            label=candidate.describe(),
            score=candidate.score,
            reason=candidate.reason,
        )

    def _print(self, message: str) -> None:
        if self.console:
            self.console.print(message)


def preprocess_html(html: str, locator: str | None, config: ProcessingConfig | None = None) -> str:
    """Reduce markup with a default pipeline.

    Args:
        html: Page markup
        locator: The failing locator
        config: Optional processing configuration

    Returns:
        The reduced markup.

    """
    return ReductionPipeline(config).process(html, locator).html
