"""
candidates.py
=============
Multi-tier candidate discovery.

Given a parsed document and locator hints, finds the elements that most
plausibly correspond to the locator's intent:

    direct  - evaluate the locator itself (short-circuits on a few matches)
    tier 1  - ids and attributes that resolve to exactly one element
    tier 2  - semantic attributes matched by substring
    tier 3  - tag/class structure, boosted by matching attributes
    tier 4  - own-text similarity
"""

from typing import Protocol

import logfire

from domsift.config import ProcessingConfig
from domsift.document import MarkupDocument
from domsift.exceptions import LocatorSyntaxError
from domsift.models import LocatorHints, LocatorKind, ScoredCandidate

SEMANTIC_ATTRIBUTES = ('aria-label', 'placeholder', 'name', 'title', 'alt')


class CandidateFinder(Protocol):
    """Protocol for candidate discovery strategies."""

    def find_candidates(self, document: MarkupDocument, hints: LocatorHints) -> list[ScoredCandidate]:
        """Return ranked candidates, at most the configured maximum."""
        ...


class CandidateDiscovery:
    """Finds candidate elements using a tiered, weighted matching strategy.

    Attributes:
        config: Scores, boosts and limits used while ranking

    """

    def __init__(self, config: ProcessingConfig | None = None):
        self.config = config or ProcessingConfig()

    @logfire.instrument('find_candidates', extract_args=False)
    def find_candidates(self, document: MarkupDocument, hints: LocatorHints) -> list[ScoredCandidate]:
        """Find and rank candidates for the hinted locator.

        Args:
            document: Parsed document to search
            hints: Hints extracted from the failing locator

        Returns:
            Candidates sorted by descending score (stable), at most
            ``config.max_candidates`` entries. Empty only when nothing matched.

        """
        found = self._direct_match(document, hints)

        if 0 < len(found) <= self.config.direct_match_confidence_limit:
            logfire.debug('Returning direct matches', count=len(found))
            return self._limit(found)

        found.extend(self._tier_one(document, hints))
        found.extend(self._tier_two(document, hints))
        found.extend(self._tier_three(document, hints))
        if hints.text:
            found.extend(self._tier_four(document, hints))

        ranked = self._deduplicate_and_sort(found)
        logfire.debug('Found unique candidates', total=len(found), unique=len(ranked))
        return self._limit(ranked)

    # ------------------------------------------------------------------
    # Tiers
    # ------------------------------------------------------------------

    def _direct_match(self, document: MarkupDocument, hints: LocatorHints) -> list[ScoredCandidate]:
        """Evaluate the raw locator with its own query language."""
        if hints.kind is LocatorKind.XPATH:
            select, label = document.select_xpath, 'XPath'
        elif hints.kind is LocatorKind.CSS_SELECTOR:
            select, label = document.select_css, 'CSS'
        else:
            return []

        try:
            matches = select(hints.raw_locator)
        except LocatorSyntaxError as e:
            logfire.debug('Direct {label} execution failed', label=label, error=e.reason)
            return []

        logfire.debug('Direct {label} execution found matches', label=label, count=len(matches))
        return [self._scored(document, node, self.config.tier_one_score, 'direct match') for node in matches]

    def _tier_one(self, document: MarkupDocument, hints: LocatorHints) -> list[ScoredCandidate]:
        """Identity matches: ids, and attributes that single out one element."""
        candidates = []

        for element_id in hints.ids:
            node = document.find_by_id(element_id)
            if node is not None:
                candidates.append(self._scored(document, node, self.config.tier_one_score, f'ID match: {element_id}'))

        for name, value in hints.attributes.items():
            # None (a bare [name] hint) only asks for the attribute to be present
            matches = document.find_by_attribute(name, value)
            if len(matches) == 1:
                candidates.append(
                    self._scored(document, matches[0], self.config.tier_one_score, f'Unique attribute: {name}')
                )

        logfire.debug('Tier 1 found {count} candidates', count=len(candidates))
        return candidates

    def _tier_two(self, document: MarkupDocument, hints: LocatorHints) -> list[ScoredCandidate]:
        """Semantic attributes matched by substring."""
        candidates = []

        for name, value in hints.attributes.items():
            if name not in SEMANTIC_ATTRIBUTES or not value:
                continue
            for node in document.find_by_attribute(name, value, contains=True):
                candidates.append(self._scored(document, node, self.config.tier_two_score, f'Semantic attr: {name}'))

        logfire.debug('Tier 2 found {count} candidates', count=len(candidates))
        return candidates

    def _tier_three(self, document: MarkupDocument, hints: LocatorHints) -> list[ScoredCandidate]:
        """Structural matches: tag+class, then class only, then tag only."""
        candidates = []

        for tag in hints.tag_names:
            for css_class in hints.classes:
                for node in document.find_by_tag_and_class(tag, css_class):
                    candidates.append(self._structural(document, node, hints, f'Tag+Class: {tag}.{css_class}'))

        if not candidates:
            for css_class in hints.classes:
                for node in document.find_by_tag_and_class(css_class=css_class):
                    candidates.append(self._structural(document, node, hints, f'Class: {css_class}'))

        if not candidates:
            for tag in hints.tag_names:
                for node in document.find_by_tag_and_class(tag=tag):
                    candidates.append(self._structural(document, node, hints, f'Tag: {tag}'))

        logfire.debug('Tier 3 found {count} candidates', count=len(candidates))
        return candidates

    def _tier_four(self, document: MarkupDocument, hints: LocatorHints) -> list[ScoredCandidate]:
        """Own-text similarity against the hinted literal text."""
        target = hints.text or ''
        candidates = []

        for node in document.iter_nodes():
            score = self.text_similarity(target, document.own_text(node))
            if score > 0:
                candidates.append(self._scored(document, node, score, 'Text similarity'))

        logfire.debug('Tier 4 found {count} candidates', count=len(candidates))
        return candidates

    # ------------------------------------------------------------------
    # Scoring
    # ------------------------------------------------------------------

    def structural_score(self, document: MarkupDocument, node, hints: LocatorHints) -> int:
        """Tier 3 score for ``node``, capped just below the tier 1 score."""
        score = self.config.tier_three_score

        for name, value in hints.attributes.items():
            if value is not None and document.attribute(node, name) == value:
                score += self.config.attribute_match_boost

        node_id_attr = node.get('id')
        if node_id_attr and node_id_attr in hints.ids:
            score += self.config.id_match_boost

        node_classes = document.classes(node)
        for css_class in hints.classes:
            if css_class in node_classes:
                score += self.config.class_match_boost

        return min(score, self.config.tier_one_score - 1)

    def text_similarity(self, target: str, text: str) -> int:
        """Score how well a node's own text matches the target text.

        Returns:
            tier_four_score + exact_match_bonus for an exact match,
            contains_match_score when one contains the other,
            tier_four_score - case_insensitive_match_penalty when one contains
            the other ignoring case, otherwise 0.

        """
        if not target or not text:
            return 0

        if text == target:
            return self.config.tier_four_score + self.config.exact_match_bonus
        if target in text or text in target:
            return self.config.contains_match_score

        target_folded, text_folded = target.casefold(), text.casefold()
        if target_folded in text_folded or text_folded in target_folded:
            return self.config.tier_four_score - self.config.case_insensitive_match_penalty

        return 0

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _structural(self, document: MarkupDocument, node, hints: LocatorHints, reason: str) -> ScoredCandidate:
        return self._scored(document, node, self.structural_score(document, node, hints), reason)

    @staticmethod
    def _scored(document: MarkupDocument, node, score: int, reason: str) -> ScoredCandidate:
        return ScoredCandidate(node=node, node_id=document.node_id(node), score=score, reason=reason)

    @staticmethod
    def _deduplicate_and_sort(candidates: list[ScoredCandidate]) -> list[ScoredCandidate]:
        """Keep the best score per node, then sort by score keeping discovery order on ties."""
        best: dict[int, ScoredCandidate] = {}
        for candidate in candidates:
            current = best.get(candidate.node_id)
            if current is None or candidate.score > current.score:
                best[candidate.node_id] = candidate

        # dict preserves the first-discovery position of each node and sorted() is stable
        return sorted(best.values(), key=lambda c: c.score, reverse=True)

    def _limit(self, candidates: list[ScoredCandidate]) -> list[ScoredCandidate]:
        if len(candidates) <= self.config.max_candidates:
            return candidates
        logfire.debug('Limiting candidates', found=len(candidates), limit=self.config.max_candidates)
        return candidates[: self.config.max_candidates]
