"""
pruning.py
==========
Prunes a document down to the context around its candidates.

A preservation set of node ids is built from each candidate (the candidate,
a bounded ancestor chain, a sibling window and a bounded descendant subtree,
plus the <html>/<body> anchors, which are kept whenever the source has them),
then a fresh document is built containing only preserved nodes in their
original order.
"""

import copy
from typing import Protocol

import logfire
import lxml.html
from lxml.html import HtmlElement

from domsift.config import ProcessingConfig
from domsift.document import BODY_TAG, HEAD_TAG, ROOT_TAG, TITLE_TAG, MarkupDocument
from domsift.models import ScoredCandidate

STRUCTURAL_ANCHORS = frozenset({ROOT_TAG, BODY_TAG})

NO_MATCH_MESSAGE = 'No matching elements found for the given locator.'


class Pruner(Protocol):
    """Protocol for tree pruning strategies."""

    def prune(self, document: MarkupDocument, candidates: list[ScoredCandidate]) -> MarkupDocument:
        """Return a new, smaller document built around ``candidates``."""
        ...


class TreePruner:
    """Keeps candidates and bounded context, drops everything else.

    Attributes:
        config: Ancestor, sibling and descendant bounds

    """

    def __init__(self, config: ProcessingConfig | None = None):
        self.config = config or ProcessingConfig()

    @logfire.instrument('prune_tree', extract_args=False)
    def prune(self, document: MarkupDocument, candidates: list[ScoredCandidate]) -> MarkupDocument:
        """Build the pruned document.

        Args:
            document: Source document (left untouched)
            candidates: Ranked candidates from discovery

        Returns:
            A new MarkupDocument. When ``candidates`` is empty this is a minimal
            placeholder document with a single informational paragraph.

        """
        if not candidates:
            logfire.warn('No candidates provided for pruning, returning minimal document')
            return self.placeholder_document()

        preserved = self.build_preservation_set(document, candidates)
        logfire.debug('Preservation set built', candidates=len(candidates), preserved=len(preserved))

        return self._rebuild(document, preserved)

    # ------------------------------------------------------------------
    # Preservation set
    # ------------------------------------------------------------------

    def build_preservation_set(self, document: MarkupDocument, candidates: list[ScoredCandidate]) -> set[int]:
        """Collect the node ids that must survive pruning."""
        preserved: set[int] = set()

        for candidate in candidates:
            node = candidate.node
            preserved.add(document.node_id(node))
            self._add_ancestors(document, node, preserved)
            self._add_siblings(document, node, preserved)
            self._add_descendants(document, node, preserved, depth=0)

        # The content container survives even when every candidate sits in <head>
        body = document.body
        if body is not None:
            preserved.add(document.node_id(body))

        return preserved

    def _add_ancestors(self, document: MarkupDocument, node: HtmlElement, preserved: set[int]) -> None:
        for depth, ancestor in enumerate(document.ancestors(node)):
            # Anchors are kept at any depth so the rebuilt tree stays well-formed
            if depth < self.config.max_parent_depth or document.tag(ancestor) in STRUCTURAL_ANCHORS:
                preserved.add(document.node_id(ancestor))

    def _add_siblings(self, document: MarkupDocument, node: HtmlElement, preserved: set[int]) -> None:
        parent = document.parent(node)
        if parent is None:
            return

        siblings = document.children(parent)
        index = siblings.index(node)
        limit = self.config.max_sibling_count

        for sibling in siblings[max(0, index - limit) : index]:
            preserved.add(document.node_id(sibling))
        for sibling in siblings[index + 1 : index + 1 + limit]:
            preserved.add(document.node_id(sibling))

    def _add_descendants(self, document: MarkupDocument, node: HtmlElement, preserved: set[int], depth: int) -> None:
        if depth >= self.config.max_child_depth:
            return

        for child in document.children(node)[: self.config.max_children_preserved]:
            preserved.add(document.node_id(child))
            self._add_descendants(document, child, preserved, depth + 1)

    # ------------------------------------------------------------------
    # Reconstruction
    # ------------------------------------------------------------------

    def _rebuild(self, document: MarkupDocument, preserved: set[int]) -> MarkupDocument:
        root = self._new_element(ROOT_TAG)

        head = document.head
        if head is not None and document.node_id(head) in preserved:
            pruned_head = self._new_element(HEAD_TAG)
            root.append(pruned_head)
            for child in document.children(head):
                if document.tag(child) == TITLE_TAG:
                    title = copy.deepcopy(child)
                    title.tail = None
                    pruned_head.append(title)
                    break

        body = document.body
        if body is not None and document.node_id(body) in preserved:
            pruned_body = self._shallow_clone(body)
            pruned_body.tail = None
            root.append(pruned_body)
            self._copy_preserved(document, body, pruned_body, preserved, direct=True)

        return MarkupDocument(root)

    def _copy_preserved(
        self,
        document: MarkupDocument,
        source: HtmlElement,
        destination: HtmlElement,
        preserved: set[int],
        direct: bool,
    ) -> None:
        """Copy preserved descendants of ``source`` under ``destination``.

        A preserved node whose parent was dropped is attached to its nearest
        preserved ancestor, so no preserved node is lost. Tail text is only
        kept when the copy sits under its real parent.
        """
        for child in document.children(source):
            if document.node_id(child) in preserved:
                cloned = self._shallow_clone(child)
                cloned.tail = child.tail if direct else None
                destination.append(cloned)
                self._copy_preserved(document, child, cloned, preserved, direct=True)
            else:
                self._copy_preserved(document, child, destination, preserved, direct=False)

    @staticmethod
    def _new_element(tag: str) -> HtmlElement:
        return lxml.html.Element(tag)

    def _shallow_clone(self, node: HtmlElement) -> HtmlElement:
        """Copy tag, attributes and own leading text, without children."""
        cloned = self._new_element(str(node.tag))
        for name, value in node.attrib.items():
            cloned.set(name, value)
        cloned.text = node.text
        return cloned

    @staticmethod
    def placeholder_document() -> MarkupDocument:
        """Minimal document used when there is nothing to preserve."""
        return MarkupDocument.from_html(
            f'<html><head></head><body><p>{NO_MATCH_MESSAGE}</p></body></html>'
        )
