"""
domsift - Locator-Guided Markup Reduction
=========================================

domsift shrinks a large page to the elements that most plausibly match a
failing XPath or CSS locator, plus enough surrounding structure to reason
about them, so the result fits comfortably in a model's context window.

Main Components:
    - ReductionPipeline: Early size check, hint extraction, discovery, pruning, minification
    - LocatorHintExtractor: Semantic hints from a raw locator
    - CandidateDiscovery: Tiered, scored candidate search
    - TreePruner: Bounded-context tree reconstruction
    - LocatorAnalyzer: Model-backed replacement locators, or selectors for a described element, with DOM query tools

Example:
    >>> from domsift import ReductionPipeline
    >>> result = ReductionPipeline().process(html, "//*[@id='searchBox']")
    >>> result.path, result.html
"""

__version__ = '0.1.0'

from domsift.analyzer import (
    LocatorAnalyzer,
    build_agent,
    format_analysis,
    format_selectors,
    validate_find_request,
    validate_request,
)
from domsift.candidates import CandidateDiscovery, CandidateFinder
from domsift.cleaning import HTMLCleaner, HTMLMinifier, Minifier
from domsift.config import ProcessingConfig
from domsift.document import MarkupDocument
from domsift.exceptions import (
    ConfigurationError,
    DomsiftError,
    LLMGenerationError,
    LocatorSyntaxError,
    ReductionError,
)
from domsift.hints import HintExtractor, LocatorHintExtractor, detect_locator_kind
from domsift.llm_config import LLMConfig, config_from_env, create_agent, create_model, gemini, groq, openai
from domsift.models import (
    LocatorAnalysisResult,
    LocatorHints,
    LocatorKind,
    ReductionResult,
    ScoredCandidate,
    XPathAnalysisResult,
)
from domsift.pipeline import ReductionPipeline, preprocess_html
from domsift.pruning import Pruner, TreePruner
from domsift.query import DocumentQueryContext

__all__ = [
    'CandidateDiscovery',
    'CandidateFinder',
    'ConfigurationError',
    'DocumentQueryContext',
    'DomsiftError',
    'HTMLCleaner',
    'HTMLMinifier',
    'HintExtractor',
    'LLMConfig',
    'LLMGenerationError',
    'LocatorAnalysisResult',
    'LocatorAnalyzer',
    'LocatorHintExtractor',
    'LocatorHints',
    'LocatorKind',
    'LocatorSyntaxError',
    'MarkupDocument',
    'Minifier',
    'ProcessingConfig',
    'Pruner',
    'ReductionError',
    'ReductionPipeline',
    'ReductionResult',
    'ScoredCandidate',
    'TreePruner',
    'XPathAnalysisResult',
    'build_agent',
    'config_from_env',
    'create_agent',
    'create_model',
    'detect_locator_kind',
    'format_analysis',
    'format_selectors',
    'gemini',
    'groq',
    'openai',
    'preprocess_html',
    'validate_find_request',
    'validate_request',
]
