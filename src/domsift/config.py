"""
config.py
=========
Tunable settings for the markup reduction pipeline.

All values are plain integers with documented defaults and can be overridden
from the environment without code changes (see ProcessingConfig.from_env).
"""

import os
from dataclasses import dataclass, fields

from domsift.exceptions import ConfigurationError

ENV_PREFIX = 'DOMSIFT_'


@dataclass
class ProcessingConfig:
    """Settings for candidate discovery, pruning and output sizing.

    Attributes:
        max_output_size: Largest output (bytes) before safe truncation kicks in. Defaults to 51200.
        early_return_size: Inputs at or below this size (bytes) skip discovery and pruning. Defaults to 51200.
        max_candidates: Upper bound on returned candidates. Defaults to 5.
        tier_one_score: Score for direct and identity matches. Defaults to 100.
        tier_two_score: Score for semantic attribute matches. Defaults to 75.
        tier_three_score: Base score for structural matches. Defaults to 50.
        tier_four_score: Base score for text similarity matches. Defaults to 25.
        max_parent_depth: Ancestors preserved above each candidate. Defaults to 3.
        max_sibling_count: Siblings preserved on each side of a candidate. Defaults to 2.
        max_child_depth: Descendant levels preserved below a candidate. Defaults to 2.
        max_children_preserved: Children preserved per node while walking descendants. Defaults to 5.
        attribute_match_boost: Structural boost per exactly matching hint attribute. Defaults to 10.
        id_match_boost: Structural boost when the node id is a hinted id. Defaults to 20.
        class_match_boost: Structural boost per hinted class the node carries. Defaults to 5.
        exact_match_bonus: Added to tier_four_score for an exact text match. Defaults to 10.
        contains_match_score: Score for a case-sensitive containment text match. Defaults to 25.
        case_insensitive_match_penalty: Subtracted from tier_four_score for a case-insensitive match. Defaults to 5.
        direct_match_confidence_limit: Direct matches up to this count skip the tiered search. Defaults to 3.
        max_query_results: Result limit for the interactive query surface. Defaults to 20.

    """

    max_output_size: int = 51200
    early_return_size: int = 51200

    max_candidates: int = 5
    tier_one_score: int = 100
    tier_two_score: int = 75
    tier_three_score: int = 50
    tier_four_score: int = 25

    max_parent_depth: int = 3
    max_sibling_count: int = 2
    max_child_depth: int = 2
    max_children_preserved: int = 5

    attribute_match_boost: int = 10
    id_match_boost: int = 20
    class_match_boost: int = 5

    exact_match_bonus: int = 10
    contains_match_score: int = 25
    case_insensitive_match_penalty: int = 5

    direct_match_confidence_limit: int = 3
    max_query_results: int = 20

    def __post_init__(self) -> None:
        """Validate configuration after initialization.

        Raises:
            ValueError: If a setting is negative or max_candidates is below 1.

        """
        for item in fields(self):
            value = getattr(self, item.name)
            if value < 0:
                raise ValueError(f'{item.name} must not be negative (got {value})')
        if self.max_candidates < 1:
            raise ValueError('max_candidates must be at least 1')

    @classmethod
    def from_env(cls, prefix: str = ENV_PREFIX, **overrides: int) -> 'ProcessingConfig':
        """Build a configuration from environment variables.

        Each field is read from ``<prefix><FIELD_NAME>``, e.g. ``DOMSIFT_MAX_CANDIDATES``.
        Missing variables keep their defaults; explicit overrides win over both.

        Args:
            prefix: Environment variable prefix. Defaults to 'DOMSIFT_'.
            **overrides: Field values that take precedence over the environment

        Returns:
            A validated ProcessingConfig.

        Raises:
            ConfigurationError: If a variable is set but is not an integer.

        """
        values: dict[str, int] = {}
        for item in fields(cls):
            env_name = f'{prefix}{item.name.upper()}'
            raw = os.getenv(env_name)
            if raw is None or not raw.strip():
                continue
            try:
                values[item.name] = int(raw.strip())
            except ValueError:
                raise ConfigurationError(env_name, raw) from None

        values.update(overrides)
        return cls(**values)
