import pytest

from domsift.config import ProcessingConfig
from domsift.exceptions import ConfigurationError


def test_defaults():
    config = ProcessingConfig()

    assert config.max_output_size == 51200
    assert config.early_return_size == 51200
    assert config.max_candidates == 5
    assert (config.tier_one_score, config.tier_two_score, config.tier_three_score, config.tier_four_score) == (
        100,
        75,
        50,
        25,
    )
    assert (config.max_parent_depth, config.max_sibling_count, config.max_child_depth) == (3, 2, 2)
    assert config.max_children_preserved == 5
    assert (config.attribute_match_boost, config.id_match_boost, config.class_match_boost) == (10, 20, 5)
    assert (config.exact_match_bonus, config.contains_match_score, config.case_insensitive_match_penalty) == (
        10,
        25,
        5,
    )
    assert config.direct_match_confidence_limit == 3


def test_negative_values_rejected():
    with pytest.raises(ValueError, match='max_parent_depth'):
        ProcessingConfig(max_parent_depth=-1)


def test_max_candidates_must_be_positive():
    with pytest.raises(ValueError, match='max_candidates'):
        ProcessingConfig(max_candidates=0)


def test_from_env_reads_prefixed_variables(monkeypatch):
    monkeypatch.setenv('DOMSIFT_MAX_CANDIDATES', '7')
    monkeypatch.setenv('DOMSIFT_EARLY_RETURN_SIZE', ' 1024 ')

    config = ProcessingConfig.from_env()

    assert config.max_candidates == 7
    assert config.early_return_size == 1024
    assert config.max_output_size == 51200


def test_from_env_overrides_win(monkeypatch):
    monkeypatch.setenv('DOMSIFT_MAX_CANDIDATES', '7')

    config = ProcessingConfig.from_env(max_candidates=2)

    assert config.max_candidates == 2


def test_from_env_custom_prefix(monkeypatch):
    monkeypatch.setenv('LOCATORS_TIER_ONE_SCORE', '200')

    assert ProcessingConfig.from_env(prefix='LOCATORS_').tier_one_score == 200


def test_from_env_invalid_value(monkeypatch):
    monkeypatch.setenv('DOMSIFT_MAX_SIBLING_COUNT', 'two')

    with pytest.raises(ConfigurationError) as exc_info:
        ProcessingConfig.from_env()

    assert exc_info.value.setting == 'DOMSIFT_MAX_SIBLING_COUNT'
    assert exc_info.value.raw_value == 'two'
