import pytest

from domsift.candidates import CandidateDiscovery
from domsift.config import ProcessingConfig
from domsift.document import MarkupDocument
from domsift.hints import LocatorHintExtractor
from domsift.models import ScoredCandidate


def find(html, locator, config=None):
    document = MarkupDocument.from_html(html)
    hints = LocatorHintExtractor().parse(locator)
    return document, CandidateDiscovery(config).find_candidates(document, hints)


def test_direct_css_match_short_circuits(search_page_html):
    _, candidates = find(search_page_html, '#searchBox')

    assert len(candidates) == 1
    assert candidates[0].score == 100
    assert candidates[0].reason == 'direct match'
    assert candidates[0].node.get('id') == 'searchBox'


def test_direct_xpath_match_short_circuits(search_page_html):
    _, candidates = find(search_page_html, "//input[@type='password']")

    assert [c.node.get('id') for c in candidates] == ['passwordField']


def test_many_direct_matches_fall_through_to_tiers():
    html = '<ul>' + ''.join(f'<li class="item" id="i{n}">{n}</li>' for n in range(6)) + '</ul>'

    _, candidates = find(html, '.item')

    assert len(candidates) == 5
    # Dedup keeps the direct-match score over the structural one
    assert all(c.score == 100 for c in candidates)
    assert [c.node.get('id') for c in candidates] == ['i0', 'i1', 'i2', 'i3', 'i4']


def test_short_circuit_limit_is_configurable():
    html = '<ul>' + ''.join(f'<li class="item">{n}</li>' for n in range(3)) + '</ul>'
    config = ProcessingConfig(direct_match_confidence_limit=1)

    _, candidates = find(html, 'li.item', config)

    assert len(candidates) == 3
    assert all(c.score == 100 for c in candidates)


def test_tier_one_id_match():
    _, candidates = find('<div id="main">x</div>', "//section[@id='main']")

    assert len(candidates) == 1
    assert candidates[0].score == 100
    assert candidates[0].reason == 'ID match: main'


def test_tier_one_unique_attribute():
    html = '<input data-testid="email"/><input data-testid="phone"/>'

    _, candidates = find(html, "//textarea[@data-testid='email']")

    assert len(candidates) == 1
    assert candidates[0].reason == 'Unique attribute: data-testid'
    assert candidates[0].node.get('data-testid') == 'email'


def test_tier_one_explicit_empty_value_is_matched_exactly():
    html = '<div id="a" data-x="filled"></div><div id="b" data-x=""></div>'

    _, candidates = find(html, "section[data-x='']")

    assert [(c.node.get('id'), c.reason) for c in candidates] == [('b', 'Unique attribute: data-x')]


def test_tier_one_bare_attribute_matches_presence():
    html = '<div id="a" data-x="filled"></div><div id="b"></div>'

    _, candidates = find(html, 'section[data-x]')

    assert [(c.node.get('id'), c.reason) for c in candidates] == [('a', 'Unique attribute: data-x')]


def test_tier_two_semantic_contains_when_attribute_is_not_unique():
    html = '<input name="query" id="a"/><input name="query" id="b"/><input name="other" id="c"/>'

    _, candidates = find(html, "//select[@name='query']")

    assert [(c.node.get('id'), c.score, c.reason) for c in candidates] == [
        ('a', 75, 'Semantic attr: name'),
        ('b', 75, 'Semantic attr: name'),
    ]


def test_tier_three_prefers_tag_and_class():
    html = '<div class="card wide" id="match"></div><span class="card" id="other"></span>'

    _, candidates = find(html, "//div[@class='card']")

    assert [c.node.get('id') for c in candidates] == ['match']
    assert candidates[0].reason == 'Tag+Class: div.card'
    assert candidates[0].score == 55


def test_tier_three_score_is_capped_below_tier_one():
    html = '<div class="card wide" role="note"></div><div class="card wide" role="note"></div>'
    config = ProcessingConfig(attribute_match_boost=500)

    _, candidates = find(html, "//div[@class='card'][@role='note']", config)

    assert len(candidates) == 2
    assert all(c.score == 99 for c in candidates)


def test_structural_score_boosts():
    document = MarkupDocument.from_html('<a id="go" class="btn primary" rel="next">Go</a>')
    hints = LocatorHintExtractor().parse("//a[@id='go'][@class='btn primary'][@rel='next']")
    node = document.find_by_id('go')

    # 50 base + 10 attribute + 20 id + 5 per class
    assert CandidateDiscovery().structural_score(document, node, hints) == 90


def test_tier_four_text_similarity_ranking():
    html = (
        '<div><button id="btn">Log in</button><a id="exact">Sign in</a>'
        '<span id="folded">sign in now</span><p id="contains">Please Sign in here</p></div>'
    )

    _, candidates = find(html, "//button[text()='Sign in']")

    assert [(c.node.get('id'), c.score) for c in candidates] == [
        ('btn', 50),
        ('exact', 35),
        ('contains', 25),
        ('folded', 20),
    ]


@pytest.mark.parametrize(
    'target, text, expected',
    [
        ('Sign in', 'Sign in', 35),
        ('Sign in', 'Please Sign in', 25),
        ('Sign in now', 'Sign in', 25),
        ('Sign in', 'SIGN IN today', 20),
        ('Sign in', 'Register', 0),
        ('Sign in', '', 0),
    ],
)
def test_text_similarity(target, text, expected):
    assert CandidateDiscovery().text_similarity(target, text) == expected


def test_deduplicate_keeps_best_score_and_discovery_order():
    document = MarkupDocument.from_html('<p id="a"></p><p id="b"></p><p id="c"></p>')
    a, b, c = (document.find_by_id(x) for x in 'abc')

    def scored(node, score):
        return ScoredCandidate(node=node, node_id=document.node_id(node), score=score, reason='test')

    ranked = CandidateDiscovery._deduplicate_and_sort([scored(a, 50), scored(b, 75), scored(a, 100), scored(c, 75)])

    assert [(r.node.get('id'), r.score) for r in ranked] == [('a', 100), ('b', 75), ('c', 75)]


def test_candidate_cap():
    html = ''.join(f'<span class="tag">{n}</span>' for n in range(20))
    config = ProcessingConfig(max_candidates=2, direct_match_confidence_limit=0)

    _, candidates = find(html, 'span.tag', config)

    assert len(candidates) == 2


def test_scores_are_non_increasing(search_page_html):
    _, candidates = find(search_page_html, "//button[@class='btn'][text()='Search']")

    scores = [c.score for c in candidates]
    assert scores == sorted(scores, reverse=True)
    assert len(candidates) <= 5


def test_no_candidates_for_unknown_id(search_page_html):
    _, candidates = find(search_page_html, "//*[@id='wrongSearchBox']")

    assert candidates == []


@pytest.mark.parametrize('locator', ["//div[@id='x'", 'div[[[', 'input:::focus'])
def test_malformed_locator_falls_through_to_tiers(search_page_html, locator):
    _, candidates = find(search_page_html, locator)

    assert isinstance(candidates, list)
    assert len(candidates) <= 5
