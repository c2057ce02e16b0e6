import pytest

from domsift.document import MarkupDocument
from domsift.query import (
    DOCUMENT_NOT_SET,
    DocumentQueryContext,
    find_by_attribute,
    find_by_css,
    find_by_id,
    find_by_text,
    find_by_xpath,
    format_element,
    list_interactive_elements,
)


@pytest.fixture
def context(search_page_html):
    with DocumentQueryContext.from_html(search_page_html, locator='#wrong') as ctx:
        yield ctx


def test_find_by_id_formats_element(context):
    assert find_by_id(context, 'searchBox') == (
        '<input id="searchBox" class="search-input" name="q" data-testid="search-input"></input>'
    )


def test_find_by_id_missing(context):
    assert find_by_id(context, 'nope') == 'Not found'


def test_find_by_css(context):
    report = find_by_css(context, 'button')

    assert report.startswith('Found 2 elements:\n')
    assert 'id="searchBtn"' in report
    assert '>Login</button>' in report


def test_find_by_css_invalid_selector(context):
    assert find_by_css(context, 'div[').startswith('Invalid selector:')


def test_find_by_xpath(context):
    report = find_by_xpath(context, "//input[@name='username']")

    assert report.startswith('Found 1 elements:')
    assert 'usernameField' in report


def test_find_by_xpath_invalid_expression(context):
    assert find_by_xpath(context, "//div[@id='x'").startswith('Invalid XPath:')


def test_find_by_xpath_no_matches(context):
    assert find_by_xpath(context, "//*[@id='wrongSearchBox']") == 'No elements found'


def test_find_by_text_is_case_insensitive_on_own_text(context):
    report = find_by_text(context, 'search')

    assert report.startswith('Found 1 elements:')
    assert 'id="searchBtn"' in report


def test_find_by_text_requires_text(context):
    assert find_by_text(context, '  ').startswith('Search failed')


def test_list_interactive_elements(context):
    report = list_interactive_elements(context)

    assert report.startswith('Found 6 elements:')
    assert 'help-link' in report
    assert 'welcome-text' not in report


def test_list_interactive_elements_limit():
    inputs = ''.join(f'<input id="f{n}"/>' for n in range(60))
    with DocumentQueryContext.from_html(f'<form>{inputs}</form>') as context:
        report = list_interactive_elements(context)

    assert report.startswith('Found 50 elements:')
    assert report.endswith('... and 10 more elements')
    assert 'id="f49"' in report
    assert 'id="f50"' not in report


def test_find_by_attribute(context):
    assert find_by_attribute(context, 'data-testid').startswith('Found 1 elements:')
    assert find_by_attribute(context, 'class', 'form-control').startswith('Found 2 elements:')
    assert find_by_attribute(context, 'class', 'missing') == 'No elements found'
    assert find_by_attribute(context, '').startswith('Search failed')


def test_attribute_results_use_context_limit():
    inputs = ''.join(f'<input class="f" id="f{n}"/>' for n in range(5))
    with DocumentQueryContext.from_html(inputs, max_results=3) as context:
        report = find_by_attribute(context, 'class', 'f')

    assert report.startswith('Found 3 elements:')
    assert report.endswith('... and 2 more elements')


def test_format_element_truncates_text():
    document = MarkupDocument.from_html('<p id="long">' + 'a' * 80 + '</p>')

    formatted = format_element(document.find_by_id('long'))

    assert formatted == '<p id="long" class="" name="" data-testid="">' + 'a' * 50 + '...</p>'


def test_context_is_cleared_on_exit(search_page_html):
    with DocumentQueryContext.from_html(search_page_html) as context:
        assert context.is_open
        assert find_by_id(context, 'searchBox') != DOCUMENT_NOT_SET

    assert not context.is_open
    assert find_by_id(context, 'searchBox') == DOCUMENT_NOT_SET
    assert find_by_css(context, 'input') == DOCUMENT_NOT_SET
    assert find_by_xpath(context, '//input') == DOCUMENT_NOT_SET
    assert find_by_text(context, 'Search') == DOCUMENT_NOT_SET
    assert list_interactive_elements(context) == DOCUMENT_NOT_SET
    assert find_by_attribute(context, 'name') == DOCUMENT_NOT_SET


def test_context_is_cleared_when_body_raises(search_page_html):
    with pytest.raises(RuntimeError):
        with DocumentQueryContext.from_html(search_page_html) as context:
            raise RuntimeError('model failed')

    assert find_by_id(context, 'searchBox') == DOCUMENT_NOT_SET


def test_contexts_are_independent(search_page_html):
    first = DocumentQueryContext.from_html(search_page_html)
    second = DocumentQueryContext.from_html('<button id="other">Other</button>')

    first.close()

    assert find_by_id(first, 'searchBox') == DOCUMENT_NOT_SET
    assert 'id="other"' in find_by_id(second, 'other')


def test_context_queries_cleaned_document():
    html = '<body><script id="tracker">x()</script><button id="go">Go</button></body>'
    with DocumentQueryContext.from_html(html) as context:
        assert find_by_id(context, 'tracker') == 'Not found'
        assert 'id="go"' in find_by_id(context, 'go')
