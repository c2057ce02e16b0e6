import pytest

from domsift.document import DOCTYPE, MarkupDocument, normalize_text
from domsift.exceptions import LocatorSyntaxError


@pytest.fixture
def document():
    return MarkupDocument.from_html(
        '<html><head><title> My  Page </title></head>'
        '<body><div id="main" class="box wide"><p class="lead">Hello <b>bold</b> world</p>'
        '<!-- note --><span data-role="hint">tip</span></div></body></html>'
    )


def test_node_ids_follow_document_order(document):
    tags = [document.tag(node) for node in document.iter_nodes()]

    assert tags == ['html', 'head', 'title', 'body', 'div', 'p', 'b', 'span']
    assert document.node_id(document.root) == 0
    for index, node in enumerate(document.iter_nodes()):
        assert document.node_id(node) == index
        assert document.node_by_id(index) is node


def test_comments_are_not_nodes(document):
    assert len(document) == 8
    assert all(isinstance(node.tag, str) for node in document.iter_nodes())


def test_fragments_are_wrapped():
    document = MarkupDocument.from_html('<p>hi</p>')

    assert document.tag(document.root) == 'html'
    assert document.body is not None


def test_own_text_excludes_descendant_text(document):
    paragraph = document.find_by_tag_and_class('p')[0]

    assert document.own_text(paragraph) == 'Hello world'


def test_title_is_normalized(document):
    assert document.title == 'My Page'


def test_ancestors_walk_to_root(document):
    bold = document.find_first('b')

    assert [document.tag(a) for a in document.ancestors(bold)] == ['p', 'div', 'body', 'html']


def test_find_by_attribute(document):
    assert len(document.find_by_attribute('DATA-ROLE')) == 1
    assert len(document.find_by_attribute('data-role', 'hint')) == 1
    assert document.find_by_attribute('data-role', 'hi') == []
    assert len(document.find_by_attribute('data-role', 'hi', contains=True)) == 1


def test_find_by_tag_and_class(document):
    assert len(document.find_by_tag_and_class('div', 'wide')) == 1
    assert len(document.find_by_tag_and_class(css_class='lead')) == 1
    assert document.find_by_tag_and_class('span', 'wide') == []


def test_select_css_and_xpath(document):
    assert document.select_css('div#main > p.lead') == document.find_by_tag_and_class('p', 'lead')
    assert document.select_xpath("//span[@data-role='hint']") == document.find_by_attribute('data-role')


def test_select_xpath_drops_non_element_results(document):
    assert document.select_xpath('count(//p)') == []
    assert document.select_xpath('//p/@class') == []


@pytest.mark.parametrize('selector', ['div[', '###', 'p:nonsense-pseudo'])
def test_select_css_invalid_raises_locator_syntax_error(document, selector):
    with pytest.raises(LocatorSyntaxError) as exc_info:
        document.select_css(selector)

    assert exc_info.value.kind == 'css'


def test_select_xpath_invalid_raises_locator_syntax_error(document):
    with pytest.raises(LocatorSyntaxError) as exc_info:
        document.select_xpath("//div[@id='x'")

    assert exc_info.value.kind == 'xpath'


def test_to_html_has_doctype(document):
    html = document.to_html()

    assert html.startswith(DOCTYPE)
    assert '<span data-role="hint">tip</span>' in html


def test_normalize_text():
    assert normalize_text('  a \n\t b  ') == 'a b'
    assert normalize_text(None) == ''
