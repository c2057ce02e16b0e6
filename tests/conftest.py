import pytest

from domsift.config import ProcessingConfig
from domsift.llm_config import LLMConfig
from domsift.models import LocatorAnalysisResult

SEARCH_PAGE_BODY = """
    <div id="header">
        <input id="searchBox" type="text" name="q" placeholder="Search..." class="search-input" data-testid="search-input"/>
        <button id="searchBtn" class="btn btn-primary" name="searchButton">Search</button>
        <a href="/help" class="help-link">Help Center</a>
    </div>
    <div id="content">
        <p class="welcome-text">Welcome to our website</p>
        <form name="loginForm">
            <input type="text" name="username" id="usernameField" class="form-control"/>
            <input type="password" name="password" id="passwordField" class="form-control"/>
            <button type="submit">Login</button>
        </form>
    </div>
"""


@pytest.fixture
def search_page_html():
    return f"""
    <html>
    <head><title>Test Page</title></head>
    <body>
    {SEARCH_PAGE_BODY}
    </body>
    </html>
    """


@pytest.fixture
def make_large_page():
    """Build a page above the default 51200-byte early-return threshold.

    The given body markup comes first, followed by filler sections plus a
    script and a stylesheet that cleaning should strip.
    """

    def build(body: str = SEARCH_PAGE_BODY, filler_sections: int = 500) -> str:
        filler = ''.join(
            f'<section class="filler"><h3>Archive entry {i}</h3>'
            f'<span class="note">Lorem ipsum dolor sit amet, consectetur adipiscing elit {i}.</span></section>'
            for i in range(filler_sections)
        )
        return (
            '<!DOCTYPE html><html><head><title>Large Page</title>'
            '<style>.filler { color: grey; }</style>'
            '<script>window.analytics = {};</script></head>'
            f'<body>{body}<footer>{filler}</footer></body></html>'
        )

    return build


@pytest.fixture
def eager_config():
    """Config that sends every non-empty page through discovery and pruning."""
    return ProcessingConfig(early_return_size=0)


@pytest.fixture
def mock_llm_config():
    return LLMConfig(provider='groq', model_name='llama-3.3-70b-versatile', api_key='test-key', temperature=0.0)


@pytest.fixture
def search_box_analysis():
    return LocatorAnalysisResult(
        primary_id='searchBox',
        primary_name='q',
        primary_class_name='search-input',
        primary_tag_name='input',
        primary_css_selector='#searchBox',
        alternative_css_selectors=["input[name='q']", "[data-testid='search-input']"],
        primary_xpath="//input[@id='searchBox']",
        alternative_xpaths=["//input[@name='q']"],
        confidence=95,
        explanation='The id searchBox is unique and stable; the failing locator used a different id.',
        element_found=True,
        recommended_locator_type='ID',
        recommended_locator='searchBox',
        warnings=None,
    )


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line('markers', 'integration: marks tests as integration tests')
    config.addinivalue_line('markers', 'unit: marks tests as unit tests')
    config.addinivalue_line('markers', 'eval: slow evaluations against a real model')


def pytest_collection_modifyitems(config, items):
    """Apply directory-based marks to collected test items."""
    for item in items:
        file_path = str(item.fspath)

        if '/tests/integration/' in file_path:
            item.add_marker(pytest.mark.integration)
        elif '/tests/unit/' in file_path:
            item.add_marker(pytest.mark.unit)
        elif '/tests/evals/' in file_path:
            item.add_marker(pytest.mark.eval)
