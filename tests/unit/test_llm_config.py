import pytest
from pydantic_ai.models.groq import GroqModel
from pydantic_ai.models.openai import OpenAIChatModel

from domsift.llm_config import (
    LLMConfig,
    config_from_env,
    create_agent,
    create_model,
    groq,
    model_settings,
    normalize_provider,
    openai,
)

API_KEY_VARS = ('GROQ_KEY', 'GEMINI_KEY', 'OPENAI_API_KEY')


@pytest.fixture
def clean_env(monkeypatch):
    for name in API_KEY_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_config_validation():
    with pytest.raises(ValueError, match='API key required'):
        LLMConfig(provider='groq', model_name='m', api_key='')
    with pytest.raises(ValueError, match='Model name required'):
        LLMConfig(provider='groq', model_name='', api_key='k')
    with pytest.raises(ValueError, match='Temperature'):
        LLMConfig(provider='groq', model_name='m', api_key='k', temperature=3.0)


def test_model_id(mock_llm_config):
    assert mock_llm_config.model_id == 'groq:llama-3.3-70b-versatile'


def test_quick_configs():
    assert groq('llama-3.3-70b-versatile', 'k').provider == 'groq'
    assert openai('gpt-4o-mini', 'k', temperature=0.5).temperature == 0.5


@pytest.mark.parametrize(('name', 'expected'), [('Groq', 'groq'), ('google', 'gemini'), ('GPT', 'openai')])
def test_normalize_provider(name, expected):
    assert normalize_provider(name) == expected


def test_config_from_env_picks_first_available_key(clean_env):
    clean_env.setenv('OPENAI_API_KEY', 'sk-test')

    config = config_from_env()

    assert config.provider == 'openai'
    assert config.model_name == 'gpt-4o-mini'
    assert config.api_key == 'sk-test'


def test_config_from_env_groq_wins_over_others(clean_env):
    clean_env.setenv('OPENAI_API_KEY', 'sk-test')
    clean_env.setenv('GROQ_KEY', 'gsk-test')

    assert config_from_env().provider == 'groq'


def test_config_from_env_explicit_provider_and_model(clean_env):
    clean_env.setenv('GEMINI_KEY', 'g-test')

    config = config_from_env('google', 'gemini-2.5-pro')

    assert config.provider == 'gemini'
    assert config.model_name == 'gemini-2.5-pro'


def test_config_from_env_without_keys(clean_env):
    with pytest.raises(ValueError, match='No API key found'):
        config_from_env()


def test_config_from_env_missing_provider_key(clean_env):
    clean_env.setenv('GROQ_KEY', 'gsk-test')

    with pytest.raises(ValueError, match='OPENAI_API_KEY'):
        config_from_env('openai')


def test_config_from_env_unknown_provider(clean_env):
    with pytest.raises(ValueError, match='Unknown provider'):
        config_from_env('mistral')


def test_create_model_openai():
    model = create_model(openai('gpt-4o-mini', 'sk-test'))

    assert isinstance(model, OpenAIChatModel)
    assert model.model_name == 'gpt-4o-mini'


def test_create_model_groq(mock_llm_config):
    assert isinstance(create_model(mock_llm_config), GroqModel)


def test_create_model_unknown_provider():
    with pytest.raises(ValueError, match='Unknown provider'):
        create_model(LLMConfig(provider='mistral', model_name='m', api_key='k'))


def test_model_settings():
    config = LLMConfig(
        provider='openai',
        model_name='gpt-4o-mini',
        api_key='k',
        temperature=0.1,
        max_tokens=500,
        extra_params={'top_p': 0.9},
    )

    assert model_settings(config) == {'temperature': 0.1, 'max_tokens': 500, 'top_p': 0.9}


def test_model_settings_defaults(mock_llm_config):
    assert model_settings(mock_llm_config) == {'temperature': 0.0}


def test_create_agent(mock_llm_config):
    agent = create_agent(mock_llm_config, 'You help with locators.')

    assert isinstance(agent.model, GroqModel)
