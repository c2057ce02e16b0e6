"""
llm_config.py
=============
Provider configuration for the locator analyzer.

Maps a small LLMConfig onto pydantic-ai models for Groq, Gemini and OpenAI.
"""

import os
from dataclasses import dataclass
from typing import Any

from pydantic_ai import Agent
from pydantic_ai.models import Model
from pydantic_ai.models.google import GoogleModel
from pydantic_ai.models.groq import GroqModel
from pydantic_ai.models.openai import OpenAIChatModel
from pydantic_ai.providers.google import GoogleProvider
from pydantic_ai.providers.groq import GroqProvider
from pydantic_ai.providers.openai import OpenAIProvider
from pydantic_ai.settings import ModelSettings

# ============================================================================
# Configuration
# ============================================================================


@dataclass
class LLMConfig:
    """Configuration for one LLM provider.

    Attributes:
        provider: Provider name ('groq', 'gemini', 'openai')
        model_name: Model identifier string
        api_key: API key for authentication
        temperature: Sampling temperature (0.0-2.0). Defaults to 0.2.
        max_tokens: Maximum tokens for generation. Defaults to None.
        extra_params: Additional model settings. Defaults to None.

    """

    provider: str
    model_name: str
    api_key: str
    temperature: float = 0.2
    max_tokens: int | None = None
    extra_params: dict[str, Any] | None = None

    def __post_init__(self) -> None:
        """Validate configuration after initialization.

        Raises:
            ValueError: If API key or model name is missing, or the temperature is out of range.

        """
        if not self.api_key:
            raise ValueError(f'API key required for {self.provider}')
        if not self.model_name:
            raise ValueError(f'Model name required for {self.provider}')
        if not 0.0 <= self.temperature <= 2.0:
            raise ValueError(f'Temperature must be between 0.0 and 2.0 (got {self.temperature})')

    @property
    def model_id(self) -> str:
        """Identifier in 'provider:model_name' form."""
        return f'{self.provider}:{self.model_name}'


# Environment variable holding the API key, and the default model, per provider
PROVIDER_DEFAULTS = {
    'groq': ('GROQ_KEY', 'llama-3.3-70b-versatile'),
    'gemini': ('GEMINI_KEY', 'gemini-2.0-flash'),
    'openai': ('OPENAI_API_KEY', 'gpt-4o-mini'),
}

PROVIDER_ALIASES = {'google': 'gemini', 'gpt': 'openai'}


def normalize_provider(name: str) -> str:
    """Lower-case a provider name and resolve aliases."""
    name = name.lower()
    return PROVIDER_ALIASES.get(name, name)


def config_from_env(provider: str | None = None, model_name: str | None = None) -> LLMConfig:
    """Build an LLMConfig from environment variables.

    Without an explicit provider, the first provider whose key is set wins,
    in the order groq, gemini, openai.

    Args:
        provider: Provider name, or None to pick one from the environment
        model_name: Model identifier, or None for the provider default

    Returns:
        A validated LLMConfig.

    Raises:
        ValueError: If the provider is unknown or no API key is available.

    """
    if provider is None:
        for name, (env_name, _) in PROVIDER_DEFAULTS.items():
            if os.getenv(env_name):
                provider = name
                break
        else:
            keys = ', '.join(env_name for env_name, _ in PROVIDER_DEFAULTS.values())
            raise ValueError(f'No API key found in environment (checked {keys})')

    provider = normalize_provider(provider)
    if provider not in PROVIDER_DEFAULTS:
        raise ValueError(f'Unknown provider: {provider}. Available: {", ".join(PROVIDER_DEFAULTS)}')

    env_name, default_model = PROVIDER_DEFAULTS[provider]
    api_key = os.getenv(env_name, '')
    if not api_key:
        raise ValueError(f'{env_name} not found in environment variables')

    return LLMConfig(provider=provider, model_name=model_name or default_model, api_key=api_key)


def groq(model_name: str, api_key: str, **kwargs) -> LLMConfig:
    """Quick config for Groq."""
    return LLMConfig(provider='groq', model_name=model_name, api_key=api_key, **kwargs)


def gemini(model_name: str, api_key: str, **kwargs) -> LLMConfig:
    """Quick config for Gemini."""
    return LLMConfig(provider='gemini', model_name=model_name, api_key=api_key, **kwargs)


def openai(model_name: str, api_key: str, **kwargs) -> LLMConfig:
    """Quick config for OpenAI."""
    return LLMConfig(provider='openai', model_name=model_name, api_key=api_key, **kwargs)


# ============================================================================
# Model factories
# ============================================================================


def create_groq_model(config: LLMConfig) -> GroqModel:
    """Create a Groq model from configuration."""
    return GroqModel(config.model_name, provider=GroqProvider(api_key=config.api_key))


def create_gemini_model(config: LLMConfig) -> GoogleModel:
    """Create a Gemini (Google) model from configuration."""
    return GoogleModel(config.model_name, provider=GoogleProvider(api_key=config.api_key))


def create_openai_model(config: LLMConfig) -> OpenAIChatModel:
    """Create an OpenAI chat model from configuration."""
    return OpenAIChatModel(config.model_name, provider=OpenAIProvider(api_key=config.api_key))


PROVIDER_FACTORIES = {
    'groq': create_groq_model,
    'gemini': create_gemini_model,
    'openai': create_openai_model,
}


def create_model(config: LLMConfig) -> Model:
    """Create a model from configuration.

    Args:
        config: LLMConfig specifying the provider and parameters

    Returns:
        Model instance (GroqModel, GoogleModel or OpenAIChatModel).

    Raises:
        ValueError: If the provider is not supported.

    Example:
        >>> config = LLMConfig(provider='groq', model_name='llama-3.3-70b-versatile', api_key='your-key')
        >>> model = create_model(config)

    """
    provider_name = normalize_provider(config.provider)

    if provider_name not in PROVIDER_FACTORIES:
        available = ', '.join(PROVIDER_FACTORIES)
        raise ValueError(f'Unknown provider: {provider_name}. Available: {available}')

    return PROVIDER_FACTORIES[provider_name](config)


def model_settings(config: LLMConfig) -> ModelSettings:
    """Sampling settings for agent runs."""
    settings = ModelSettings(temperature=config.temperature)
    if config.max_tokens:
        settings['max_tokens'] = config.max_tokens
    if config.extra_params:
        settings.update(config.extra_params)  # type: ignore[typeddict-item]
    return settings


def create_agent(config: LLMConfig, system_prompt: str, **agent_kwargs: Any) -> Agent:
    """Create a pydantic-ai agent from configuration.

    Args:
        config: LLMConfig specifying the provider and parameters
        system_prompt: System prompt for the agent
        **agent_kwargs: Passed through to Agent (e.g. output_type, deps_type)

    Returns:
        Configured pydantic-ai Agent.

    """
    return Agent(
        create_model(config),
        system_prompt=system_prompt,
        model_settings=model_settings(config),
        **agent_kwargs,
    )
