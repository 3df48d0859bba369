"""
Text-completion providers for checkname

Providers: OpenRouter (default), Claude (Anthropic), Mock (offline)
"""

from ..errors import ConfigurationError
from .base import (
    AuthenticationError, ModelProvider, ModelResponse, ProviderError,
    RateLimitError, ToolCallError, ToolCallResult, ToolDefinition,
)
from .claude import ClaudeProvider
from .mock import MockProvider
from .openrouter import OpenRouterProvider
from .tools import GENERATE_TOOL, JUDGE_TOOL, tools_to_anthropic, tools_to_openai

__all__ = [
    "ModelProvider",
    "ModelResponse",
    "ProviderError",
    "RateLimitError",
    "AuthenticationError",
    "ToolCallError",
    "ToolDefinition",
    "ToolCallResult",
    "OpenRouterProvider",
    "ClaudeProvider",
    "MockProvider",
    "GENERATE_TOOL",
    "JUDGE_TOOL",
    "tools_to_anthropic",
    "tools_to_openai",
    "get_provider",
]

PROVIDERS = {
    "openrouter": OpenRouterProvider,
    "claude": ClaudeProvider,
    "mock": MockProvider,
}


def get_provider(name: str, **kwargs) -> ModelProvider:
    """
    Get a provider by name.

    Args:
        name: 'openrouter', 'claude' or 'mock'
        **kwargs: Provider-specific options

    Raises:
        ConfigurationError: If the provider name is unknown
    """
    if name not in PROVIDERS:
        raise ConfigurationError(f"Unknown provider: {name}. Valid options: {list(PROVIDERS)}")
    return PROVIDERS[name](**kwargs)
