"""
Base protocol for text-completion providers

The generator and judge talk to models only through ModelProvider, so a
provider can be swapped (OpenRouter, Anthropic, the offline mock) without
touching either agent.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


class ProviderError(Exception):
    """Base exception for provider errors."""
    pass


class RateLimitError(ProviderError):
    """Rate limit exceeded."""
    pass


class AuthenticationError(ProviderError):
    """Missing or rejected API key."""
    pass


class ToolCallError(ProviderError):
    """Tool call unsupported or unparseable."""
    pass


def map_provider_error(label: str, error: Exception) -> ProviderError:
    """Wrap an SDK exception in the matching ProviderError subclass."""
    if isinstance(error, ProviderError):
        return error

    text = str(error).lower()
    if "rate" in text or "429" in text:
        return RateLimitError(f"{label} rate limit exceeded: {error}")
    if "auth" in text or "401" in text or "api key" in text:
        return AuthenticationError(f"{label} authentication failed: {error}")
    return ProviderError(f"{label} API error: {error}")


@dataclass
class ToolDefinition:
    """A function the model may call, described by a JSON Schema."""
    name: str
    description: str
    parameters: Dict[str, Any]


@dataclass
class ToolCallResult:
    """One tool call made by the model."""
    tool_name: str
    arguments: Dict[str, Any]
    raw_response: Optional[Any] = None


@dataclass
class ModelResponse:
    """Response from a model."""
    content: str
    model: str
    provider: str
    usage: dict = field(default_factory=dict)
    raw_response: Optional[Any] = None
    tool_calls: List[ToolCallResult] = field(default_factory=list)

    @property
    def input_tokens(self) -> int:
        return self.usage.get("input_tokens", 0)

    @property
    def output_tokens(self) -> int:
        return self.usage.get("output_tokens", 0)

    @property
    def has_tool_call(self) -> bool:
        return len(self.tool_calls) > 0

    def tool_arguments(self, tool_name: str) -> List[Dict[str, Any]]:
        """Arguments of every call to `tool_name`, in order."""
        return [tc.arguments for tc in self.tool_calls if tc.tool_name == tool_name]


class ModelProvider(ABC):
    """
    Abstract base class for model providers.

    Providers implement generate() and, where the API allows it,
    generate_with_tools().
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name (e.g. 'openrouter', 'claude', 'mock')."""
        pass

    @property
    @abstractmethod
    def default_model(self) -> str:
        pass

    @property
    def supports_tools(self) -> bool:
        return False

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        *,
        system: Optional[str] = None,
        model: Optional[str] = None,
        max_tokens: int = 4096,
        temperature: float = 0.7,
        **kwargs
    ) -> ModelResponse:
        """
        Generate a response from the model.

        Args:
            prompt: The user prompt
            system: Optional system prompt
            model: Model ID or alias (provider default if not specified)
            max_tokens: Maximum tokens to generate
            temperature: Sampling temperature

        Returns:
            ModelResponse with generated content

        Raises:
            ProviderError: On API errors
            RateLimitError: When rate limited
            AuthenticationError: On auth failures
        """
        pass

    async def generate_with_tools(
        self,
        prompt: str,
        tools: List[ToolDefinition],
        *,
        system: Optional[str] = None,
        model: Optional[str] = None,
        max_tokens: int = 4096,
        temperature: float = 0.7,
        tool_choice: Optional[str] = None,
        **kwargs
    ) -> ModelResponse:
        """
        Generate a response with function calling.

        Args:
            tool_choice: "auto", "any", or the name of a specific tool

        Returns:
            ModelResponse with tool_calls populated if the model used a tool

        Raises:
            ToolCallError: If the provider does not support tools
        """
        raise ToolCallError(f"{self.name} provider does not support tool calling")

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(model={self.default_model!r})"
