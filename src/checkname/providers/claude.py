"""
Claude (Anthropic) provider

Talks to the Anthropic API directly, for users with an Anthropic key rather
than an OpenRouter one. Supports tool calling.
"""

import os
from typing import List, Optional

from ..config import config
from .base import (
    AuthenticationError, ModelProvider, ModelResponse, ToolCallResult,
    ToolDefinition, map_provider_error,
)
from .tools import tools_to_anthropic

# Short aliases -> Anthropic model ids. OpenRouter-style ids lose their prefix.
CLAUDE_MODELS = {
    "claude-sonnet": "claude-sonnet-4-20250514",
    "claude-haiku": "claude-3-5-haiku-20241022",
}


class ClaudeProvider(ModelProvider):
    """
    Anthropic Claude provider.

    API key comes from the constructor or ANTHROPIC_API_KEY.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        default_model: str = "claude-sonnet",
    ):
        self._api_key = api_key or os.getenv("ANTHROPIC_API_KEY")
        self._default_model = default_model
        self._client = None

    def _get_client(self):
        """Lazy initialization of the Anthropic client."""
        if self._client is None:
            if not self._api_key:
                raise AuthenticationError(
                    "No Anthropic API key provided. Set ANTHROPIC_API_KEY or pass api_key to constructor."
                )
            import anthropic
            self._client = anthropic.AsyncAnthropic(api_key=self._api_key)
        return self._client

    @property
    def name(self) -> str:
        return "claude"

    @property
    def default_model(self) -> str:
        return self._default_model

    @property
    def supports_tools(self) -> bool:
        return True

    def resolve_model(self, model: Optional[str]) -> str:
        alias = model or self._default_model
        if alias in CLAUDE_MODELS:
            return CLAUDE_MODELS[alias]
        resolved = config.models.resolve_model(alias)
        return resolved.split("/", 1)[1] if resolved.startswith("anthropic/") else resolved

    def _request(
        self,
        prompt: str,
        system: Optional[str],
        model: Optional[str],
        max_tokens: int,
        temperature: Optional[float],
    ) -> dict:
        request = {
            "model": self.resolve_model(model),
            "max_tokens": max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system:
            request["system"] = system
        if temperature is not None:
            # Claude takes 0-1
            request["temperature"] = min(1.0, max(0.0, temperature))
        return request

    def _to_response(self, response) -> ModelResponse:
        content = ""
        tool_calls = []
        for block in response.content:
            if getattr(block, "type", None) == "tool_use":
                tool_calls.append(ToolCallResult(
                    tool_name=block.name,
                    arguments=block.input,
                    raw_response=block,
                ))
            elif hasattr(block, "text"):
                content += block.text

        return ModelResponse(
            content=content,
            model=response.model,
            provider=self.name,
            usage={
                "input_tokens": response.usage.input_tokens,
                "output_tokens": response.usage.output_tokens,
            },
            raw_response=response,
            tool_calls=tool_calls,
        )

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
        client = self._get_client()
        try:
            response = await client.messages.create(
                **self._request(prompt, system, model, max_tokens, temperature)
            )
        except Exception as e:
            raise map_provider_error("Claude", e) from e
        return self._to_response(response)

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
        client = self._get_client()
        request = self._request(prompt, system, model, max_tokens, temperature)
        request["tools"] = tools_to_anthropic(tools)

        if tool_choice in ("auto", "any"):
            request["tool_choice"] = {"type": tool_choice}
        elif tool_choice:
            request["tool_choice"] = {"type": "tool", "name": tool_choice}

        try:
            response = await client.messages.create(**request)
        except Exception as e:
            raise map_provider_error("Claude", e) from e
        return self._to_response(response)
