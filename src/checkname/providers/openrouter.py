"""
OpenRouter provider

OpenRouter exposes many vendors' models behind one OpenAI-compatible API, so
the openai SDK is pointed at its base URL. Model aliases from config are
resolved to OpenRouter ids (e.g. "gemini-pro" -> "google/gemini-2.5-pro").
"""

import json
import logging
import os
from typing import List, Optional

from ..config import config
from .base import (
    AuthenticationError, ModelProvider, ModelResponse, ToolCallResult,
    ToolDefinition, map_provider_error,
)
from .tools import tools_to_openai

logger = logging.getLogger(__name__)


class OpenRouterProvider(ModelProvider):
    """
    OpenRouter provider.

    API key comes from the constructor or OPENROUTER_API_KEY.
    """

    BASE_URL = "https://openrouter.ai/api/v1"

    # OpenRouter attributes traffic using these
    APP_HEADERS = {
        "HTTP-Referer": "https://github.com/checkname/checkname",
        "X-Title": "checkname",
    }

    def __init__(
        self,
        api_key: Optional[str] = None,
        default_model: Optional[str] = None,
        base_url: Optional[str] = None,
    ):
        self._api_key = api_key or os.getenv("OPENROUTER_API_KEY")
        self._default_model = default_model or config.models.generate_model
        self._base_url = base_url or self.BASE_URL
        self._client = None

    def _get_client(self):
        """Lazy initialization of the OpenAI client for OpenRouter."""
        if self._client is None:
            if not self._api_key:
                raise AuthenticationError(
                    "No OpenRouter API key provided. Set OPENROUTER_API_KEY or pass api_key to constructor."
                )
            from openai import AsyncOpenAI
            self._client = AsyncOpenAI(
                api_key=self._api_key,
                base_url=self._base_url,
                default_headers=self.APP_HEADERS,
            )
        return self._client

    @property
    def name(self) -> str:
        return "openrouter"

    @property
    def default_model(self) -> str:
        return self._default_model

    @property
    def supports_tools(self) -> bool:
        return True

    def _messages(self, prompt: str, system: Optional[str]) -> list[dict]:
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})
        return messages

    def _to_response(self, response) -> ModelResponse:
        content = ""
        tool_calls = []

        if response.choices and response.choices[0].message:
            msg = response.choices[0].message
            content = msg.content or ""

            for tc in msg.tool_calls or []:
                try:
                    args = json.loads(tc.function.arguments)
                except json.JSONDecodeError:
                    logger.debug(f"Unparseable tool arguments from {tc.function.name}")
                    args = {"raw": tc.function.arguments}
                tool_calls.append(ToolCallResult(
                    tool_name=tc.function.name,
                    arguments=args,
                    raw_response=tc,
                ))

        usage = {}
        if response.usage:
            usage = {
                "input_tokens": response.usage.prompt_tokens,
                "output_tokens": response.usage.completion_tokens,
            }

        return ModelResponse(
            content=content,
            model=response.model,
            provider=self.name,
            usage=usage,
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
            response = await client.chat.completions.create(
                model=config.models.resolve_model(model or self._default_model),
                messages=self._messages(prompt, system),
                max_tokens=max_tokens,
                temperature=temperature,
            )
        except Exception as e:
            raise map_provider_error("OpenRouter", e) from e
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
        request = {
            "model": config.models.resolve_model(model or self._default_model),
            "messages": self._messages(prompt, system),
            "max_tokens": max_tokens,
            "temperature": temperature,
            "tools": tools_to_openai(tools),
        }

        if tool_choice == "auto":
            request["tool_choice"] = "auto"
        elif tool_choice == "any":
            request["tool_choice"] = "required"
        elif tool_choice:
            request["tool_choice"] = {"type": "function", "function": {"name": tool_choice}}

        try:
            response = await client.chat.completions.create(**request)
        except Exception as e:
            raise map_provider_error("OpenRouter", e) from e
        return self._to_response(response)
