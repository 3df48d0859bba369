"""
Generator agent - suggests name candidates

Asks the provider for names via tool calling when supported, falling back
to a JSON prompt. Returned names are normalized, de-duplicated, and stripped
of anything the caller excluded.
"""

import json
import logging
import re
from typing import Optional, Sequence

from ..config import config
from ..errors import GenerationError
from ..models import Candidate, StyleHints
from ..providers.base import ModelProvider, ProviderError
from ..providers.tools import GENERATE_TOOL
from .prompts import GENERATOR_SYSTEM_PROMPT, format_generator_prompt

logger = logging.getLogger(__name__)

_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$")
_VALID_NAME = re.compile(r"^[a-z0-9][a-z0-9._-]{0,63}$")


def _is_valid_name(name: str) -> bool:
    return bool(_VALID_NAME.match(name))


def _to_candidate(item) -> Optional[Candidate]:
    if isinstance(item, str):
        candidate = Candidate(name=item)
    elif isinstance(item, dict) and item.get("name"):
        candidate = Candidate(
            name=str(item["name"]),
            rationale=str(item.get("rationale") or ""),
            source=item.get("source") or None,
        )
    else:
        return None
    return candidate if _is_valid_name(candidate.name) else None


def parse_candidates(content: str) -> list[Candidate]:
    """
    Parse candidates from a text response.

    Accepts a JSON array (optionally in a code fence) of objects or strings,
    or an object with a "names" array.

    Raises:
        GenerationError: If no JSON can be found
    """
    text = _FENCE.sub("", content.strip())
    match = re.search(r"\[[\s\S]*\]|\{[\s\S]*\}", text)
    if not match:
        raise GenerationError(f"No JSON in generator response: {content[:200]!r}")

    try:
        data = json.loads(match.group())
    except json.JSONDecodeError as e:
        raise GenerationError(f"Failed to parse generator response as JSON: {e}") from e

    if isinstance(data, dict):
        data = data.get("names", [])
    if not isinstance(data, list):
        raise GenerationError("Generator response is not a list of names")

    return [c for c in (_to_candidate(item) for item in data) if c is not None]


class GeneratorAgent:
    """
    Name generator.

    Uses a higher temperature for the first batch and a slightly lower
    "refine" temperature once there are exclusions to steer around.
    """

    def __init__(
        self,
        provider: ModelProvider,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        refine_temperature: Optional[float] = None,
    ):
        """
        Args:
            provider: Model provider to use
            model: Model alias or id (config generate_model if not specified)
        """
        self.provider = provider
        self.model = model or config.models.generate_model
        self.temperature = temperature if temperature is not None else config.models.generate_temperature
        self.refine_temperature = (
            refine_temperature if refine_temperature is not None else config.models.refine_temperature
        )
        self.last_usage: dict = {}

    async def generate(
        self,
        description: str,
        count: int,
        excluded_names: Sequence[str] = (),
        style_hints: Optional[StyleHints] = None,
    ) -> list[Candidate]:
        """
        Generate name candidates.

        Args:
            description: What the project does
            count: Number of names wanted
            excluded_names: Names that must not come back
            style_hints: Style, sources and feedback

        Returns:
            Up to `count` new candidates (possibly fewer, possibly none)

        Raises:
            GenerationError: If the provider fails or the response is unusable
        """
        prompt = format_generator_prompt(description, count, list(excluded_names), style_hints)
        temperature = self.refine_temperature if excluded_names else self.temperature

        candidates = None
        if self.provider.supports_tools:
            try:
                candidates = await self._generate_with_tools(prompt, temperature)
            except ProviderError as e:
                logger.warning(f"Tool calling failed, falling back to JSON prompt: {e}")

        if candidates is None:
            try:
                response = await self.provider.generate(
                    prompt=prompt,
                    system=GENERATOR_SYSTEM_PROMPT,
                    model=self.model,
                    temperature=temperature,
                )
            except ProviderError as e:
                raise GenerationError(f"Name generation failed: {e}") from e
            self._record_usage(response)
            candidates = parse_candidates(response.content)

        excluded = {n.lower() for n in excluded_names}
        seen = set()
        unique = []
        for c in candidates:
            if c.name in excluded or c.name in seen:
                continue
            seen.add(c.name)
            unique.append(c)

        logger.debug(f"Generated {len(unique)} new names ({len(candidates)} returned)")
        return unique[:count]

    async def _generate_with_tools(self, prompt: str, temperature: float) -> list[Candidate]:
        response = await self.provider.generate_with_tools(
            prompt=prompt,
            tools=[GENERATE_TOOL],
            system=GENERATOR_SYSTEM_PROMPT,
            model=self.model,
            temperature=temperature,
            tool_choice=GENERATE_TOOL.name,
        )
        self._record_usage(response)

        if not response.has_tool_call:
            logger.debug("Model didn't use tool, falling back to content parsing")
            return parse_candidates(response.content)

        candidates = []
        for arguments in response.tool_arguments(GENERATE_TOOL.name):
            for item in arguments.get("names", []):
                candidate = _to_candidate(item)
                if candidate is not None:
                    candidates.append(candidate)
        return candidates

    def _record_usage(self, response) -> None:
        self.last_usage = {
            "input_tokens": response.input_tokens,
            "output_tokens": response.output_tokens,
        }
