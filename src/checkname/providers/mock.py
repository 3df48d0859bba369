"""
Mock provider for testing and offline runs

Returns deterministic name suggestions and scores without any API calls, so
`checkname find --mock` exercises the whole loop against real probes.
"""

import asyncio
import json
import random
import re
from dataclasses import dataclass
from typing import Callable, List, Optional

from .base import ModelProvider, ModelResponse, ProviderError

# Word stems the mock draws names from, tagged with their source
MOCK_WORDS = [
    ("ferro", "Latin"), ("kairo", "Greek"), ("blitz", "German"), ("sora", "Japanese"),
    ("vela", "Spanish"), ("tessel", "English"), ("nodus", "Latin"), ("hafen", "German"),
    ("kumo", "Japanese"), ("lumen", "Latin"), ("ostra", "Spanish"), ("zephy", "Greek"),
    ("quill", "English"), ("wabi", "Japanese"), ("stern", "German"), ("aether", "Greek"),
]

_COUNT_PATTERN = re.compile(r"Generate (\d+) project name", re.IGNORECASE)
_EXCLUDED_PATTERN = re.compile(r"DO NOT suggest these again\):?\*{0,2}\s*\n(.+)", re.IGNORECASE)
_LISTED_NAME_PATTERN = re.compile(r"^- \*\*([^*]+)\*\*", re.MULTILINE)


def generate_mock_names(count: int, excluded: Optional[List[str]] = None) -> List[dict]:
    """
    Deterministic candidates, skipping anything excluded.

    Args:
        count: Number of names wanted
        excluded: Names that must not be returned

    Returns:
        List of {"name", "rationale", "source"} dicts
    """
    excluded_set = {n.strip().lower() for n in excluded or []}
    names = []
    round_num = 0
    while len(names) < count:
        for stem, source in MOCK_WORDS:
            name = stem if round_num == 0 else f"{stem}{round_num}"
            if name in excluded_set:
                continue
            names.append({
                "name": name,
                "rationale": f"Built from the {source} stem '{stem}'",
                "source": source,
            })
            if len(names) == count:
                break
        round_num += 1
    return names


def score_mock_name(name: str) -> dict:
    """Deterministic scores: short, letter-only names do best."""
    length = len(name)
    typability = 5 if length <= 5 else 4 if length <= 8 else 3
    memorability = 5 if length <= 4 else 4 if length <= 6 else 3
    uniqueness = 2 if any(c.isdigit() for c in name) else 4
    meaning = 3
    cultural_risk = 1
    overall = round((typability + memorability + meaning + uniqueness + (6 - cultural_risk)) / 5, 1)
    verdict = "strong" if overall >= 4.0 else "consider" if overall >= 3.0 else "reject"
    return {
        "name": name,
        "typability": typability,
        "memorability": memorability,
        "meaning": meaning,
        "uniqueness": uniqueness,
        "cultural_risk": cultural_risk,
        "overall": overall,
        "verdict": verdict,
        "weaknesses": "Contains digits" if uniqueness < 4 else "",
    }


@dataclass
class MockProvider(ModelProvider):
    """
    Mock provider for testing.

    Configure with a fixed response or a response generator; otherwise the
    prompt is sniffed to decide between names and scores.
    """

    _name: str = "mock"
    _default_model: str = "mock-model-v1"
    fixed_response: Optional[str] = None
    response_generator: Optional[Callable[[str], str]] = None
    delay_seconds: float = 0.0
    fail_rate: float = 0.0  # Probability of raising an error
    token_count: int = 100

    @property
    def name(self) -> str:
        return self._name

    @property
    def default_model(self) -> str:
        return self._default_model

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
        if self.delay_seconds > 0:
            await asyncio.sleep(self.delay_seconds)

        if self.fail_rate > 0 and random.random() < self.fail_rate:
            raise ProviderError("Simulated mock provider failure")

        if self.fixed_response is not None:
            content = self.fixed_response
        elif self.response_generator is not None:
            content = self.response_generator(prompt)
        else:
            content = self._default_response(prompt)

        return ModelResponse(
            content=content,
            model=model or self._default_model,
            provider=self.name,
            usage={
                "input_tokens": len(prompt.split()) * 2,
                "output_tokens": self.token_count,
            },
        )

    def _default_response(self, prompt: str) -> str:
        count_match = _COUNT_PATTERN.search(prompt)
        if count_match:
            excluded_match = _EXCLUDED_PATTERN.search(prompt)
            excluded = excluded_match.group(1).split(",") if excluded_match else []
            names = generate_mock_names(int(count_match.group(1)), excluded)
            return json.dumps(names, indent=2)

        listed = _LISTED_NAME_PATTERN.findall(prompt)
        if listed:
            scores = [score_mock_name(n.strip().lower()) for n in listed]
            return "```json\n" + json.dumps(scores, indent=2) + "\n```"

        return json.dumps({"message": "Mock response generated", "prompt_length": len(prompt)})
