"""
Judge agent - scores name candidates

One call scores a whole batch. Responses are read from a tool call, then a
fenced JSON block, then a bare JSON array, then a markdown table.
"""

import json
import logging
import re
from typing import Optional, Sequence

from ..config import config
from ..errors import ScoringError
from ..models import Candidate, NameScore, Verdict
from ..providers.base import ModelProvider, ProviderError
from ..providers.tools import JUDGE_TOOL
from .prompts import JUDGE_SYSTEM_PROMPT, format_judge_prompt

logger = logging.getLogger(__name__)

_FENCED_JSON = re.compile(r"```json\s*([\s\S]*?)\s*```")
_BARE_ARRAY = re.compile(r"\[[\s\S]*\]")
_TABLE_SEPARATOR = re.compile(r"^\s*\|[-:\s|]+\|\s*$")


def _parse_json_scores(text: str) -> Optional[list[NameScore]]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        return None
    if isinstance(data, dict):
        data = data.get("scores")
    if not isinstance(data, list):
        return None
    return [NameScore.from_dict(item) for item in data if isinstance(item, dict)]


def _to_int(value: str) -> int:
    match = re.search(r"\d+", value)
    return int(match.group()) if match else 0


def _to_float(value: str) -> float:
    match = re.search(r"\d+(?:\.\d+)?", value)
    return float(match.group()) if match else 0.0


def parse_score_table(content: str) -> list[NameScore]:
    """
    Parse a markdown table with columns
    Name | Typ | Mem | Mean | Uniq | Risk | Overall | Verdict | Weaknesses.
    """
    scores = []
    in_table = False

    for line in content.splitlines():
        if "|" in line and "name" in line.lower() and not in_table:
            in_table = True
            continue
        if not in_table or "|" not in line or _TABLE_SEPARATOR.match(line):
            continue

        cells = [c.strip() for c in line.strip().strip("|").split("|")]
        if len(cells) < 8:
            continue

        name, typ, mem, mean, uniq, risk, overall, verdict, *rest = cells
        scores.append(NameScore.from_dict({
            "name": name.replace("**", "").strip(),
            "typability": _to_int(typ),
            "memorability": _to_int(mem),
            "meaning": _to_int(mean),
            "uniqueness": _to_int(uniq),
            "cultural_risk": _to_int(risk),
            "overall": _to_float(overall),
            "verdict": verdict.split()[-1] if verdict.split() else "reject",
            "weaknesses": " ".join(rest).strip(),
        }))

    return scores


def parse_judge_response(content: str) -> list[NameScore]:
    """
    Parse scores from a text response.

    Raises:
        ScoringError: If no scores can be found
    """
    fenced = _FENCED_JSON.search(content)
    if fenced:
        scores = _parse_json_scores(fenced.group(1))
        if scores:
            return scores

    bare = _BARE_ARRAY.search(content)
    if bare:
        scores = _parse_json_scores(bare.group())
        if scores:
            return scores

    scores = parse_score_table(content)
    if scores:
        return scores

    raise ScoringError(f"Could not parse scores from judge response: {content[:200]!r}")


class JudgeAgent:
    """Scores a batch of candidates with one model call."""

    def __init__(
        self,
        provider: ModelProvider,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
    ):
        self.provider = provider
        self.model = model or config.models.judge_model
        self.temperature = temperature if temperature is not None else config.models.judge_temperature
        self.last_usage: dict = {}

    async def score(self, description: str, candidates: Sequence[Candidate]) -> list[NameScore]:
        """
        Score candidates.

        Args:
            description: What the project does
            candidates: Names to score

        Returns:
            One NameScore per candidate the judge answered for, in candidate order

        Raises:
            ScoringError: If the provider fails, the response is unusable,
                or none of the candidates were scored
        """
        if not candidates:
            return []

        prompt = format_judge_prompt(description, candidates)

        scores = None
        if self.provider.supports_tools:
            try:
                scores = await self._score_with_tools(prompt)
            except ProviderError as e:
                logger.warning(f"Tool calling failed, falling back to text scoring: {e}")

        if scores is None:
            try:
                response = await self.provider.generate(
                    prompt=prompt,
                    system=JUDGE_SYSTEM_PROMPT,
                    model=self.model,
                    temperature=self.temperature,
                )
            except ProviderError as e:
                raise ScoringError(f"Name scoring failed: {e}") from e
            self.last_usage = {"input_tokens": response.input_tokens, "output_tokens": response.output_tokens}
            scores = parse_judge_response(response.content)

        by_name = {s.name: s for s in scores}
        ordered = [by_name[c.name] for c in candidates if c.name in by_name]
        if not ordered:
            raise ScoringError(f"Judge returned no scores for any of {len(candidates)} candidates")
        missing = [c.name for c in candidates if c.name not in by_name]
        if missing:
            logger.debug(f"Judge returned no score for: {', '.join(missing)}")

        summary = {v.value: sum(1 for s in ordered if s.verdict == v) for v in Verdict}
        logger.info(f"Scored {len(ordered)} names: {summary}")
        return ordered

    async def _score_with_tools(self, prompt: str) -> list[NameScore]:
        response = await self.provider.generate_with_tools(
            prompt=prompt,
            tools=[JUDGE_TOOL],
            system=JUDGE_SYSTEM_PROMPT,
            model=self.model,
            temperature=self.temperature,
            tool_choice=JUDGE_TOOL.name,
        )
        self.last_usage = {"input_tokens": response.input_tokens, "output_tokens": response.output_tokens}

        if not response.has_tool_call:
            return parse_judge_response(response.content)

        scores = []
        for arguments in response.tool_arguments(JUDGE_TOOL.name):
            scores.extend(
                NameScore.from_dict(item) for item in arguments.get("scores", []) if isinstance(item, dict)
            )
        if not scores:
            raise ScoringError("Judge tool call returned no scores")
        return scores
