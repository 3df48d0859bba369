"""
Generation and scoring agents

GeneratorAgent suggests names, JudgeAgent scores them.
"""

from .generator import GeneratorAgent, parse_candidates
from .judge import JudgeAgent, parse_judge_response, parse_score_table

__all__ = [
    "GeneratorAgent",
    "JudgeAgent",
    "parse_candidates",
    "parse_judge_response",
    "parse_score_table",
]
