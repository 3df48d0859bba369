"""
Tool definitions for model function calling.

One tool for suggesting names and one for scoring them, plus converters for
the Anthropic and OpenAI tool formats.
"""

from typing import Any, Dict, List

from .base import ToolDefinition


GENERATE_TOOL = ToolDefinition(
    name="suggest_names",
    description="Suggest project name candidates. Call this tool with your list of names.",
    parameters={
        "type": "object",
        "properties": {
            "names": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "name": {
                            "type": "string",
                            "description": "The name, lowercase, no spaces",
                        },
                        "rationale": {
                            "type": "string",
                            "description": "One sentence on why it fits",
                        },
                        "source": {
                            "type": "string",
                            "description": "Language or word source, e.g. 'Latin'",
                        },
                    },
                    "required": ["name", "rationale"],
                },
            }
        },
        "required": ["names"],
    },
)

_SUBSCORE = {"type": "integer", "minimum": 1, "maximum": 5}

JUDGE_TOOL = ToolDefinition(
    name="score_names",
    description="Score project name candidates. Call this tool with one entry per name.",
    parameters={
        "type": "object",
        "properties": {
            "scores": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "name": {"type": "string"},
                        "typability": {**_SUBSCORE, "description": "Easy to type, no awkward key combos"},
                        "memorability": {**_SUBSCORE, "description": "Sticks in the mind"},
                        "meaning": {**_SUBSCORE, "description": "Relevant to the project's purpose"},
                        "uniqueness": {**_SUBSCORE, "description": "Stands out, not generic"},
                        "cultural_risk": {**_SUBSCORE, "description": "1 = safe, 5 = problematic"},
                        "overall": {"type": "number", "minimum": 1, "maximum": 5},
                        "verdict": {"type": "string", "enum": ["strong", "consider", "reject"]},
                        "weaknesses": {"type": "string"},
                    },
                    "required": ["name", "overall", "verdict"],
                },
            }
        },
        "required": ["scores"],
    },
)


def to_anthropic_tool(tool: ToolDefinition) -> Dict[str, Any]:
    return {
        "name": tool.name,
        "description": tool.description,
        "input_schema": tool.parameters,
    }


def to_openai_tool(tool: ToolDefinition) -> Dict[str, Any]:
    """OpenAI function format, which OpenRouter also accepts."""
    return {
        "type": "function",
        "function": {
            "name": tool.name,
            "description": tool.description,
            "parameters": tool.parameters,
        },
    }


def tools_to_anthropic(tools: List[ToolDefinition]) -> List[Dict[str, Any]]:
    return [to_anthropic_tool(t) for t in tools]


def tools_to_openai(tools: List[ToolDefinition]) -> List[Dict[str, Any]]:
    return [to_openai_tool(t) for t in tools]
