"""
Prompt templates for the name generator and judge

All prompt text lives here. The generator is asked for JSON (or a tool
call); the judge for a fenced JSON array, with a markdown table accepted as
a fallback.
"""

from typing import Optional, Sequence

from ..models import Candidate, StyleHints

# =============================================================================
# GENERATOR PROMPTS
# =============================================================================

GENERATOR_SYSTEM_PROMPT = """You are a naming expert for software projects: CLIs, libraries, frameworks and developer tools.

Great project names are:
1. **Short**: easy to type dozens of times a day in a terminal
2. **Memorable**: one hearing is enough to recall it
3. **Meaningful**: they hint at what the project does, often through another language or a metaphor
4. **Unclaimed**: most dictionary words are already taken on npm, PyPI and GitHub, so look past the obvious

Avoid hyphens, digits, and names that mean something unfortunate in a major language.

Output format: a JSON array of objects with "name", "rationale" and "source".
Example: [{"name": "ferro", "rationale": "Latin for iron; sturdy and fast", "source": "Latin"}]
"""

GENERATOR_PROMPT = """Generate {count} project name candidates.

## Project

{description}

## Style

{style_guidance}
{source_guidance}
{excluded_section}
## Instructions

Return exactly {count} names, all lowercase with no spaces. Output only valid JSON in this format:
[{{"name": "...", "rationale": "...", "source": "..."}}]
"""

STYLE_GUIDANCE = {
    "short": "Focus on ultra-short names (2-4 characters) like rg, fd, jq, uv.",
    "word": "Focus on single evocative words (4-6 characters) like Rust, Vite, Bun, Swift.",
    "compound": "Focus on short compound names (6-10 characters) like FastAPI, ripgrep.",
}
DEFAULT_STYLE_GUIDANCE = "Mix of ultra-short (2-4 chars), single words (4-6 chars), and short compounds."

DEFAULT_SOURCES = ["German", "Latin", "Greek", "Japanese", "Spanish", "English"]

EXCLUDED_SECTION = """
**Previously Suggested Names (DO NOT suggest these again):**
{names}

These names have already been suggested or are unavailable. Generate completely different names.
"""

FEEDBACK_SECTION = """
**User Feedback:**
{feedback}
"""


def format_generator_prompt(
    description: str,
    count: int,
    excluded_names: Optional[Sequence[str]] = None,
    hints: Optional[StyleHints] = None,
) -> str:
    """
    Format the generation prompt.

    Args:
        description: What the project does
        count: Number of names wanted
        excluded_names: Names that must not be suggested again
        hints: Style, language sources and free-form feedback

    Returns:
        Formatted prompt string
    """
    hints = hints or StyleHints()
    sources = hints.sources or DEFAULT_SOURCES
    if hints.sources:
        source_guidance = f"Draw primarily from these language sources: {', '.join(sources)}."
    else:
        source_guidance = f"Draw from {', '.join(sources[:-1])}, and {sources[-1]} word sources."

    excluded_section = ""
    if excluded_names:
        excluded_section += EXCLUDED_SECTION.format(names=", ".join(excluded_names))
    if hints.feedback:
        excluded_section += FEEDBACK_SECTION.format(feedback=hints.feedback)

    return GENERATOR_PROMPT.format(
        count=count,
        description=description,
        style_guidance=STYLE_GUIDANCE.get(hints.style, DEFAULT_STYLE_GUIDANCE),
        source_guidance=source_guidance,
        excluded_section=excluded_section,
    )


# =============================================================================
# JUDGE PROMPTS
# =============================================================================

JUDGE_SYSTEM_PROMPT = """You are a critical reviewer of software project names. Be honest; most names are mediocre.

Score each name from 1 (poor) to 5 (excellent) on:
- **typability**: easy to type, no awkward key combinations
- **memorability**: sticks in the mind after one hearing
- **meaning**: relevant to the project's purpose
- **uniqueness**: stands out, not generic or easily confused
- **cultural_risk**: 1 = safe everywhere, 5 = problematic in some language or culture

Then give an **overall** score (1.0-5.0, one decimal) and a **verdict**:
- strong: would ship with this name
- consider: workable, with reservations
- reject: do not use

List the main **weaknesses** in a few words.
"""

JUDGE_PROMPT = """Score these {count} names for the project below.

## Project

{description}

## Names

{names}

## Output

Respond with a JSON array inside a ```json code block, one object per name:
```json
[{{"name": "...", "typability": 4, "memorability": 4, "meaning": 3, "uniqueness": 4, "cultural_risk": 1, "overall": 3.8, "verdict": "consider", "weaknesses": "..."}}]
```
"""


def format_candidate_line(candidate: Candidate) -> str:
    line = f"- **{candidate.name}**"
    if candidate.source:
        line += f" [{candidate.source}]"
    if candidate.rationale:
        line += f": {candidate.rationale}"
    return line


def format_judge_prompt(description: str, candidates: Sequence[Candidate]) -> str:
    """Format the scoring prompt for a batch of candidates."""
    return JUDGE_PROMPT.format(
        count=len(candidates),
        description=description,
        names="\n".join(format_candidate_line(c) for c in candidates),
    )
