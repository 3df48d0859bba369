"""
Availability aggregation

Runs a set of probes against one name concurrently, waits for all of them,
and tallies the results.

Classification per result:
- uniqueness category: advisory, left out of every count
- manual check: counted separately, left out of the total
- failed: counted as an error (part of the total)
- otherwise available or taken

so that available + taken + errors == total.
"""

import asyncio
import logging
from enum import Enum
from typing import Sequence

from .models import AggregationSummary, ProbeCategory, ProbeResult, ResultKind
from .probes import Probe

logger = logging.getLogger(__name__)


class Classification(str, Enum):
    AVAILABLE = "available"
    TAKEN = "taken"
    MANUAL_CHECK = "manual_check"
    ERROR = "error"
    INFORMATIONAL = "informational"


def classify(result: ProbeResult) -> Classification:
    """Place one probe result in the tally."""
    if result.category == ProbeCategory.UNIQUENESS:
        return Classification.INFORMATIONAL
    if result.kind == ResultKind.MANUAL_CHECK or result.category == ProbeCategory.TRADEMARK:
        return Classification.MANUAL_CHECK
    if result.kind == ResultKind.FAILED:
        return Classification.ERROR
    if result.available:
        return Classification.AVAILABLE
    return Classification.TAKEN


def summarize(name: str, results: Sequence[ProbeResult]) -> AggregationSummary:
    """Tally already-collected results for one name."""
    summary = AggregationSummary(name=name, results=list(results))
    for result in results:
        kind = classify(result)
        if kind == Classification.AVAILABLE:
            summary.total += 1
            summary.available_count += 1
        elif kind == Classification.TAKEN:
            summary.total += 1
        elif kind == Classification.ERROR:
            summary.total += 1
            summary.error_count += 1
        elif kind == Classification.MANUAL_CHECK:
            summary.manual_check_count += 1
    return summary


async def aggregate(name: str, probes: Sequence[Probe]) -> AggregationSummary:
    """
    Check one name against every probe concurrently.

    Never fails fast: a slow probe only delays the summary, and a broken one
    becomes an error result.

    Args:
        name: Normalized candidate name
        probes: Probes to run

    Returns:
        AggregationSummary with results in probe order
    """
    outcomes = await asyncio.gather(
        *(probe.check(name) for probe in probes),
        return_exceptions=True,
    )

    results = []
    for probe, outcome in zip(probes, outcomes):
        if isinstance(outcome, BaseException):
            if isinstance(outcome, asyncio.CancelledError):
                raise outcome
            logger.error(f"{probe.name} raised for {name!r}: {outcome!r}")
            outcome = ProbeResult.failed(name, probe.name, probe.category, str(outcome))
        results.append(outcome)

    summary = summarize(name, results)
    logger.debug(
        f"{name}: {summary.available_count}/{summary.total} available, "
        f"{summary.error_count} errors, {summary.manual_check_count} manual"
    )
    return summary


async def aggregate_many(names: Sequence[str], probes: Sequence[Probe]) -> list[AggregationSummary]:
    """Aggregate several names concurrently, preserving order."""
    return list(await asyncio.gather(*(aggregate(name, probes) for name in names)))
