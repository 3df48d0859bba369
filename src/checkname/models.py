"""
Core data types shared by probes, the aggregator and the discovery loop.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class ProbeCategory(str, Enum):
    """What kind of service a probe asks."""
    PACKAGE = "package"
    REPOSITORY = "repository"
    DOMAIN = "domain"
    TRADEMARK = "trademark"
    UNIQUENESS = "uniqueness"


class ResultKind(str, Enum):
    """How a probe answered."""
    DETERMINED = "determined"
    MANUAL_CHECK = "manual_check"
    FAILED = "failed"


class Verdict(str, Enum):
    """Categorical quality judgment from the scorer."""
    STRONG = "strong"
    CONSIDER = "consider"
    REJECT = "reject"

    @classmethod
    def parse(cls, value) -> "Verdict":
        """Coerce a scorer's verdict string; anything unrecognised is a reject."""
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.REJECT


_WHITESPACE = re.compile(r"\s+")


def normalize_name(raw: str) -> str:
    """Lowercase a name and join whitespace-separated words with hyphens."""
    return _WHITESPACE.sub("-", raw.strip().lower())


@dataclass(frozen=True)
class Candidate:
    """A generated name candidate."""
    name: str
    rationale: str = ""
    source: Optional[str] = None  # origin tag, e.g. "Latin"

    def __post_init__(self):
        object.__setattr__(self, "name", normalize_name(self.name))

    def to_dict(self) -> dict:
        return {"name": self.name, "rationale": self.rationale, "source": self.source}


@dataclass
class VariantResult:
    """One sub-query outcome inside a variant probe."""
    variant: str
    available: bool
    url: Optional[str] = None

    def to_dict(self) -> dict:
        return {"variant": self.variant, "available": self.available, "url": self.url}


@dataclass
class ProbeResult:
    """
    Outcome of one probe for one name.

    `available` is only meaningful when kind is DETERMINED and the category
    is not UNIQUENESS. Manual-check results carry a note in `error` and a
    URL for the human to follow.
    """
    name: str
    probe: str
    category: ProbeCategory
    kind: ResultKind
    available: bool = False
    url: Optional[str] = None
    error: Optional[str] = None
    count: Optional[int] = None
    active_count: Optional[int] = None
    variants: Optional[list[VariantResult]] = None
    degraded: bool = False

    @classmethod
    def determined(
        cls,
        name: str,
        probe: str,
        category: ProbeCategory,
        available: bool,
        url: Optional[str] = None,
        **extra,
    ) -> "ProbeResult":
        return cls(
            name=name,
            probe=probe,
            category=category,
            kind=ResultKind.DETERMINED,
            available=available,
            url=url,
            **extra,
        )

    @classmethod
    def manual(
        cls,
        name: str,
        probe: str,
        category: ProbeCategory,
        url: str,
        note: str,
    ) -> "ProbeResult":
        return cls(
            name=name,
            probe=probe,
            category=category,
            kind=ResultKind.MANUAL_CHECK,
            available=True,
            url=url,
            error=note,
        )

    @classmethod
    def failed(
        cls,
        name: str,
        probe: str,
        category: ProbeCategory,
        error: str,
    ) -> "ProbeResult":
        return cls(
            name=name,
            probe=probe,
            category=category,
            kind=ResultKind.FAILED,
            available=False,
            error=error,
        )

    @property
    def is_manual(self) -> bool:
        return self.kind == ResultKind.MANUAL_CHECK

    @property
    def is_failed(self) -> bool:
        return self.kind == ResultKind.FAILED

    def to_dict(self) -> dict:
        data = {
            "name": self.name,
            "probe": self.probe,
            "category": self.category.value,
            "kind": self.kind.value,
            "available": self.available,
            "url": self.url,
            "error": self.error,
        }
        if self.count is not None:
            data["count"] = self.count
        if self.active_count is not None:
            data["active_count"] = self.active_count
        if self.variants is not None:
            data["variants"] = [v.to_dict() for v in self.variants]
        if self.degraded:
            data["degraded"] = True
        return data


@dataclass
class AggregationSummary:
    """All probe results for one name, tallied."""
    name: str
    results: list[ProbeResult] = field(default_factory=list)
    total: int = 0
    available_count: int = 0
    manual_check_count: int = 0
    error_count: int = 0

    @property
    def taken_count(self) -> int:
        return self.total - self.available_count - self.error_count

    @property
    def availability_ratio(self) -> float:
        """Share of binary probes reporting available; 0 when there are none."""
        if self.total == 0:
            return 0.0
        return self.available_count / self.total

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "results": [r.to_dict() for r in self.results],
            "summary": {
                "total": self.total,
                "available": self.available_count,
                "taken": self.taken_count,
                "errors": self.error_count,
                "manual_check": self.manual_check_count,
                "availability": round(self.availability_ratio, 4),
            },
        }


@dataclass
class NameScore:
    """Scores for one name from the judge (sub-scores 1-5)."""
    name: str
    overall: float
    verdict: Verdict
    typability: int = 0
    memorability: int = 0
    meaning: int = 0
    uniqueness: int = 0
    cultural_risk: int = 0  # 1 = safe, 5 = problematic
    weaknesses: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "NameScore":
        """Create from dict (parsed from a JSON or tool-call response)."""
        def as_int(key: str, *aliases: str) -> int:
            for k in (key, *aliases):
                if data.get(k) is not None:
                    try:
                        return int(float(data[k]))
                    except (TypeError, ValueError):
                        return 0
            return 0

        try:
            overall = float(data.get("overall", 0) or 0)
        except (TypeError, ValueError):
            overall = 0.0

        return cls(
            name=normalize_name(str(data.get("name", ""))),
            overall=overall,
            verdict=Verdict.parse(data.get("verdict", "reject")),
            typability=as_int("typability"),
            memorability=as_int("memorability"),
            meaning=as_int("meaning", "story"),
            uniqueness=as_int("uniqueness"),
            cultural_risk=as_int("cultural_risk", "culturalRisk"),
            weaknesses=str(data.get("weaknesses", "") or ""),
        )

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "typability": self.typability,
            "memorability": self.memorability,
            "meaning": self.meaning,
            "uniqueness": self.uniqueness,
            "cultural_risk": self.cultural_risk,
            "overall": self.overall,
            "verdict": self.verdict.value,
            "weaknesses": self.weaknesses,
        }


@dataclass
class ScoredCandidate:
    """A candidate that passed the availability threshold and was judged."""
    candidate: Candidate
    availability: float
    available_checks: int
    total_checks: int
    score: NameScore
    passes_score: bool = False
    passes_verdict: bool = False

    @property
    def name(self) -> str:
        return self.candidate.name

    @property
    def accepted(self) -> bool:
        return self.passes_score and self.passes_verdict

    def to_dict(self) -> dict:
        return {
            **self.candidate.to_dict(),
            "availability": round(self.availability, 4),
            "available_checks": self.available_checks,
            "total_checks": self.total_checks,
            "score": self.score.to_dict(),
        }


@dataclass
class StyleHints:
    """Steering for the generator."""
    style: str = "all"  # short | word | compound | all
    sources: list[str] = field(default_factory=list)
    feedback: Optional[str] = None
