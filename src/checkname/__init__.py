"""
checkname - find a project name that is still free

Checks a name against package registries, code hosts, domains and
trademark search helpers, and can drive a model to generate, check and
judge names until enough good ones are found.
"""

__version__ = "0.1.0"

from .aggregator import aggregate
from .config import Config, config
from .errors import CheckNameError, CollaboratorError, ConfigurationError
from .finder import FindOptions, FindResult, FindStatus, NameFinder, generate_find_report
from .models import AggregationSummary, Candidate, NameScore, ProbeResult, ScoredCandidate
from .profiles import resolve_probes

__all__ = [
    "AggregationSummary",
    "Candidate",
    "CheckNameError",
    "CollaboratorError",
    "Config",
    "ConfigurationError",
    "FindOptions",
    "FindResult",
    "FindStatus",
    "NameFinder",
    "NameScore",
    "ProbeResult",
    "ScoredCandidate",
    "aggregate",
    "config",
    "generate_find_report",
    "resolve_probes",
]
