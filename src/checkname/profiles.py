"""
Probe profiles

A profile is a named, curated subset of probes. An explicit probe list
always wins over a profile.
"""

from dataclasses import dataclass, field
from typing import Optional

import httpx

from .config import config
from .errors import ConfigurationError
from .probes import PROBE_NAMES, Probe, get_probes


@dataclass
class Profile:
    name: str
    description: str
    probes: list[str] = field(default_factory=list)


_REPO = ["github", "github-org"]
_TRADEMARK = ["uspto", "google-software", "google-opensource", "fossmarks"]

PROFILES: dict[str, Profile] = {
    p.name: p for p in [
        Profile("minimal", "Quick check: npm, PyPI and a .dev domain", ["npm", "pypi", "domain-dev"]),
        Profile("node", "JavaScript projects", ["npm", "npm-org", *_REPO, "domain-dev"]),
        Profile("python", "Python projects", ["pypi", "homebrew", *_REPO, "domain-dev"]),
        Profile("rust", "Rust projects", ["crates.io", "homebrew", *_REPO, "domain-dev"]),
        Profile("go", "Go projects", ["go", "homebrew", *_REPO, "domain-dev"]),
        Profile(
            "default",
            "Common registries, GitHub and a .dev domain",
            ["npm", "pypi", "crates.io", "go", "homebrew", *_REPO, "gitlab",
             "domain-dev", "github-uniqueness"],
        ),
        Profile(
            "full",
            "Every automated probe",
            [n for n in PROBE_NAMES if n not in _TRADEMARK],
        ),
        Profile("complete", "Every probe including manual trademark helpers", list(PROBE_NAMES)),
    ]
}


def list_profiles() -> list[Profile]:
    return list(PROFILES.values())


def get_profile(name: str) -> Profile:
    """
    Raises:
        ConfigurationError: If no profile has this name
    """
    profile = PROFILES.get(name.strip().lower())
    if profile is None:
        raise ConfigurationError(
            f"Unknown profile: {name!r}. Available: {', '.join(PROFILES)}"
        )
    return profile


def split_names(value: Optional[str]) -> list[str]:
    """Split a comma-separated CLI value."""
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def resolve_probe_names(
    profile: Optional[str] = None,
    probes: Optional[list[str]] = None,
    skip: Optional[list[str]] = None,
) -> list[str]:
    """
    Decide which probes to run.

    Args:
        profile: Profile name (config default if None)
        probes: Explicit probe names; overrides the profile
        skip: Probe names to drop from the result

    Returns:
        Validated, de-duplicated probe names

    Raises:
        ConfigurationError: Unknown profile or probe, or nothing left to run
    """
    if probes:
        names = [n.strip().lower() for n in probes]
    else:
        names = list(get_profile(profile or config.find.default_profile).probes)

    unknown = [n for n in names + [s.strip().lower() for s in skip or []] if n not in PROBE_NAMES]
    if unknown:
        raise ConfigurationError(
            f"Unknown probe(s): {', '.join(unknown)}. Available: {', '.join(PROBE_NAMES)}"
        )

    skipped = {s.strip().lower() for s in skip or []}
    resolved = []
    for n in names:
        if n not in skipped and n not in resolved:
            resolved.append(n)

    if not resolved:
        raise ConfigurationError("No probes selected")
    return resolved


def resolve_probes(
    profile: Optional[str] = None,
    probes: Optional[list[str]] = None,
    skip: Optional[list[str]] = None,
    client: Optional[httpx.AsyncClient] = None,
    timeout: Optional[float] = None,
) -> list[Probe]:
    """Like resolve_probe_names(), but builds the probe objects."""
    names = resolve_probe_names(profile=profile, probes=probes, skip=skip)
    return get_probes(names, client=client, timeout=timeout)
