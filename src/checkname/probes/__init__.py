"""
Probe registry

Every probe checkname knows about, keyed by name. Resolution is validated
against this closed set before any request is made.
"""

from typing import Callable, Optional

import httpx

from ..errors import ConfigurationError
from ..models import ProbeCategory
from .adaptive import AdaptiveProbe, ProbeMode, RateLimitSignal, RateLimitState
from .base import LookupProbe, Probe, UnexpectedStatus
from .domain import RdapDomainProbe
from .github import (
    GitHubOrgProbe,
    GitHubRepoProbe,
    GitHubUniquenessProbe,
    github_rate_limit,
)
from .gitlab import GitLabProbe
from .registries import (
    CratesProbe,
    GoProbe,
    HomebrewProbe,
    NixpkgsProbe,
    NpmOrgProbe,
    NpmProbe,
    NuGetProbe,
    PackagistProbe,
    PyPIProbe,
)
from .trademark import ManualProbe, trademark_probes
from .variants import VariantProber, run_in_waves

GOOGLE_DEV_RDAP = "https://pubapi.registry.google/rdap"


def _trademark(name: str) -> Callable[..., Probe]:
    def factory(**kwargs) -> Probe:
        for probe in trademark_probes(**kwargs):
            if probe.name == name:
                return probe
        raise ConfigurationError(f"Unknown trademark helper: {name}")
    return factory


# Display order: package, repository, domain, uniqueness, trademark
PROBE_FACTORIES: dict[str, Callable[..., Probe]] = {
    "npm": NpmProbe,
    "npm-org": NpmOrgProbe,
    "pypi": PyPIProbe,
    "crates.io": CratesProbe,
    "nuget": NuGetProbe,
    "go": GoProbe,
    "packagist": PackagistProbe,
    "homebrew": HomebrewProbe,
    "nixpkgs": NixpkgsProbe,
    "github": GitHubRepoProbe,
    "github-org": GitHubOrgProbe,
    "gitlab": GitLabProbe,
    "domain-dev": lambda **kw: RdapDomainProbe("dev", rdap_server=GOOGLE_DEV_RDAP, **kw),
    "domain-com": lambda **kw: RdapDomainProbe("com", **kw),
    "domain-io": lambda **kw: RdapDomainProbe("io", **kw),
    "github-uniqueness": GitHubUniquenessProbe,
    "uspto": _trademark("uspto"),
    "google-software": _trademark("google-software"),
    "google-opensource": _trademark("google-opensource"),
    "fossmarks": _trademark("fossmarks"),
}

PROBE_NAMES = list(PROBE_FACTORIES)


def get_probe(
    name: str,
    client: Optional[httpx.AsyncClient] = None,
    timeout: Optional[float] = None,
) -> Probe:
    """
    Build one probe by name (case-insensitive).

    Raises:
        ConfigurationError: If the name is not a known probe
    """
    key = name.strip().lower()
    if key not in PROBE_FACTORIES:
        raise ConfigurationError(
            f"Unknown probe: {name!r}. Available: {', '.join(PROBE_NAMES)}"
        )
    return PROBE_FACTORIES[key](client=client, timeout=timeout)


def get_probes(
    names: list[str],
    client: Optional[httpx.AsyncClient] = None,
    timeout: Optional[float] = None,
) -> list[Probe]:
    """Build probes by name, dropping duplicates and keeping order."""
    seen = set()
    probes = []
    for name in names:
        key = name.strip().lower()
        if key in seen:
            continue
        seen.add(key)
        probes.append(get_probe(key, client=client, timeout=timeout))
    return probes


def all_probes(**kwargs) -> list[Probe]:
    return get_probes(PROBE_NAMES, **kwargs)


def probes_by_category(category: ProbeCategory, **kwargs) -> list[Probe]:
    return [p for p in all_probes(**kwargs) if p.category == category]


__all__ = [
    "AdaptiveProbe",
    "CratesProbe",
    "GitHubOrgProbe",
    "GitHubRepoProbe",
    "GitHubUniquenessProbe",
    "GitLabProbe",
    "GoProbe",
    "HomebrewProbe",
    "LookupProbe",
    "ManualProbe",
    "NixpkgsProbe",
    "NpmOrgProbe",
    "NpmProbe",
    "NuGetProbe",
    "PackagistProbe",
    "Probe",
    "ProbeMode",
    "PROBE_NAMES",
    "PyPIProbe",
    "RateLimitSignal",
    "RateLimitState",
    "RdapDomainProbe",
    "UnexpectedStatus",
    "VariantProber",
    "all_probes",
    "get_probe",
    "get_probes",
    "github_rate_limit",
    "probes_by_category",
    "run_in_waves",
]
