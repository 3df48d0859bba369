"""
Package registry probes

npm, PyPI, crates.io and NuGet expose direct lookups. Go, Packagist,
Homebrew and nixpkgs need a search or a pair of lookups.
"""

import asyncio
import re

import httpx

from ..models import ProbeCategory, ProbeResult
from .base import LookupProbe, Probe, encode


class NpmProbe(LookupProbe):
    name = "npm"
    lookup_url = "https://registry.npmjs.org/{name}"
    reference_url = "https://www.npmjs.com/package/{name}"


class NpmOrgProbe(LookupProbe):
    name = "npm-org"
    lookup_url = "https://registry.npmjs.org/-/org/{name}"
    reference_url = "https://www.npmjs.com/org/{name}"


class PyPIProbe(LookupProbe):
    name = "pypi"
    lookup_url = "https://pypi.org/pypi/{name}/json"
    reference_url = "https://pypi.org/project/{name}/"


class CratesProbe(LookupProbe):
    name = "crates.io"
    lookup_url = "https://crates.io/api/v1/crates/{name}"
    reference_url = "https://crates.io/crates/{name}"


class NuGetProbe(LookupProbe):
    name = "nuget"
    lookup_url = "https://api.nuget.org/v3/registration5-semver1/{name}/index.json"
    reference_url = "https://www.nuget.org/packages/{name}"
    lowercase = True


class GoProbe(Probe):
    """pkg.go.dev has no lookup API; read the result count off the search page."""

    name = "go"
    category = ProbeCategory.PACKAGE

    SEARCH_URL = "https://pkg.go.dev/search?q={name}&m=package"
    COUNT_PATTERN = re.compile(r"Showing <strong>(\d+)</strong>")

    async def _check(self, name: str, client: httpx.AsyncClient) -> ProbeResult:
        url = self.SEARCH_URL.format(name=encode(name))
        response = await client.get(url)
        if response.status_code != 200:
            return self.failed(name, f"HTTP {response.status_code}")

        match = self.COUNT_PATTERN.search(response.text)
        count = int(match.group(1)) if match else 0
        if count == 0:
            return self.available(name)
        return self.taken(name, url)


class PackagistProbe(Probe):
    """Packagist names are vendor/package, so search and match either form."""

    name = "packagist"
    category = ProbeCategory.PACKAGE

    SEARCH_URL = "https://packagist.org/search.json?q={name}"

    async def _check(self, name: str, client: httpx.AsyncClient) -> ProbeResult:
        response = await client.get(self.SEARCH_URL.format(name=encode(name)))
        if response.status_code != 200:
            return self.failed(name, f"HTTP {response.status_code}")

        target = name.lower()
        for package in response.json().get("results") or []:
            package_name = str(package.get("name", "")).lower()
            if package_name == target or package_name.endswith(f"/{target}"):
                return self.taken(name, f"https://packagist.org/search/?q={encode(name)}")
        return self.available(name)


class HomebrewProbe(Probe):
    """Taken if either a formula or a cask exists."""

    name = "homebrew"
    category = ProbeCategory.PACKAGE

    FORMULA_URL = "https://formulae.brew.sh/api/formula/{name}.json"
    CASK_URL = "https://formulae.brew.sh/api/cask/{name}.json"

    async def _check(self, name: str, client: httpx.AsyncClient) -> ProbeResult:
        formula, cask = await asyncio.gather(
            client.get(self.FORMULA_URL.format(name=encode(name))),
            client.get(self.CASK_URL.format(name=encode(name))),
        )

        for response in (formula, cask):
            if response.status_code not in (200, 404):
                return self.failed(name, f"HTTP {response.status_code}")

        if cask.status_code == 200:
            return self.taken(name, f"https://formulae.brew.sh/cask/{name}")
        if formula.status_code == 200:
            return self.taken(name, f"https://formulae.brew.sh/formula/{name}")
        return self.available(name)


class NixpkgsProbe(Probe):
    """
    Look in pkgs/by-name first, then fall back to a code search over the
    legacy all-packages.nix.
    """

    name = "nixpkgs"
    category = ProbeCategory.PACKAGE

    BY_NAME_URL = "https://api.github.com/repos/NixOS/nixpkgs/contents/pkgs/by-name/{prefix}/{name}"
    CODE_SEARCH_URL = (
        "https://api.github.com/search/code"
        "?q={name}+repo:NixOS/nixpkgs+filename:all-packages.nix"
    )
    REFERENCE_URL = "https://search.nixos.org/packages?query={name}"

    async def _check(self, name: str, client: httpx.AsyncClient) -> ProbeResult:
        lower = name.lower()
        reference = self.REFERENCE_URL.format(name=encode(name))

        response = await client.get(
            self.BY_NAME_URL.format(prefix=encode(lower[:2]), name=encode(lower))
        )
        if response.status_code == 200:
            return self.taken(name, reference)
        if response.status_code == 403:
            return self.failed(name, "GitHub API rate limited")
        if response.status_code != 404:
            return self.failed(name, f"GitHub API returned {response.status_code}")

        search = await client.get(self.CODE_SEARCH_URL.format(name=encode(name)))
        if search.status_code == 200 and search.json().get("total_count", 0) > 0:
            return self.taken(name, reference)
        return self.available(name)
