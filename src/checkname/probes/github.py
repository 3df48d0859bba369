"""
GitHub probes

`github` and `github-uniqueness` search repositories and share one
rate-limit state, since the limit belongs to the token. `github-org` checks
the org namespace for a set of suffix variants.
"""

import logging
from abc import abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Optional

import httpx

from ..config import config
from ..models import ProbeCategory, ProbeResult, VariantResult
from .adaptive import AdaptiveProbe, RateLimitSignal, RateLimitState
from .base import UnexpectedStatus, encode
from .variants import VariantProber

logger = logging.getLogger(__name__)

GITHUB_API = "https://api.github.com"
API_VERSION = "2022-11-28"

# A repo with this many stars or fewer does not claim the name
MIN_STARS = 10
ACTIVE_YEARS = 5

ORG_SUFFIXES = [
    "", "-dev", "dev", "-org", "org", "-hq", "hq",
    "-io", "io", "-app", "app", "-labs", "labs", "-oss",
]

# Shared by every search probe authenticating with the same token
github_rate_limit = RateLimitState(label="github")


def github_headers(token: Optional[str] = None) -> dict[str, str]:
    headers = {
        "Accept": "application/vnd.github+json",
        "X-GitHub-Api-Version": API_VERSION,
    }
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


class _GitHubSearchProbe(AdaptiveProbe):
    """Repository search shared by the adaptive GitHub probes."""

    def __init__(self, state: Optional[RateLimitState] = None, **kwargs):
        super().__init__(state=state or github_rate_limit, **kwargs)

    def search_params(self, name: str) -> dict:
        return {"q": name}

    async def _search(self, name: str, client: httpx.AsyncClient, token: Optional[str]) -> httpx.Response:
        return await client.get(
            f"{GITHUB_API}/search/repositories",
            params=self.search_params(name),
            headers=github_headers(token),
        )

    async def check_primary(self, name: str, client: httpx.AsyncClient) -> ProbeResult:
        response = await self._search(name, client, self.token)
        if response.status_code in (403, 429):
            raise RateLimitSignal(response.status_code)
        if response.status_code != 200:
            return self.failed(name, f"HTTP {response.status_code}")
        return self.interpret(name, response.json())

    async def check_degraded(self, name: str, client: httpx.AsyncClient) -> ProbeResult:
        response = await self._search(name, client, None)
        if response.status_code != 200:
            raise UnexpectedStatus(response.status_code)
        return self.interpret(name, response.json())

    @abstractmethod
    def interpret(self, name: str, data: dict) -> ProbeResult:
        """Turn a search response into a result."""
        pass


class GitHubRepoProbe(_GitHubSearchProbe):
    """Taken if a repository with exactly this name has more than a handful of stars."""

    name = "github"
    category = ProbeCategory.REPOSITORY

    def interpret(self, name: str, data: dict) -> ProbeResult:
        target = name.lower()
        matches = sorted(
            (
                item for item in data.get("items") or []
                if str(item.get("name", "")).lower() == target
                and (item.get("stargazers_count") or 0) > MIN_STARS
            ),
            key=lambda item: item.get("stargazers_count") or 0,
            reverse=True,
        )
        if matches:
            return self.taken(name, matches[0].get("html_url"))
        return self.available(name)


class GitHubUniquenessProbe(_GitHubSearchProbe):
    """
    How crowded is the name on GitHub?

    Reports `count` (starred repos with the name in their title) and
    `active_count` (those pushed in the last five years, among the first
    100 results). Advisory only; never an availability vote.
    """

    name = "github-uniqueness"
    category = ProbeCategory.UNIQUENESS

    def search_params(self, name: str) -> dict:
        return {"q": f"{name} in:name stars:>=1", "per_page": 100}

    def interpret(self, name: str, data: dict) -> ProbeResult:
        cutoff = datetime.now(timezone.utc) - timedelta(days=365 * ACTIVE_YEARS)
        active = 0
        for item in data.get("items") or []:
            pushed_at = _parse_timestamp(item.get("pushed_at"))
            if pushed_at and pushed_at >= cutoff:
                active += 1

        return self.available(
            name,
            url=(
                f"https://github.com/search?q={encode(name)}"
                "+in%3Aname+stars%3A%3E%3D1&type=repositories"
            ),
            count=int(data.get("total_count") or 0),
            active_count=active,
        )


class GitHubOrgProbe(VariantProber):
    """
    Is `name` (or a close variant) free as a GitHub organization?

    A 404 on the org lookup is confirmed against the user namespace, since
    orgs and personal accounts share one namespace.
    """

    name = "github-org"
    category = ProbeCategory.REPOSITORY
    suffixes = ORG_SUFFIXES

    def __init__(self, token: Optional[str] = None, **kwargs):
        super().__init__(**kwargs)
        self.token = token if token is not None else config.probes.github_token

    async def lookup(self, variant: str, client: httpx.AsyncClient) -> VariantResult:
        headers = github_headers(self.token)

        for kind in ("orgs", "users"):
            response = await client.get(f"{GITHUB_API}/{kind}/{encode(variant)}", headers=headers)
            if response.status_code == 200:
                url = response.json().get("html_url") or f"https://github.com/{variant}"
                return VariantResult(variant=variant, available=False, url=url)
            if response.status_code in (403, 429):
                raise UnexpectedStatus(response.status_code, "GitHub API rate limited")
            if response.status_code != 404:
                raise UnexpectedStatus(response.status_code)

        return VariantResult(variant=variant, available=True)
