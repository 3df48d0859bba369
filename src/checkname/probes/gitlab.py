"""GitLab project probe."""

import httpx

from ..models import ProbeCategory, ProbeResult
from .base import Probe, encode


class GitLabProbe(Probe):
    """
    GitLab has no direct project lookup, so page through search results
    looking for an exact name. Only the first few pages are read to stay
    under GitLab's aggressive rate limits.
    """

    name = "gitlab"
    category = ProbeCategory.REPOSITORY

    SEARCH_URL = "https://gitlab.com/api/v4/projects?search={name}&per_page=100&page={page}"
    MAX_PAGES = 3

    async def _check(self, name: str, client: httpx.AsyncClient) -> ProbeResult:
        target = name.lower()

        for page in range(1, self.MAX_PAGES + 1):
            response = await client.get(self.SEARCH_URL.format(name=encode(name), page=page))
            if response.status_code == 429:
                return self.failed(name, "Rate limited by GitLab")
            if response.status_code != 200:
                return self.failed(name, f"HTTP {response.status_code}")

            projects = response.json()
            if not projects:
                break

            for project in projects:
                if str(project.get("name", "")).lower() == target:
                    return self.taken(name, project.get("web_url"))

        return self.available(name)
