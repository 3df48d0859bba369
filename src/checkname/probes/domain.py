"""
Domain probes over RDAP (Registration Data Access Protocol).

RDAP is the IETF replacement for WHOIS: a registered domain answers with
JSON, an unregistered one with 404. The RDAP server for a TLD comes from
IANA's bootstrap file, fetched once per process. Google's registry is
pinned for .dev since it answers directly.
"""

import logging
from typing import Optional

import httpx

from ..models import ProbeCategory, ProbeResult
from .base import Probe

logger = logging.getLogger(__name__)

IANA_RDAP_BOOTSTRAP = "https://data.iana.org/rdap/dns.json"

# TLD -> RDAP server, filled on first use
_bootstrap_cache: dict[str, str] = {}


def parse_bootstrap(data: dict) -> dict[str, str]:
    """
    Build a TLD -> RDAP server mapping from IANA's bootstrap document.

    Args:
        data: Parsed dns.json ({"services": [[tlds, servers], ...]})

    Returns:
        dict mapping lowercase TLD -> server URL without trailing slash
    """
    tld_map = {}
    for entry in data.get("services", []):
        tlds, servers = entry[0], entry[1]
        if servers:
            server = servers[0].rstrip("/")
            for tld in tlds:
                tld_map[tld.lower()] = server
    return tld_map


async def get_rdap_server(tld: str, client: httpx.AsyncClient) -> Optional[str]:
    """
    Get the RDAP server for a TLD, fetching the bootstrap file if needed.

    Returns:
        Server URL or None if the TLD has no RDAP service
    """
    if not _bootstrap_cache:
        response = await client.get(IANA_RDAP_BOOTSTRAP)
        response.raise_for_status()
        _bootstrap_cache.update(parse_bootstrap(response.json()))
        logger.debug(f"Loaded RDAP bootstrap for {len(_bootstrap_cache)} TLDs")
    return _bootstrap_cache.get(tld.lower())


def clear_bootstrap_cache() -> None:
    _bootstrap_cache.clear()


class RdapDomainProbe(Probe):
    """
    Check `<name>.<tld>` against the TLD's RDAP server.

    404 means available, 200 means registered, 429 and everything else is
    an error.
    """

    category = ProbeCategory.DOMAIN

    def __init__(self, tld: str, rdap_server: Optional[str] = None, **kwargs):
        """
        Args:
            tld: Top-level domain without the dot
            rdap_server: Pin the RDAP server instead of resolving it via IANA
        """
        super().__init__(**kwargs)
        self.tld = tld.lower()
        self.name = f"domain-{self.tld}"
        self.rdap_server = rdap_server.rstrip("/") if rdap_server else None

    async def _check(self, name: str, client: httpx.AsyncClient) -> ProbeResult:
        domain = f"{name.lower()}.{self.tld}"

        server = self.rdap_server or await get_rdap_server(self.tld, client)
        if not server:
            return self.failed(name, f"No RDAP server found for TLD .{self.tld}")

        response = await client.get(
            f"{server}/domain/{domain}",
            headers={"Accept": "application/rdap+json, application/json"},
        )
        if response.status_code == 404:
            return self.available(name)
        if response.status_code == 200:
            return self.taken(name, f"https://{domain}")
        if response.status_code == 429:
            return self.failed(name, "Rate limited - try again later")
        return self.failed(name, f"HTTP {response.status_code}")
