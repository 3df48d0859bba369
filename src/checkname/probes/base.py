"""
Probe contract

A probe asks one external service whether a name is free. `check()` never
raises: network faults, timeouts and unexpected statuses all come back as a
FAILED ProbeResult so sibling probes keep running.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional
from urllib.parse import quote

import httpx

from ..config import config
from ..models import ProbeCategory, ProbeResult

logger = logging.getLogger(__name__)


class UnexpectedStatus(Exception):
    """Raised inside a probe for a status its predicate does not cover."""

    def __init__(self, status_code: int, message: Optional[str] = None):
        self.status_code = status_code
        super().__init__(message or f"HTTP {status_code}")


def encode(value: str) -> str:
    """Percent-encode a path or query component."""
    return quote(value, safe="")


class Probe(ABC):
    """
    Base class for all probes.

    Subclasses set `name` and `category` and implement `_check()`, which may
    raise freely; `check()` turns every failure into a result.
    """

    name: str = ""
    category: ProbeCategory = ProbeCategory.PACKAGE

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ):
        """
        Args:
            client: Shared HTTP client (a short-lived one is opened per check if None)
            timeout: Per-call timeout in seconds (defaults to config)
        """
        self._client = client
        self.timeout = timeout if timeout is not None else config.probes.timeout_seconds

    @asynccontextmanager
    async def session(self) -> AsyncIterator[httpx.AsyncClient]:
        """Yield the injected client, or a fresh one closed on exit."""
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient(
            headers={"User-Agent": config.probes.user_agent},
            timeout=self.timeout,
            follow_redirects=True,
        ) as client:
            yield client

    async def check(self, name: str) -> ProbeResult:
        """Check a name, bounded by the probe timeout. Never raises."""
        try:
            return await asyncio.wait_for(self._run(name), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.debug(f"{self.name}: timed out after {self.timeout}s for {name!r}")
            return self.failed(name, f"Timed out after {self.timeout:g}s")
        except httpx.TimeoutException:
            return self.failed(name, f"Timed out after {self.timeout:g}s")
        except httpx.HTTPError as e:
            logger.debug(f"{self.name}: connection error for {name!r}: {e}")
            return self.failed(name, f"Connection error: {e}")
        except Exception as e:
            logger.debug(f"{self.name}: unexpected error for {name!r}: {e!r}")
            return self.failed(name, str(e) or e.__class__.__name__)

    async def _run(self, name: str) -> ProbeResult:
        async with self.session() as client:
            return await self._check(name, client)

    @abstractmethod
    async def _check(self, name: str, client: httpx.AsyncClient) -> ProbeResult:
        """Ask the service about `name`."""
        pass

    # Result helpers

    def available(self, name: str, **extra) -> ProbeResult:
        return ProbeResult.determined(name, self.name, self.category, True, **extra)

    def taken(self, name: str, url: Optional[str] = None, **extra) -> ProbeResult:
        return ProbeResult.determined(name, self.name, self.category, False, url=url, **extra)

    def failed(self, name: str, error: str) -> ProbeResult:
        return ProbeResult.failed(name, self.name, self.category, error)

    def manual(self, name: str, url: str, note: str) -> ProbeResult:
        return ProbeResult.manual(name, self.name, self.category, url, note)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r}, category={self.category.value!r})"


class LookupProbe(Probe):
    """
    Probe for services with a direct lookup endpoint.

    404 means available, 200 means taken, anything else is an error rather
    than an answer.
    """

    lookup_url: str = ""     # formatted with {name}
    reference_url: str = ""  # formatted with {name}
    lowercase: bool = False

    def __init__(
        self,
        name: Optional[str] = None,
        category: Optional[ProbeCategory] = None,
        lookup_url: Optional[str] = None,
        reference_url: Optional[str] = None,
        lowercase: Optional[bool] = None,
        **kwargs,
    ):
        super().__init__(**kwargs)
        if name is not None:
            self.name = name
        if category is not None:
            self.category = category
        if lookup_url is not None:
            self.lookup_url = lookup_url
        if reference_url is not None:
            self.reference_url = reference_url
        if lowercase is not None:
            self.lowercase = lowercase

    def build_lookup_url(self, name: str) -> str:
        key = name.lower() if self.lowercase else name
        return self.lookup_url.format(name=encode(key))

    def build_reference_url(self, name: str) -> str:
        return self.reference_url.format(name=name)

    async def _check(self, name: str, client: httpx.AsyncClient) -> ProbeResult:
        response = await client.get(self.build_lookup_url(name))
        if response.status_code == 404:
            return self.available(name)
        if response.status_code == 200:
            return self.taken(name, self.build_reference_url(name))
        return self.failed(name, f"HTTP {response.status_code}")
