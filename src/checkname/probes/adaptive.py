"""
Adaptive probes

Some services give an authenticated client a much higher rate limit than an
anonymous one. An adaptive probe prefers the authenticated (primary) path,
and once that path reports a rate limit it switches every caller over to the
public (degraded) path until a cooldown has passed.

The mode lives in a RateLimitState that is shared by every probe using the
same credential, for the lifetime of the process.

Degraded answers are optimistic: if the public path itself fails, the name
is reported as available (flagged `degraded`) rather than as an error or as
taken. A flaky network can therefore inflate availability while degraded.
"""

import logging
import threading
import time
from abc import abstractmethod
from enum import Enum
from typing import Callable, Optional

import httpx

from ..config import config
from ..models import ProbeResult
from .base import Probe

logger = logging.getLogger(__name__)


class ProbeMode(str, Enum):
    PRIMARY = "primary"
    DEGRADED = "degraded"


class RateLimitSignal(Exception):
    """Raised by a primary path when the service says we are rate limited."""

    def __init__(self, status_code: int):
        self.status_code = status_code
        super().__init__(f"Rate limited (HTTP {status_code})")


class RateLimitState:
    """
    Process-wide mode flag plus resume timestamp.

    Every read and write goes through `current_mode()` and `trip()`, which
    hold a lock for the whole check-then-act so concurrent callers see one
    consistent transition.
    """

    def __init__(
        self,
        cooldown: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
        label: str = "rate-limit",
    ):
        """
        Args:
            cooldown: Seconds to stay degraded after a trip (defaults to config)
            clock: Monotonic time source, swappable for tests
            label: Name used in log messages
        """
        self.cooldown = cooldown if cooldown is not None else config.probes.github_cooldown_seconds
        self.clock = clock
        self.label = label
        self._mode = ProbeMode.PRIMARY
        self._resume_at: Optional[float] = None
        self._lock = threading.Lock()

    def current_mode(self) -> ProbeMode:
        """Return the mode for the next call, recovering if the cooldown has passed."""
        with self._lock:
            if self._mode == ProbeMode.DEGRADED and self.clock() >= self._resume_at:
                self._mode = ProbeMode.PRIMARY
                self._resume_at = None
                logger.info(f"{self.label}: cooldown elapsed, back to primary mode")
            return self._mode

    def trip(self) -> None:
        """Enter degraded mode until now + cooldown."""
        with self._lock:
            self._resume_at = self.clock() + self.cooldown
            if self._mode != ProbeMode.DEGRADED:
                self._mode = ProbeMode.DEGRADED
                logger.warning(
                    f"{self.label}: rate limited, using public access for {self.cooldown:g}s"
                )

    def reset(self) -> None:
        with self._lock:
            self._mode = ProbeMode.PRIMARY
            self._resume_at = None

    @property
    def mode(self) -> ProbeMode:
        with self._lock:
            return self._mode

    @property
    def resume_at(self) -> Optional[float]:
        with self._lock:
            return self._resume_at


class AdaptiveProbe(Probe):
    """
    Probe with an authenticated primary path and a public degraded path.

    Subclasses implement `check_primary()` (raise RateLimitSignal on a rate
    limit) and `check_degraded()` (never authenticates).
    """

    def __init__(
        self,
        state: RateLimitState,
        token: Optional[str] = None,
        **kwargs,
    ):
        """
        Args:
            state: Shared rate-limit state for this credential
            token: API token (defaults to config; empty means public access only)
        """
        super().__init__(**kwargs)
        self.state = state
        self.token = token if token is not None else config.probes.github_token

    async def _check(self, name: str, client: httpx.AsyncClient) -> ProbeResult:
        if not self.token:
            return await self._check_degraded(name, client)

        if self.state.current_mode() == ProbeMode.PRIMARY:
            try:
                return await self.check_primary(name, client)
            except RateLimitSignal as e:
                logger.debug(f"{self.name}: {e} on primary path for {name!r}")
                self.state.trip()

        return await self._check_degraded(name, client)

    async def _check_degraded(self, name: str, client: httpx.AsyncClient) -> ProbeResult:
        try:
            result = await self.check_degraded(name, client)
        except Exception as e:
            logger.warning(f"{self.name}: public check failed for {name!r} ({e}), assuming available")
            return self.available(name, degraded=True)

        if result.is_failed:
            logger.warning(
                f"{self.name}: public check failed for {name!r} ({result.error}), assuming available"
            )
            return self.available(name, degraded=True)

        result.degraded = True
        return result

    @abstractmethod
    async def check_primary(self, name: str, client: httpx.AsyncClient) -> ProbeResult:
        """Authenticated check. Raise RateLimitSignal on 403/429."""
        pass

    @abstractmethod
    async def check_degraded(self, name: str, client: httpx.AsyncClient) -> ProbeResult:
        """Unauthenticated check. Failures here become optimistic answers."""
        pass
