"""
Variant probing

Checks a base name plus a list of suffix variants in small concurrent waves
and folds them into one result listing the variants that are free.
"""

import asyncio
import logging
from abc import abstractmethod
from functools import partial
from typing import Awaitable, Callable, Optional, Sequence, TypeVar

import httpx

from ..config import config
from ..models import ProbeResult, VariantResult
from .base import Probe

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def run_in_waves(
    factories: Sequence[Callable[[], Awaitable[T]]],
    size: int = 3,
    pause: float = 0.5,
) -> list[T]:
    """
    Run coroutines `size` at a time, sleeping `pause` seconds between waves.

    Args:
        factories: Zero-argument callables returning awaitables
        size: Wave size
        pause: Seconds between waves (not after the last one)

    Returns:
        Results in input order. The first exception propagates after the
        rest of its wave is cancelled.
    """
    if size < 1:
        raise ValueError(f"Wave size must be at least 1, got {size}")

    results: list[T] = []
    for start in range(0, len(factories), size):
        if start and pause > 0:
            await asyncio.sleep(pause)
        wave = factories[start:start + size]
        results.extend(await _run_wave(wave))
    return results


async def _run_wave(wave: Sequence[Callable[[], Awaitable[T]]]) -> list[T]:
    tasks = [asyncio.ensure_future(factory()) for factory in wave]
    try:
        await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
    finally:
        pending = [task for task in tasks if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.wait(pending)

    for task in tasks:
        if not task.cancelled() and task.exception() is not None:
            raise task.exception()
    return [task.result() for task in tasks]


class VariantProber(Probe):
    """
    Probe that checks `name + suffix` for each suffix.

    The result is available if any variant is, and `variants` lists exactly
    the available ones. Subclasses implement `lookup()` for one variant;
    raising from it fails the whole probe.
    """

    suffixes: Sequence[str] = ("",)

    def __init__(
        self,
        suffixes: Optional[Sequence[str]] = None,
        wave_size: Optional[int] = None,
        wave_pause: Optional[float] = None,
        **kwargs,
    ):
        super().__init__(**kwargs)
        if suffixes is not None:
            self.suffixes = list(suffixes)
        self.wave_size = wave_size or config.probes.variant_wave_size
        self.wave_pause = wave_pause if wave_pause is not None else config.probes.variant_wave_pause

    def variant_names(self, name: str) -> list[str]:
        return [f"{name}{suffix}" for suffix in self.suffixes]

    async def _check(self, name: str, client: httpx.AsyncClient) -> ProbeResult:
        variants = self.variant_names(name)
        results = await run_in_waves(
            [partial(self.lookup, variant, client) for variant in variants],
            size=self.wave_size,
            pause=self.wave_pause,
        )

        available = [r for r in results if r.available]
        logger.debug(f"{self.name}: {len(available)}/{len(results)} variants free for {name!r}")

        if available:
            return self.available(name, variants=available)
        return self.taken(name, results[0].url if results else None, variants=[])

    @abstractmethod
    async def lookup(self, variant: str, client: httpx.AsyncClient) -> VariantResult:
        """Check a single variant."""
        pass
