"""
Name finder

The discovery loop:
1. Generate a batch of names, excluding everything seen so far
2. Check every name's availability across the selected probes
3. Keep names at or above the availability threshold
4. Score the survivors in one batch
5. Accept names meeting both the minimum score and an accepted verdict

It repeats until enough names are accepted or the iteration limit is hit.
One iteration is in flight at a time, so each batch's exclusions are visible
to the next generation call.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Optional, Protocol, Sequence, TypeVar

from .aggregator import aggregate_many
from .config import config
from .errors import CollaboratorError, ConfigurationError, GenerationError, ScoringError
from .models import Candidate, NameScore, ScoredCandidate, StyleHints, Verdict
from .probes import Probe
from .store import NullStore, ProjectStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


class NameGenerator(Protocol):
    async def generate(
        self,
        description: str,
        count: int,
        excluded_names: Sequence[str],
        style_hints: Optional[StyleHints] = None,
    ) -> list[Candidate]:
        ...


class NameScorer(Protocol):
    async def score(self, description: str, candidates: Sequence[Candidate]) -> list[NameScore]:
        ...


class FindStatus(str, Enum):
    """How a find session ended."""
    RUNNING = "running"
    COMPLETE = "complete"      # target reached
    EXHAUSTED = "exhausted"    # iteration limit reached first
    CANCELLED = "cancelled"    # deadline passed or cancel event set
    FAILED = "failed"          # generator or scorer failed


class FindCancelled(Exception):
    """Raised inside the loop when the deadline passes or the caller cancels."""
    pass


@dataclass
class FindOptions:
    """Settings for one find session. Defaults come from config."""
    description: str
    target_count: int = field(default_factory=lambda: config.find.target_count)
    batch_size: int = field(default_factory=lambda: config.find.batch_size)
    threshold: float = field(default_factory=lambda: config.find.threshold)
    min_score: float = field(default_factory=lambda: config.find.min_score)
    accepted_verdicts: list[str] = field(default_factory=lambda: list(config.find.accepted_verdicts))
    max_iterations: int = field(default_factory=lambda: config.find.max_iterations)
    style: str = "all"
    sources: list[str] = field(default_factory=list)
    feedback: Optional[str] = None
    project: Optional[str] = None
    deadline: Optional[float] = None  # seconds from start
    cancel_event: Optional[asyncio.Event] = None

    def validate(self) -> None:
        """
        Raises:
            ConfigurationError: On any out-of-range value
        """
        if self.target_count < 1:
            raise ConfigurationError(f"target_count must be at least 1, got {self.target_count}")
        if self.batch_size < 1:
            raise ConfigurationError(f"batch_size must be at least 1, got {self.batch_size}")
        if self.max_iterations < 1:
            raise ConfigurationError(f"max_iterations must be at least 1, got {self.max_iterations}")
        if not 0.0 <= self.threshold <= 1.0:
            raise ConfigurationError(f"threshold must be between 0 and 1, got {self.threshold}")
        if self.deadline is not None and self.deadline <= 0:
            raise ConfigurationError(f"deadline must be positive, got {self.deadline}")
        self.verdict_set()

    def verdict_set(self) -> set[Verdict]:
        verdicts = set()
        for value in self.accepted_verdicts:
            try:
                verdicts.add(Verdict(value.strip().lower()))
            except ValueError:
                raise ConfigurationError(
                    f"Unknown verdict: {value!r}. Valid options: {[v.value for v in Verdict]}"
                )
        if not verdicts:
            raise ConfigurationError("At least one accepted verdict is required")
        return verdicts


@dataclass
class FindSession:
    """Mutable state owned by one run of the loop."""
    options: FindOptions
    excluded: list[str] = field(default_factory=list)
    accepted: list[ScoredCandidate] = field(default_factory=list)
    generated_names: list[str] = field(default_factory=list)
    iterations: int = 0
    total_judged: int = 0
    deadline_at: Optional[float] = None
    _excluded_set: set = field(default_factory=set, repr=False)

    def exclude(self, name: str) -> bool:
        """Add a name to the exclusion set. False if it was already there."""
        if name in self._excluded_set:
            return False
        self._excluded_set.add(name)
        self.excluded.append(name)
        return True

    def is_excluded(self, name: str) -> bool:
        return name in self._excluded_set


@dataclass
class FindResult:
    """Outcome of a find session."""
    description: str
    candidates: list[ScoredCandidate]
    iterations: int
    total_generated: int
    total_judged: int
    all_generated_names: list[str]
    status: FindStatus
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "description": self.description,
            "status": self.status.value,
            "candidates": [c.to_dict() for c in self.candidates],
            "iterations": self.iterations,
            "total_generated": self.total_generated,
            "total_judged": self.total_judged,
            "all_generated_names": self.all_generated_names,
            "error": self.error,
        }


class NameFinder:
    """
    Runs the find loop.

    Generator, scorer and store are collaborators; the loop behaves the same
    with any implementation of them, including NullStore.
    """

    def __init__(
        self,
        generator: NameGenerator,
        scorer: NameScorer,
        probes: Sequence[Probe],
        store: Optional[ProjectStore] = None,
        judge_model: str = "",
    ):
        """
        Args:
            generator: Suggests names
            scorer: Scores names
            probes: Probes run against every generated name
            store: Persistence (NullStore if None)
            judge_model: Model label recorded with each score
        """
        self.generator = generator
        self.scorer = scorer
        self.probes = list(probes)
        self.store = store or NullStore()
        self.judge_model = judge_model

    async def run(self, options: FindOptions) -> FindResult:
        """
        Run a find session to completion.

        Collaborator failures and cancellation end the session early but
        still return whatever was accepted.

        Raises:
            ConfigurationError: If the options are invalid
        """
        options.validate()
        if not self.probes:
            raise ConfigurationError("No probes selected")

        session = FindSession(options=options)
        if options.deadline is not None:
            session.deadline_at = asyncio.get_running_loop().time() + options.deadline

        project_id = self._open_project(session)

        logger.info(
            f"Finding {options.target_count} names for: {options.description[:60]!r}"
            f" ({len(session.excluded)} names already excluded)"
        )

        status = FindStatus.RUNNING
        error = None
        try:
            while len(session.accepted) < options.target_count and session.iterations < options.max_iterations:
                self._check_cancelled(session)
                session.iterations += 1
                await self._run_iteration(session, project_id)
                logger.info(f"Progress: {len(session.accepted)}/{options.target_count} names found")

            if len(session.accepted) >= options.target_count:
                status = FindStatus.COMPLETE
            else:
                status = FindStatus.EXHAUSTED

        except FindCancelled as e:
            logger.warning(f"Find cancelled after {session.iterations} iterations: {e}")
            status = FindStatus.CANCELLED
            error = str(e)

        except CollaboratorError as e:
            logger.error(f"Find failed in iteration {session.iterations}: {e}")
            status = FindStatus.FAILED
            error = str(e)

        candidates = sorted(session.accepted, key=lambda c: c.score.overall, reverse=True)
        candidates = candidates[:options.target_count]

        logger.info(
            f"Found {len(candidates)} names in {session.iterations} iterations "
            f"({len(session.generated_names)} generated, {session.total_judged} judged)"
        )

        return FindResult(
            description=options.description,
            candidates=candidates,
            iterations=session.iterations,
            total_generated=len(session.generated_names),
            total_judged=session.total_judged,
            all_generated_names=list(session.generated_names),
            status=status,
            error=error,
        )

    async def _run_iteration(self, session: FindSession, project_id: Optional[int]) -> None:
        options = session.options

        # 1. Generate
        logger.info(f"Iteration {session.iterations}: generating {options.batch_size} names")
        generated = await self._collaborate(
            self.generator.generate(
                options.description,
                options.batch_size,
                list(session.excluded),
                StyleHints(style=options.style, sources=list(options.sources), feedback=options.feedback),
            ),
            session,
            GenerationError,
        )

        batch = []
        for candidate in generated:
            if session.exclude(candidate.name):
                batch.append(candidate)
            else:
                logger.debug(f"Dropping repeated name {candidate.name!r}")
        session.generated_names.extend(c.name for c in batch)

        if project_id is not None:
            for candidate in batch:
                self._store_call("record_name", project_id, candidate)

        if not batch:
            logger.info("No new names in this batch")
            return

        # 2. Check
        summaries = await self._guard(aggregate_many([c.name for c in batch], self.probes), session)

        if project_id is not None:
            for summary in summaries:
                for result in summary.results:
                    self._store_call("record_check", project_id, summary.name, result)

        # 3. Filter
        qualified = {
            candidate.name: (candidate, summary)
            for candidate, summary in zip(batch, summaries)
            if summary.availability_ratio >= options.threshold
        }
        logger.info(
            f"{len(qualified)}/{len(batch)} names meet {options.threshold:.0%} availability threshold"
        )
        if not qualified:
            return

        # 4. Score
        scores = await self._collaborate(
            self.scorer.score(options.description, [c for c, _ in qualified.values()]),
            session,
            ScoringError,
        )
        session.total_judged += len(qualified)

        # 5. Accept
        verdicts = options.verdict_set()
        for score in scores:
            if score.name not in qualified:
                continue
            candidate, summary = qualified.pop(score.name)

            if project_id is not None:
                self._store_call("record_score", project_id, score, self.judge_model)

            scored = ScoredCandidate(
                candidate=candidate,
                availability=summary.availability_ratio,
                available_checks=summary.available_count,
                total_checks=summary.total,
                score=score,
                passes_score=score.overall >= options.min_score,
                passes_verdict=score.verdict in verdicts,
            )
            if scored.accepted:
                session.accepted.append(scored)
                logger.info(f"Accepted {score.name} ({score.overall:.1f}, {score.verdict.value})")
            else:
                reason = "" if scored.passes_score else " [score too low]"
                logger.info(f"Rejected {score.name} ({score.overall:.1f}, {score.verdict.value}){reason}")

    def _open_project(self, session: FindSession) -> Optional[int]:
        """Create or load the project and seed exclusions from earlier sessions."""
        tag = session.options.project
        if not tag:
            return None
        try:
            project_id = self.store.get_or_create_project(tag, session.options.description)
            prior = self.store.prior_names(project_id)
        except Exception as e:
            logger.warning(f"Project store unavailable, continuing without history: {e}")
            return None

        for name in prior:
            session.exclude(name)
        logger.info(f"Project {tag}: {len(prior)} names already in database")
        return project_id

    def _store_call(self, method: str, *args) -> None:
        try:
            getattr(self.store, method)(*args)
        except Exception as e:
            logger.warning(f"Store {method} failed: {e}")

    def _check_cancelled(self, session: FindSession) -> None:
        event = session.options.cancel_event
        if event is not None and event.is_set():
            raise FindCancelled("Cancelled by caller")
        if session.deadline_at is not None and asyncio.get_running_loop().time() >= session.deadline_at:
            raise FindCancelled("Deadline reached")

    async def _collaborate(
        self,
        awaitable: Awaitable[T],
        session: FindSession,
        error_class: type[CollaboratorError],
    ) -> T:
        """Guard a generator or scorer call; unexpected errors end the session as failures."""
        try:
            return await self._guard(awaitable, session)
        except (FindCancelled, CollaboratorError):
            raise
        except Exception as e:
            raise error_class(f"{type(e).__name__}: {e}") from e

    async def _guard(self, awaitable: Awaitable[T], session: FindSession) -> T:
        """
        Await a collaborator call, abandoning it if the deadline passes or
        the cancel event is set first.
        """
        task = asyncio.ensure_future(awaitable)
        event = session.options.cancel_event
        if event is None and session.deadline_at is None:
            return await task

        waiters = {task}
        cancel_waiter = None
        if event is not None:
            cancel_waiter = asyncio.ensure_future(event.wait())
            waiters.add(cancel_waiter)

        timeout = None
        if session.deadline_at is not None:
            timeout = max(0.0, session.deadline_at - asyncio.get_running_loop().time())

        try:
            done, _ = await asyncio.wait(waiters, timeout=timeout, return_when=asyncio.FIRST_COMPLETED)
        finally:
            if cancel_waiter is not None:
                cancel_waiter.cancel()

        if task in done:
            return task.result()

        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        raise FindCancelled("Cancelled by caller" if event is not None and event.is_set() else "Deadline reached")


def generate_find_report(result: FindResult) -> str:
    """
    Markdown report of accepted names.

    Args:
        result: Completed find result

    Returns:
        Markdown with a score table and one detail line per name
    """
    verdict_icons = {Verdict.STRONG: "✅", Verdict.CONSIDER: "🤔", Verdict.REJECT: "❌"}
    lines = [
        "# Project Name Candidates",
        "",
        f"{result.description} | {len(result.candidates)} found from {result.total_generated} generated",
        "",
        "| # | Name | Score | Typ | Mem | Mean | Uniq | Risk | Avail | Verdict |",
        "|---|------|-------|-----|-----|------|------|------|-------|---------|",
    ]

    for i, c in enumerate(result.candidates, 1):
        s = c.score
        lines.append(
            f"| {i} | **{c.name}** | {s.overall:.1f} | {s.typability} | {s.memorability} | "
            f"{s.meaning} | {s.uniqueness} | {s.cultural_risk} | {round(c.availability * 100)}% | "
            f"{verdict_icons[s.verdict]} {s.verdict.value} |"
        )

    lines.append("")
    for c in result.candidates:
        detail = f"**{c.name}**: {c.candidate.rationale}"
        if c.score.weaknesses:
            detail += f" ⚠️ {c.score.weaknesses}"
        lines.append(detail)

    lines.append("")
    lines.append(
        "_Scores: Typ=Typability, Mem=Memorability, Mean=Meaning, Uniq=Uniqueness, "
        "Risk=Cultural (1=safe, 5=bad)_"
    )
    if result.status != FindStatus.COMPLETE:
        lines.append("")
        lines.append(f"_Stopped: {result.status.value}{f' ({result.error})' if result.error else ''}_")

    return "\n".join(lines)
