"""
Tests for the name finder loop.

Generator, scorer and probes are stubs; nothing touches the network.
"""

import asyncio

import httpx
import pytest

from checkname.errors import ConfigurationError, GenerationError, ScoringError
from checkname.finder import FindOptions, FindStatus, NameFinder, generate_find_report
from checkname.models import Candidate, NameScore, ProbeCategory, ProbeResult, Verdict
from checkname.probes import Probe
from checkname.providers import MockProvider
from checkname.agents import GeneratorAgent, JudgeAgent
from checkname.store import DuckDBStore, NullStore


class StubGenerator:
    """Returns the given batches in turn, repeating the last one."""

    def __init__(self, *batches, error=None, delay=0.0):
        self.batches = [list(b) for b in batches]
        self.error = error
        self.delay = delay
        self.calls = []

    async def generate(self, description, count, excluded_names, style_hints=None):
        self.calls.append(list(excluded_names))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        batch = self.batches[min(len(self.calls), len(self.batches)) - 1]
        return [Candidate(name, rationale=f"why {name}") for name in batch]


class StubScorer:
    def __init__(self, scores=None, error=None):
        self.scores = scores or {}
        self.error = error
        self.calls = []

    async def score(self, description, candidates):
        self.calls.append([c.name for c in candidates])
        if self.error:
            raise self.error
        results = []
        for c in candidates:
            overall, verdict = self.scores.get(c.name, (3.0, "consider"))
            results.append(NameScore(name=c.name, overall=overall, verdict=Verdict(verdict)))
        return results


class StubProbe(Probe):
    """Available for the names in `free`; everything else is taken."""

    def __init__(self, free=(), name="stub", fail=False):
        super().__init__(timeout=1.0)
        self.name = name
        self.category = ProbeCategory.PACKAGE
        self.free = set(free)
        self.fail = fail

    async def _run(self, name):
        return await self._check(name, None)

    async def _check(self, name: str, client: httpx.AsyncClient) -> ProbeResult:
        if self.fail:
            return self.failed(name, "HTTP 500")
        return self.available(name) if name in self.free else self.taken(name, "https://x")


class BrokenStore(NullStore):
    def record_name(self, project_id, candidate):
        raise RuntimeError("disk full")

    def record_check(self, project_id, name, result):
        raise RuntimeError("disk full")


def options(**kwargs):
    defaults = dict(
        description="a fast grep",
        target_count=2,
        batch_size=2,
        threshold=0.5,
        min_score=3.5,
        accepted_verdicts=["strong", "consider"],
        max_iterations=5,
    )
    defaults.update(kwargs)
    return FindOptions(**defaults)


class TestFindOptions:
    """Tests for option validation."""

    def test_defaults_from_config(self):
        opts = FindOptions(description="x")

        assert opts.target_count == 5
        assert opts.verdict_set() == {Verdict.STRONG, Verdict.CONSIDER}

    @pytest.mark.parametrize("field,value", [
        ("target_count", 0),
        ("batch_size", 0),
        ("max_iterations", 0),
        ("threshold", 1.5),
        ("deadline", -1),
        ("accepted_verdicts", ["great"]),
        ("accepted_verdicts", []),
    ])
    def test_invalid(self, field, value):
        with pytest.raises(ConfigurationError):
            options(**{field: value}).validate()

    @pytest.mark.asyncio
    async def test_no_probes(self):
        finder = NameFinder(StubGenerator(["a"]), StubScorer(), probes=[])

        with pytest.raises(ConfigurationError, match="No probes"):
            await finder.run(options())


class TestNameFinder:
    """Tests for the discovery loop."""

    @pytest.mark.asyncio
    async def test_end_to_end(self):
        generator = StubGenerator(["alpha", "beta"], ["gamma", "delta"])
        scorer = StubScorer({"alpha": (4.0, "strong"), "gamma": (3.0, "reject")})
        finder = NameFinder(generator, scorer, [StubProbe(free={"alpha", "gamma"})])

        result = await finder.run(options(max_iterations=2))

        assert result.iterations == 2
        assert [c.name for c in result.candidates] == ["alpha"]
        assert result.status == FindStatus.EXHAUSTED
        assert result.total_generated == 4
        assert result.total_judged == 2
        assert result.all_generated_names == ["alpha", "beta", "gamma", "delta"]
        assert scorer.calls == [["alpha"], ["gamma"]]

    @pytest.mark.asyncio
    async def test_completes_at_target(self):
        generator = StubGenerator(["alpha", "beta"], ["gamma", "delta"])
        scorer = StubScorer({"alpha": (4.0, "strong"), "beta": (3.8, "consider")})
        finder = NameFinder(generator, scorer, [StubProbe(free={"alpha", "beta"})])

        result = await finder.run(options())

        assert result.status == FindStatus.COMPLETE
        assert result.iterations == 1
        assert [c.name for c in result.candidates] == ["alpha", "beta"]

    @pytest.mark.asyncio
    async def test_sorted_and_trimmed_to_target(self):
        generator = StubGenerator(["low", "high", "mid"])
        scorer = StubScorer({"low": (3.6, "consider"), "high": (4.8, "strong"), "mid": (4.0, "strong")})
        finder = NameFinder(generator, scorer, [StubProbe(free={"low", "high", "mid"})])

        result = await finder.run(options(batch_size=3))

        assert [c.name for c in result.candidates] == ["high", "mid"]

    @pytest.mark.asyncio
    async def test_acceptance_needs_score_and_verdict(self):
        generator = StubGenerator(["ok", "loud"], ["zz1", "zz2"])
        scorer = StubScorer({"ok": (3.6, "consider"), "loud": (4.2, "reject")})
        finder = NameFinder(generator, scorer, [StubProbe(free={"ok", "loud"})])

        result = await finder.run(options(max_iterations=1))

        assert [c.name for c in result.candidates] == ["ok"]

    @pytest.mark.asyncio
    async def test_bounded_when_nothing_qualifies(self):
        names = [[f"n{i}a", f"n{i}b"] for i in range(20)]
        generator = StubGenerator(*names)
        scorer = StubScorer()
        finder = NameFinder(generator, scorer, [StubProbe(fail=True)])

        result = await finder.run(options(max_iterations=10, threshold=1.0))

        assert result.iterations == 10
        assert result.candidates == []
        assert result.status == FindStatus.EXHAUSTED

    @pytest.mark.asyncio
    async def test_scorer_skipped_when_none_qualify(self):
        scorer = StubScorer()
        finder = NameFinder(StubGenerator(["a1", "b1"], ["a2", "b2"]), scorer, [StubProbe(free=())])

        result = await finder.run(options(max_iterations=2))

        assert scorer.calls == []
        assert result.total_judged == 0

    @pytest.mark.asyncio
    async def test_exclusions_grow_and_stay_unique(self):
        generator = StubGenerator(["a", "b", "a"], ["b", "c"], ["c", "d"])
        finder = NameFinder(generator, StubScorer(), [StubProbe(free=())])

        result = await finder.run(options(batch_size=3, max_iterations=3))

        assert generator.calls == [[], ["a", "b"], ["a", "b", "c"]]
        sizes = [len(c) for c in generator.calls]
        assert sizes == sorted(sizes)
        assert result.all_generated_names == ["a", "b", "c", "d"]

    @pytest.mark.asyncio
    async def test_generator_failure_ends_session(self):
        finder = NameFinder(
            StubGenerator(error=GenerationError("model down")), StubScorer(), [StubProbe()]
        )
        result = await finder.run(options())

        assert result.status == FindStatus.FAILED
        assert result.error == "model down"
        assert result.iterations == 1

    @pytest.mark.asyncio
    async def test_scorer_failure_keeps_accepted(self):
        class FlakyScorer(StubScorer):
            async def score(self, description, candidates):
                if self.calls:
                    raise ScoringError("judge down")
                return await super().score(description, candidates)

        generator = StubGenerator(["alpha", "beta"], ["gamma", "delta"])
        scorer = FlakyScorer({"alpha": (4.5, "strong")})
        finder = NameFinder(generator, scorer, [StubProbe(free={"alpha", "gamma"})])

        result = await finder.run(options())

        assert result.status == FindStatus.FAILED
        assert [c.name for c in result.candidates] == ["alpha"]

    @pytest.mark.asyncio
    async def test_scorer_transport_error_keeps_accepted(self):
        class UnreachableScorer(StubScorer):
            async def score(self, description, candidates):
                if self.calls:
                    raise httpx.ConnectError("judge endpoint down")
                return await super().score(description, candidates)

        generator = StubGenerator(["alpha", "beta"], ["gamma", "delta"])
        scorer = UnreachableScorer({"alpha": (4.5, "strong")})
        finder = NameFinder(generator, scorer, [StubProbe(free={"alpha", "gamma"})])

        result = await finder.run(options())

        assert result.status == FindStatus.FAILED
        assert [c.name for c in result.candidates] == ["alpha"]
        assert "judge endpoint down" in result.error
        assert result.iterations == 2

    @pytest.mark.asyncio
    async def test_unexpected_generator_error_ends_session(self):
        finder = NameFinder(StubGenerator(error=KeyError("names")), StubScorer(), [StubProbe()])

        result = await finder.run(options())

        assert result.status == FindStatus.FAILED
        assert result.error.startswith("KeyError")

    @pytest.mark.asyncio
    async def test_cancel_event(self):
        event = asyncio.Event()
        generator = StubGenerator(["a", "b"], delay=5)
        finder = NameFinder(generator, StubScorer(), [StubProbe()])

        async def cancel_soon():
            await asyncio.sleep(0.05)
            event.set()

        canceller = asyncio.ensure_future(cancel_soon())
        result = await asyncio.wait_for(finder.run(options(cancel_event=event)), timeout=2)
        await canceller

        assert result.status == FindStatus.CANCELLED
        assert result.error == "Cancelled by caller"

    @pytest.mark.asyncio
    async def test_cancel_event_set_before_start(self):
        event = asyncio.Event()
        event.set()
        generator = StubGenerator(["a", "b"])
        finder = NameFinder(generator, StubScorer(), [StubProbe()])

        result = await finder.run(options(cancel_event=event))

        assert result.status == FindStatus.CANCELLED
        assert result.iterations == 0
        assert generator.calls == []

    @pytest.mark.asyncio
    async def test_deadline(self):
        generator = StubGenerator(["a", "b"], delay=5)
        finder = NameFinder(generator, StubScorer(), [StubProbe()])

        result = await asyncio.wait_for(finder.run(options(deadline=0.05)), timeout=2)

        assert result.status == FindStatus.CANCELLED
        assert result.error == "Deadline reached"


class TestFinderWithStore:
    """Tests for project history."""

    @pytest.mark.asyncio
    async def test_prior_names_excluded(self):
        store = DuckDBStore(":memory:")
        pid = store.get_or_create_project("grep", "a fast grep")
        store.record_name(pid, Candidate("alpha"))

        generator = StubGenerator(["alpha", "beta"])
        finder = NameFinder(generator, StubScorer(), [StubProbe(free={"beta"})], store=store)
        result = await finder.run(options(project="grep", max_iterations=1))

        assert generator.calls == [["alpha"]]
        assert result.all_generated_names == ["beta"]
        assert store.prior_names(pid) == ["alpha", "beta"]
        store.close()

    @pytest.mark.asyncio
    async def test_scores_recorded(self):
        store = DuckDBStore(":memory:")
        finder = NameFinder(
            StubGenerator(["alpha", "beta"]),
            StubScorer({"alpha": (4.0, "strong"), "beta": (3.9, "consider")}),
            [StubProbe(free={"alpha", "beta"})],
            store=store,
            judge_model="gemini-pro",
        )
        await finder.run(options(project="grep"))

        entries = store.leaderboard("grep")
        assert [e["name"] for e in entries] == ["alpha", "beta"]
        assert float(entries[0]["availability_percent"]) == 100.0
        store.close()

    @pytest.mark.asyncio
    async def test_store_failures_ignored(self):
        finder = NameFinder(
            StubGenerator(["alpha", "beta"]),
            StubScorer({"alpha": (4.0, "strong"), "beta": (4.0, "strong")}),
            [StubProbe(free={"alpha", "beta"})],
            store=BrokenStore(),
        )
        result = await finder.run(options(project="grep"))

        assert result.status == FindStatus.COMPLETE
        assert len(result.candidates) == 2


class TestFinderWithAgents:
    """The loop driven by the real agents over the mock provider."""

    @pytest.mark.asyncio
    async def test_mock_provider_run(self):
        provider = MockProvider()
        finder = NameFinder(
            GeneratorAgent(provider),
            JudgeAgent(provider),
            [StubProbe(free={"ferro", "kairo", "blitz", "sora", "vela"})],
        )
        result = await finder.run(options(target_count=3, batch_size=4, max_iterations=3))

        assert result.status == FindStatus.COMPLETE
        assert len(result.candidates) == 3
        assert len(set(result.all_generated_names)) == len(result.all_generated_names)


class TestFindReport:
    @pytest.mark.asyncio
    async def test_report(self):
        finder = NameFinder(
            StubGenerator(["alpha", "beta"]),
            StubScorer({"alpha": (4.0, "strong"), "beta": (3.6, "consider")}),
            [StubProbe(free={"alpha", "beta"})],
        )
        result = await finder.run(options())
        report = generate_find_report(result)

        assert report.startswith("# Project Name Candidates")
        assert "| 1 | **alpha** | 4.0 |" in report
        assert "**beta**: why beta" in report
        assert "Stopped" not in report

    @pytest.mark.asyncio
    async def test_report_notes_early_stop(self):
        finder = NameFinder(StubGenerator(["a1", "b1"]), StubScorer(), [StubProbe()])
        result = await finder.run(options(max_iterations=1))

        assert "_Stopped: exhausted_" in generate_find_report(result)

    def test_to_dict(self):
        from checkname.finder import FindResult

        result = FindResult(
            description="x", candidates=[], iterations=1, total_generated=2, total_judged=0,
            all_generated_names=["a", "b"], status=FindStatus.EXHAUSTED,
        )
        data = result.to_dict()

        assert data["status"] == "exhausted"
        assert data["all_generated_names"] == ["a", "b"]
