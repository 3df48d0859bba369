"""
Command-line interface for checkname

Check whether a project name is free across package registries, code hosts
and domains, or let a model suggest names and find ones that are.
"""

import argparse
import asyncio
import inspect
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .agents import GeneratorAgent, JudgeAgent
from .aggregator import Classification, aggregate_many, classify
from .config import config
from .errors import CheckNameError, ConfigurationError, StoreError
from .finder import FindOptions, FindStatus, NameFinder, generate_find_report
from .models import AggregationSummary, Candidate, NameScore, ProbeCategory, StyleHints, Verdict, normalize_name
from .probes import PROBE_NAMES, get_probe
from .profiles import list_profiles, resolve_probes, split_names
from .providers import ProviderError, get_provider
from .store import DuckDBStore, NullStore, ProjectStore

logger = logging.getLogger(__name__)

GREEN = "\033[92m"
RED = "\033[91m"
YELLOW = "\033[93m"
CYAN = "\033[96m"
DIM = "\033[2m"
BOLD = "\033[1m"
RESET = "\033[0m"

CATEGORY_TITLES = {
    ProbeCategory.PACKAGE: "Package registries",
    ProbeCategory.REPOSITORY: "Code hosting",
    ProbeCategory.DOMAIN: "Domains",
    ProbeCategory.UNIQUENESS: "Uniqueness",
    ProbeCategory.TRADEMARK: "Trademarks (manual)",
}

VERDICT_ICONS = {Verdict.STRONG: "✅", Verdict.CONSIDER: "🤔", Verdict.REJECT: "❌"}


# =============================================================================
# Formatting
# =============================================================================

def format_summary(summary: AggregationSummary) -> str:
    """Human-readable availability report for one name."""
    lines = [f"\n{BOLD}{summary.name}{RESET}"]

    for category in ProbeCategory:
        results = [r for r in summary.results if r.category == category]
        if not results:
            continue
        lines.append(f"\n  {CATEGORY_TITLES[category]}")

        for result in results:
            kind = classify(result)
            if kind == Classification.AVAILABLE:
                line = f"{GREEN}✓ {result.probe}{RESET}"
                if result.variants:
                    line += f" {DIM}({', '.join(v.variant for v in result.variants)}){RESET}"
            elif kind == Classification.TAKEN:
                line = f"{RED}✗ {result.probe}{RESET}"
            elif kind == Classification.ERROR:
                line = f"{YELLOW}? {result.probe}{RESET} {DIM}{result.error}{RESET}"
            elif kind == Classification.MANUAL_CHECK:
                line = f"{CYAN}→ {result.probe}{RESET} {DIM}{result.error}{RESET}"
            elif result.is_failed:
                line = f"{YELLOW}? {result.probe}{RESET} {DIM}{result.error}{RESET}"
            else:
                line = f"{CYAN}# {result.probe}{RESET}: {result.count} repos ({result.active_count} active)"

            if result.degraded:
                line += f" {DIM}[public API, assumed]{RESET}"
            if result.url and kind != Classification.AVAILABLE:
                line += f"\n      {DIM}{result.url}{RESET}"
            lines.append(f"    {line}")

    ratio = summary.availability_ratio
    color = GREEN if ratio >= config.find.threshold else YELLOW if ratio >= 0.5 else RED
    lines.append(
        f"\n  {color}Available on {summary.available_count}/{summary.total} ({ratio:.0%}){RESET}"
        + (f" {DIM}{summary.error_count} errors{RESET}" if summary.error_count else "")
    )
    return "\n".join(lines)


def format_scores_table(scores: List[NameScore]) -> str:
    """Markdown table of judge scores, best first."""
    lines = [
        "| Name | Typ | Mem | Mean | Uniq | Risk | Overall | Verdict | Weaknesses |",
        "|------|-----|-----|------|------|------|---------|---------|------------|",
    ]
    for s in sorted(scores, key=lambda s: s.overall, reverse=True):
        lines.append(
            f"| **{s.name}** | {s.typability} | {s.memorability} | {s.meaning} | {s.uniqueness} | "
            f"{s.cultural_risk} | {s.overall:.1f} | {VERDICT_ICONS[s.verdict]} {s.verdict.value} | {s.weaknesses} |"
        )
    return "\n".join(lines)


# =============================================================================
# Commands
# =============================================================================

def _selected_probes(args):
    probes = resolve_probes(
        profile=getattr(args, "profile", None),
        probes=split_names(getattr(args, "probes", None)) or None,
        skip=split_names(getattr(args, "skip", None)),
    )
    only = split_names(getattr(args, "only", None))
    if only:
        categories = set()
        for value in only:
            try:
                categories.add(ProbeCategory(value.lower()))
            except ValueError:
                raise ConfigurationError(
                    f"Unknown category: {value!r}. Valid options: {[c.value for c in ProbeCategory]}"
                )
        probes = [p for p in probes if p.category in categories]
    return probes


def _make_provider(args):
    name = "mock" if getattr(args, "mock", False) else config.models.provider
    return get_provider(name)


async def cmd_check(args) -> int:
    probes = _selected_probes(args)
    names = [normalize_name(n) for n in args.names]
    summaries = await aggregate_many(names, probes)

    if args.json:
        print(json.dumps([s.to_dict() for s in summaries], indent=2))
    else:
        for summary in summaries:
            print(format_summary(summary))
        print()
    return 0


def cmd_list(args) -> int:
    for name in PROBE_NAMES:
        probe = get_probe(name)
        print(f"  {name:<20} {DIM}{probe.category.value}{RESET}")
    return 0


def cmd_profiles(args) -> int:
    print(f"\n{BOLD}Available profiles:{RESET}\n")
    for profile in list_profiles():
        marker = " (default)" if profile.name == config.find.default_profile else ""
        print(f"  {BOLD}{profile.name}{RESET}{marker}: {profile.description}")
        print(f"    {DIM}{', '.join(profile.probes)}{RESET}")
    print()
    return 0


async def cmd_generate(args) -> int:
    generator = GeneratorAgent(_make_provider(args), model=args.model)
    candidates = await generator.generate(
        args.description,
        args.count,
        excluded_names=split_names(args.exclude),
        style_hints=StyleHints(style=args.style, sources=split_names(args.sources), feedback=args.feedback),
    )

    summaries = {}
    if args.check:
        probes = _selected_probes(args)
        for summary in await aggregate_many([c.name for c in candidates], probes):
            summaries[summary.name] = summary

    if args.json:
        output = []
        for c in candidates:
            entry = c.to_dict()
            if c.name in summaries:
                entry["availability"] = summaries[c.name].to_dict()["summary"]
            output.append(entry)
        print(json.dumps(output, indent=2))
        return 0

    print(f"\n{BOLD}Generated {len(candidates)} names{RESET}\n")
    for c in candidates:
        line = f"  {BOLD}{c.name}{RESET}"
        if c.source:
            line += f" {DIM}[{c.source}]{RESET}"
        if c.name in summaries:
            line += f" {summaries[c.name].availability_ratio:.0%} available"
        print(line)
        if c.rationale:
            print(f"    {DIM}{c.rationale}{RESET}")
    print()
    return 0


def load_names_file(path: str) -> List[Candidate]:
    """
    Read candidates from a file.

    Accepts the JSON written by `generate --json` (a list) or `find --json`
    (an object with "candidates"), a JSON list of strings, or one name per line.
    """
    try:
        text = Path(path).read_text().strip()
    except OSError as e:
        raise ConfigurationError(f"Could not read {path}: {e}") from e
    if not text.startswith(("[", "{")):
        return [Candidate(name=line.strip()) for line in text.splitlines() if line.strip()]

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Could not parse {path}: {e}") from e
    if isinstance(data, dict):
        data = data.get("candidates", data.get("names", []))
    if not isinstance(data, list):
        raise ConfigurationError(f"No names found in {path}")

    candidates = []
    for item in data:
        if isinstance(item, str):
            candidates.append(Candidate(name=item))
        elif isinstance(item, dict) and item.get("name"):
            candidates.append(Candidate(
                name=item["name"],
                rationale=item.get("rationale") or "",
                source=item.get("source"),
            ))
    return candidates


async def cmd_judge(args) -> int:
    candidates = load_names_file(args.from_file) if args.from_file else []
    candidates += [Candidate(name=n) for n in args.names]
    if not candidates:
        raise ConfigurationError("No names to judge; pass names or --from-file")

    judge = JudgeAgent(_make_provider(args), model=args.model)
    scores = await judge.score(args.description, candidates)

    if args.json:
        print(json.dumps([s.to_dict() for s in scores], indent=2))
    else:
        print(format_scores_table(scores))
    return 0


def _open_find_store(args) -> ProjectStore:
    """History is optional for find; an unusable database falls back to NullStore."""
    if not args.project:
        return NullStore()
    try:
        return DuckDBStore()
    except StoreError as e:
        logger.warning(f"Project store unavailable, continuing without history: {e}")
        return NullStore()


async def cmd_find(args) -> int:
    probes = _selected_probes(args)
    provider = _make_provider(args)
    store = _open_find_store(args)

    options = FindOptions(
        description=args.description,
        target_count=args.count,
        batch_size=args.batch_size,
        threshold=args.threshold,
        min_score=args.min_score,
        accepted_verdicts=split_names(args.verdicts),
        max_iterations=args.max_iterations,
        style=args.style,
        sources=split_names(args.sources),
        project=args.project,
        deadline=args.deadline,
    )

    finder = NameFinder(
        generator=GeneratorAgent(provider, model=args.generate_model),
        scorer=JudgeAgent(provider, model=args.judge_model),
        probes=probes,
        store=store,
        judge_model=args.judge_model or config.models.judge_model,
    )
    try:
        result = await finder.run(options)
    finally:
        store.close()

    if args.json:
        output = json.dumps(result.to_dict(), indent=2)
    else:
        output = generate_find_report(result)

    if args.output:
        Path(args.output).write_text(output + "\n")
        print(f"Report written to {args.output}", file=sys.stderr)
    else:
        print(output)

    return 1 if result.status == FindStatus.FAILED else 0


def cmd_models(args) -> int:
    defaults = {config.models.generate_model: "generate", config.models.judge_model: "judge"}
    print(f"\n{BOLD}Model aliases:{RESET}\n")
    for alias, model_id in config.models.MODEL_ALIASES.items():
        badge = f" {GREEN}(default {defaults[alias]}){RESET}" if alias in defaults else ""
        print(f"  {BOLD}{alias}{RESET}{badge}")
        print(f"    {DIM}{model_id}{RESET}")
    print()
    return 0


def cmd_projects(args) -> int:
    with DuckDBStore() as store:
        if args.delete:
            if store.delete_project(args.delete):
                print(f"Deleted project {args.delete}")
                return 0
            print(f"No such project: {args.delete}", file=sys.stderr)
            return 1

        projects = store.list_projects()

    if not projects:
        print("No projects yet. Use `checkname find --project <tag>` to start one.")
        return 0
    for p in projects:
        print(f"  {BOLD}{p['tag']}{RESET}: {p['name_count']} names, {p['strong_count']} strong")
        if p["description"]:
            print(f"    {DIM}{p['description']}{RESET}")
    return 0


def cmd_leaderboard(args) -> int:
    with DuckDBStore() as store:
        entries = store.leaderboard(
            args.project,
            min_score=args.min_score,
            verdicts=split_names(args.verdicts) or None,
            limit=args.limit,
        )

    if args.json:
        print(json.dumps(entries, indent=2, default=str))
        return 0
    if not entries:
        print(f"No scored names for project {args.project}")
        return 0

    print("| # | Name | Score | Verdict | Avail | Weaknesses |")
    print("|---|------|-------|---------|-------|------------|")
    for i, e in enumerate(entries, 1):
        print(
            f"| {i} | **{e['name']}** | {e['overall']:.1f} | {e['verdict']} | "
            f"{e['availability_percent']:.0f}% | {e['weaknesses'] or ''} |"
        )
    return 0


# =============================================================================
# Argument parsing
# =============================================================================

def _add_probe_selection(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-p", "--profile", help=f"Probe profile (default: {config.find.default_profile})")
    parser.add_argument("--probes", help="Comma-separated probe names (overrides --profile)")
    parser.add_argument("--only", help="Comma-separated categories to keep (package, repository, domain, ...)")
    parser.add_argument("--skip", help="Comma-separated probe names to leave out")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="checkname",
        description="Check project name availability across registries, code hosts and domains",
        epilog="Example: checkname check ripgrep --profile rust",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="-v for progress, -vv for debug")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # check
    check_parser = subparsers.add_parser("check", help="Check name availability")
    check_parser.add_argument("names", nargs="+", help="Names to check")
    _add_probe_selection(check_parser)
    check_parser.add_argument("--json", action="store_true", help="Output results as JSON")

    subparsers.add_parser("list", help="List all probes")
    subparsers.add_parser("profiles", help="List probe profiles")
    subparsers.add_parser("models", help="List model aliases")

    # generate
    gen_parser = subparsers.add_parser("generate", help="Generate name ideas")
    gen_parser.add_argument("description", help="What the project does")
    gen_parser.add_argument("-n", "--count", type=int, default=10, help="Number of names (default: 10)")
    gen_parser.add_argument("--style", choices=["short", "word", "compound", "all"], default="all")
    gen_parser.add_argument("--sources", help="Comma-separated language sources (e.g. Latin,Greek)")
    gen_parser.add_argument("--exclude", help="Comma-separated names to avoid")
    gen_parser.add_argument("--feedback", help="Extra guidance for the generator")
    gen_parser.add_argument("--check", action="store_true", help="Also check availability")
    gen_parser.add_argument("--model", help="Generation model alias")
    gen_parser.add_argument("--mock", action="store_true", help="Use mock AI (no API key needed)")
    gen_parser.add_argument("--json", action="store_true", help="Output results as JSON")
    _add_probe_selection(gen_parser)

    # find
    find_parser = subparsers.add_parser("find", help="Generate, check and judge until enough good names are found")
    find_parser.add_argument("description", help="What the project does")
    find_parser.add_argument("--count", type=int, default=config.find.target_count, help="Names to find")
    find_parser.add_argument("--batch-size", type=int, default=config.find.batch_size)
    find_parser.add_argument("--threshold", type=float, default=config.find.threshold,
                             help="Minimum share of probes reporting available (0-1)")
    find_parser.add_argument("--min-score", type=float, default=config.find.min_score)
    find_parser.add_argument("--verdicts", default=",".join(config.find.accepted_verdicts),
                             help="Accepted verdicts (default: strong,consider)")
    find_parser.add_argument("--max-iterations", type=int, default=config.find.max_iterations)
    find_parser.add_argument("--style", choices=["short", "word", "compound", "all"], default="all")
    find_parser.add_argument("--sources", help="Comma-separated language sources")
    find_parser.add_argument("--project", help="Project tag; remembers names across runs")
    find_parser.add_argument("--deadline", type=float, help="Stop after this many seconds")
    find_parser.add_argument("--generate-model", help="Generation model alias")
    find_parser.add_argument("--judge-model", help="Judge model alias")
    find_parser.add_argument("-o", "--output", help="Write the report to a file")
    find_parser.add_argument("--mock", action="store_true", help="Use mock AI (no API key needed)")
    find_parser.add_argument("--json", action="store_true", help="Output results as JSON")
    _add_probe_selection(find_parser)

    # judge
    judge_parser = subparsers.add_parser("judge", help="Score names")
    judge_parser.add_argument("description", help="What the project does")
    judge_parser.add_argument("names", nargs="*", help="Names to score")
    judge_parser.add_argument("-f", "--from-file", help="Read names from a file (generate/find JSON or one per line)")
    judge_parser.add_argument("--model", help="Judge model alias")
    judge_parser.add_argument("--mock", action="store_true", help="Use mock AI (no API key needed)")
    judge_parser.add_argument("--json", action="store_true", help="Output results as JSON")

    # projects
    projects_parser = subparsers.add_parser("projects", help="List saved projects")
    projects_parser.add_argument("--delete", metavar="TAG", help="Delete a project and its history")

    # leaderboard
    board_parser = subparsers.add_parser("leaderboard", help="Best names found for a project")
    board_parser.add_argument("project", help="Project tag")
    board_parser.add_argument("--min-score", type=float, default=0.0)
    board_parser.add_argument("--verdicts", help="Comma-separated verdicts to include")
    board_parser.add_argument("--limit", type=int, default=20)
    board_parser.add_argument("--json", action="store_true", help="Output results as JSON")

    return parser


COMMANDS = {
    "check": cmd_check,
    "list": cmd_list,
    "profiles": cmd_profiles,
    "models": cmd_models,
    "generate": cmd_generate,
    "find": cmd_find,
    "judge": cmd_judge,
    "projects": cmd_projects,
    "leaderboard": cmd_leaderboard,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    level = logging.WARNING if args.verbose == 0 else logging.INFO if args.verbose == 1 else logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    handler = COMMANDS[args.command]
    try:
        if inspect.iscoroutinefunction(handler):
            return asyncio.run(handler(args))
        return handler(args)
    except (CheckNameError, ProviderError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
