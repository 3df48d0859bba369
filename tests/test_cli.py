"""
Tests for the command-line interface.

Only offline paths are exercised: manual-check probes and the mock provider.
"""

import json

import pytest

from checkname.cli import build_parser, format_scores_table, main
from checkname.config import config
from checkname.models import Candidate, NameScore, Verdict
from checkname.store import DuckDBStore


@pytest.fixture
def db_path(tmp_path, monkeypatch):
    path = tmp_path / "names.duckdb"
    monkeypatch.setattr(config.store, "db_path", path)
    return path


class TestParser:
    def test_find_defaults(self):
        args = build_parser().parse_args(["find", "a fast grep"])

        assert args.count == config.find.target_count
        assert args.threshold == config.find.threshold
        assert args.mock is False

    def test_check_multiple_names(self):
        args = build_parser().parse_args(["check", "foo", "bar", "--profile", "rust"])

        assert args.names == ["foo", "bar"]
        assert args.profile == "rust"

    def test_no_command(self, capsys):
        assert main([]) == 1


class TestCommands:
    def test_profiles(self, capsys):
        assert main(["profiles"]) == 0
        assert "minimal" in capsys.readouterr().out

    def test_list(self, capsys):
        assert main(["list"]) == 0
        out = capsys.readouterr().out
        assert "github-uniqueness" in out
        assert "trademark" in out

    def test_check_json(self, capsys):
        assert main(["check", "My Tool", "--probes", "uspto,fossmarks", "--json"]) == 0

        data = json.loads(capsys.readouterr().out)
        assert data[0]["name"] == "my-tool"
        assert data[0]["summary"]["manual_check"] == 2
        assert data[0]["summary"]["total"] == 0

    def test_check_text(self, capsys):
        assert main(["check", "foo", "--probes", "uspto"]) == 0
        out = capsys.readouterr().out
        assert "Trademarks (manual)" in out
        assert "uspto" in out

    def test_unknown_probe(self, capsys):
        assert main(["check", "foo", "--probes", "cpan"]) == 2
        assert "Unknown probe" in capsys.readouterr().err

    def test_unknown_category(self, capsys):
        assert main(["check", "foo", "--profile", "minimal", "--only", "weather"]) == 2
        assert "Unknown category" in capsys.readouterr().err

    def test_only_filters_categories(self, capsys):
        assert main(["check", "foo", "--profile", "complete", "--only", "trademark", "--json"]) == 0

        data = json.loads(capsys.readouterr().out)
        assert {r["category"] for r in data[0]["results"]} == {"trademark"}

    def test_generate_mock(self, capsys):
        assert main(["generate", "a fast grep", "-n", "3", "--mock", "--json", "--exclude", "ferro"]) == 0

        names = [c["name"] for c in json.loads(capsys.readouterr().out)]
        assert len(names) == 3
        assert "ferro" not in names

    def test_judge_mock(self, capsys):
        assert main(["judge", "a fast grep", "sora", "tessel12", "--mock", "--json"]) == 0

        scores = json.loads(capsys.readouterr().out)
        assert [s["name"] for s in scores] == ["sora", "tessel12"]
        assert scores[0]["verdict"] == "strong"

    def test_find_mock_to_file(self, tmp_path, capsys):
        output = tmp_path / "report.md"
        code = main([
            "find", "a fast grep", "--mock", "--probes", "uspto", "--threshold", "0",
            "--count", "2", "--batch-size", "3", "--output", str(output),
        ])

        assert code == 0
        report = output.read_text()
        assert report.startswith("# Project Name Candidates")
        assert "Report written" in capsys.readouterr().err

    def test_find_with_unusable_database_runs_without_history(self, tmp_path, monkeypatch, capsys):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("")
        monkeypatch.setattr(config.store, "db_path", blocker / "names.duckdb")

        code = main([
            "find", "a fast grep", "--mock", "--project", "grep", "--probes", "uspto",
            "--threshold", "0", "--count", "1", "--batch-size", "2", "--json",
        ])

        assert code == 0
        result = json.loads(capsys.readouterr().out)
        assert result["status"] == "complete"
        assert len(result["candidates"]) == 1

    def test_models(self, capsys):
        assert main(["models"]) == 0
        out = capsys.readouterr().out
        assert "gemini-pro" in out
        assert "google/gemini-2.5-pro" in out
        assert "default judge" in out

    def test_judge_from_generate_json(self, tmp_path, capsys):
        names_file = tmp_path / "names.json"
        names_file.write_text(json.dumps([{"name": "sora", "rationale": "sky"}, {"name": "vela"}]))

        assert main(["judge", "a fast grep", "tessel12", "--from-file", str(names_file), "--mock", "--json"]) == 0

        scores = json.loads(capsys.readouterr().out)
        assert [s["name"] for s in scores] == ["sora", "vela", "tessel12"]

    def test_judge_from_plain_lines(self, tmp_path, capsys):
        names_file = tmp_path / "names.txt"
        names_file.write_text("sora\n\n  Vela \n")

        assert main(["judge", "a fast grep", "-f", str(names_file), "--mock", "--json"]) == 0

        assert [s["name"] for s in json.loads(capsys.readouterr().out)] == ["sora", "vela"]

    def test_judge_without_names(self, capsys):
        assert main(["judge", "a fast grep", "--mock"]) == 2
        assert "No names to judge" in capsys.readouterr().err

    def test_projects_and_leaderboard(self, db_path, capsys):
        with DuckDBStore(db_path) as store:
            pid = store.get_or_create_project("grep", "a fast grep")
            store.record_name(pid, Candidate("ferro"))
            store.record_score(pid, NameScore("ferro", 4.2, Verdict.STRONG), "judge")

        assert main(["projects"]) == 0
        assert "grep" in capsys.readouterr().out

        assert main(["leaderboard", "grep", "--json"]) == 0
        entries = json.loads(capsys.readouterr().out)
        assert entries[0]["name"] == "ferro"

        assert main(["projects", "--delete", "grep"]) == 0
        assert main(["projects", "--delete", "grep"]) == 1


class TestFormatting:
    def test_scores_table_sorted(self):
        table = format_scores_table([
            NameScore("low", 2.0, Verdict.REJECT),
            NameScore("high", 4.5, Verdict.STRONG, weaknesses="long"),
        ])
        rows = table.splitlines()[2:]

        assert rows[0].startswith("| **high**")
        assert "strong" in rows[0] and "long" in rows[0]
