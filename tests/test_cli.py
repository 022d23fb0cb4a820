from __future__ import annotations

from collections.abc import Sequence
import json
from pathlib import Path
from typing import Any

from click.testing import CliRunner
import pytest

from caniemail import __version__, cli, validator
from caniemail.database import FeatureDatabase
from caniemail.exceptions import DatasetError, HttpStatusError


@pytest.fixture(autouse=True)
def _use_sample_database(
    monkeypatch: pytest.MonkeyPatch, sample_database: FeatureDatabase
) -> None:
    monkeypatch.setattr(validator, "default_database", lambda: sample_database)
    for name in (
        "CANIEMAIL_AUDIT",
        "CANIEMAIL_AUDITOR",
        "CANIEMAIL_DATASET",
        "CANIEMAIL_IGNORE",
        "GITHUB_OUTPUT",
    ):
        monkeypatch.delenv(name, raising=False)


def test_help() -> None:
    runner = CliRunner()
    result = runner.invoke(cli.main, ["--help"])
    assert result.exit_code == 0
    assert "Usage:" in result.output
    assert "--audit-tags" in result.output


def test_version() -> None:
    runner = CliRunner()
    result = runner.invoke(cli.main, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_json_output_without_export(tmp_path: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(
        cli.main,
        ['<table style="display:flex"></table>', "--json", "--no-export", "-o", str(tmp_path)],
    )
    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["accepted"] == "77.78"
    assert data["partialClients"] == ["ios:gmail"]
    assert list(tmp_path.iterdir()) == []


def test_reads_stdin() -> None:
    runner = CliRunner()
    result = runner.invoke(
        cli.main, ["--json", "--no-export"], input="<html><body><table></table></body></html>"
    )
    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["unknownFeatures"] == []
    assert data["ignoredFeatures"] == ["tag:html", "tag:body"]
    assert data["accepted"] == "100.00"


def test_rich_output_and_reports(tmp_path: Path) -> None:
    runner = CliRunner()
    out_dir = tmp_path / "reports"
    result = runner.invoke(cli.main, ["<marquee></marquee>", "-o", str(out_dir)])
    assert result.exit_code == 0
    assert "Features evaluated: 1" in result.output
    assert "tag:marquee" in result.output
    assert sorted(path.name for path in out_dir.iterdir()) == [
        "report.html",
        "report.json",
        "report.md",
        "report.xml",
    ]


def test_extra_ignore_tokens() -> None:
    runner = CliRunner()
    result = runner.invoke(
        cli.main, ["<marquee></marquee>", "--ignore", "TAG:MARQUEE, ", "--json", "--no-export"]
    )
    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["unknownFeatures"] == []
    assert data["ignoredFeatureCount"] == 1


def test_github_outputs(tmp_path: Path) -> None:
    runner = CliRunner()
    output_file = tmp_path / "github_output"
    out_dir = tmp_path / "reports"
    result = runner.invoke(
        cli.main,
        ["<table style='display:flex'><blink></blink></table>", "-o", str(out_dir)],
        env={"GITHUB_OUTPUT": str(output_file)},
    )
    assert result.exit_code == 0
    lines = dict(
        line.split("=", 1) for line in output_file.read_text(encoding="utf-8").splitlines()
    )
    assert lines["accepted"] == "77.78"
    assert lines["partial"] == "11.11"
    assert lines["rejected"] == "11.11"
    assert lines["unknown"] == "tag:blink"
    assert lines["audit_status"] == "skipped"
    assert lines["audit_issues"] == "0"
    assert lines["report_json"] == str(out_dir.resolve() / "report.json")


def test_escape_github_output() -> None:
    assert cli._escape_github_output("50%\r\nnext") == "50%25%0D%0Anext"


def test_input_error_exits_one() -> None:
    runner = CliRunner()
    result = runner.invoke(cli.main, ["definitely-not-a-file", "--no-export"])
    assert result.exit_code == 1
    assert "Input error" in result.output


def test_remote_failure_exits_one(monkeypatch: pytest.MonkeyPatch) -> None:
    def _fail(value: str | None) -> str:
        raise HttpStatusError(500, str(value))

    monkeypatch.setattr(cli, "load_source", _fail)
    runner = CliRunner()
    result = runner.invoke(cli.main, ["https://example.com/mail.html", "--no-export"])
    assert result.exit_code == 1
    assert "HTTP 500" in result.output


def test_dataset_error_exits_two(monkeypatch: pytest.MonkeyPatch) -> None:
    def _broken() -> FeatureDatabase:
        raise DatasetError("caniemail.data/features-database.json", cause="invalid JSON")

    monkeypatch.setattr(validator, "default_database", _broken)
    runner = CliRunner()
    result = runner.invoke(cli.main, ["<p></p>", "--no-export"])
    assert result.exit_code == 2
    assert "Unable to validate HTML" in result.output


class _CrashingAuditor:
    def audit(self, html: str, tags: Sequence[str]) -> list[Any]:
        raise RuntimeError("chromium not installed")


class _CleanAuditor:
    calls: list[list[str]] = []

    def audit(self, html: str, tags: Sequence[str]) -> list[Any]:
        self.calls.append(list(tags))
        return []


def test_audit_defaults_to_playwright_auditor(monkeypatch: pytest.MonkeyPatch) -> None:
    _CleanAuditor.calls = []
    monkeypatch.setattr(cli, "PlaywrightAuditor", _CleanAuditor)
    runner = CliRunner()
    result = runner.invoke(
        cli.main,
        ["<p>hi</p>", "--audit", "--audit-tags", "wcag2aa", "--json", "--no-export"],
    )
    assert result.exit_code == 0
    assert json.loads(result.stdout)["auditStatus"] == "pass"
    assert _CleanAuditor.calls == [["wcag2aa"]]


def test_failing_default_auditor_exits_two(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli, "PlaywrightAuditor", _CrashingAuditor)
    runner = CliRunner()
    result = runner.invoke(cli.main, ["<p>hi</p>", "--audit", "--json", "--no-export"])
    assert result.exit_code == 2
    data = json.loads(result.stdout)
    assert data["auditStatus"] == "error"
    assert data["auditIssues"] == ["audit failure: RuntimeError: chromium not installed"]


def test_dataset_option_replaces_bundled_snapshot(tmp_path: Path) -> None:
    snapshot = tmp_path / "features.json"
    snapshot.write_text(
        json.dumps(
            {"html-marquee": {"title": "<marquee>", "category": "html", "stats": {"gmail": "n"}}}
        ),
        encoding="utf-8",
    )
    runner = CliRunner()
    result = runner.invoke(
        cli.main, ["<marquee>hi</marquee>", "--dataset", str(snapshot), "--json", "--no-export"]
    )
    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["rejected"] == "100.00"
    assert data["unknownFeatures"] == []
    assert data["featureCount"] == 1


def test_unreadable_dataset_exits_two(tmp_path: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(
        cli.main, ["<p></p>", "--dataset", str(tmp_path / "missing.json"), "--no-export"]
    )
    assert result.exit_code == 2
    assert "missing.json" in result.output


def test_empty_audit_tags_rejected() -> None:
    runner = CliRunner()
    result = runner.invoke(cli.main, ["<p></p>", "--audit-tags", " , "])
    assert result.exit_code == 2
    assert "tag list cannot be empty" in result.output


def test_bad_auditor_reference_exits_one() -> None:
    runner = CliRunner()
    result = runner.invoke(
        cli.main, ["<p></p>", "--audit", "--auditor", "no_such_module:make", "--no-export"]
    )
    assert result.exit_code == 1
    assert "Unable to load auditor" in result.output
