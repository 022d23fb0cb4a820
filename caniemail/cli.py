"""Console script for caniemail."""

from __future__ import annotations

import logging
import os
from pathlib import Path

import click
from rich.console import Console

from . import __version__ as _version
from .audit import Auditor, PlaywrightAuditor, load_auditor
from .constants import (
    AUDIT_STATUS_ERROR,
    AUDIT_STATUS_SKIPPED,
    DEBUG_ENV_VAR,
    DEFAULT_IGNORED_TOKENS,
    DEFAULT_OUTPUT_DIR,
    ENV_AUDIT,
    ENV_AUDIT_TAGS,
    ENV_AUDITOR,
    ENV_DATASET,
    ENV_GITHUB_OUTPUT,
    ENV_IGNORE,
    ENV_OUTPUT_DIR,
    LEVELS,
)
from .database import FeatureDatabase
from .exceptions import (
    CaniemailError,
    ContentError,
    HttpStatusError,
    InvalidInputError,
    NetworkError,
    RequestTimeoutError,
)
from .export import ReportExporter, report_to_json
from .model import ValidationReport
from .render import render_report
from .source import load_source
from .util.text import split_csv
from .validator import ignore_tokens, validate

_INPUT_ERRORS = (
    InvalidInputError,
    NetworkError,
    RequestTimeoutError,
    HttpStatusError,
    ContentError,
)


def _escape_github_output(value: str) -> str:
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def _write_github_outputs(report: ValidationReport, output_dir: Path) -> None:
    target = os.environ.get(ENV_GITHUB_OUTPUT, "").strip()
    if not target:
        return
    output_dir = output_dir.resolve()
    values = {level: f"{report.percentage(level):.2f}" for level in LEVELS}
    values["unknown"] = ",".join(report.unknown_features)
    values["audit_status"] = report.audit.status if report.audit else AUDIT_STATUS_SKIPPED
    values["audit_issues"] = str(report.audit.issue_count if report.audit else 0)
    values["report_dir"] = str(output_dir)
    values["report_json"] = str(output_dir / "report.json")
    values["report_md"] = str(output_dir / "report.md")
    lines = "".join(f"{key}={_escape_github_output(value)}\n" for key, value in values.items())
    try:
        with open(target, "a", encoding="utf-8") as handle:
            handle.write(lines)
    except OSError as exc:
        raise CaniemailError(f"Unable to write GitHub outputs to {target}") from exc


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument(
    "source",
    metavar="[HTML|FILE|URL|-]",
    nargs=-1,
    required=False,
    type=click.STRING,
)
@click.option(
    "-o",
    "--output-dir",
    envvar=ENV_OUTPUT_DIR,
    default=DEFAULT_OUTPUT_DIR,
    show_default=True,
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory for the JSON/XML/HTML/Markdown reports.",
)
@click.option(
    "--audit/--no-audit",
    envvar=ENV_AUDIT,
    default=False,
    help="Run the accessibility audit.",
)
@click.option(
    "--auditor",
    "auditor_ref",
    envvar=ENV_AUDITOR,
    metavar="MODULE:FACTORY",
    help="Accessibility auditor to use with --audit (default: Playwright with axe-core).",
)
@click.option(
    "--audit-tags",
    envvar=ENV_AUDIT_TAGS,
    metavar="TAG,...",
    help="Limit the audit to specific rule tags (e.g. wcag2aa,best-practice).",
)
@click.option(
    "--ignore",
    "ignore",
    envvar=ENV_IGNORE,
    metavar="TOKEN,...",
    help="Extra feature tokens to leave out of the findings (e.g. tag:meta).",
)
@click.option(
    "--dataset",
    envvar=ENV_DATASET,
    type=click.Path(dir_okay=False, path_type=Path),
    help="caniemail features JSON export to use instead of the bundled snapshot.",
)
@click.option("--no-export", is_flag=True, help="Do not write report files.")
@click.option("--json", "as_json", is_flag=True, help="Print the JSON report.")
@click.option("--debug", is_flag=True, help="Log debug information to stderr.")
@click.version_option(_version, "-v", "--version")
@click.pass_context
def main(
    ctx: click.Context,
    source: tuple[str, ...],
    output_dir: Path,
    audit: bool,
    auditor_ref: str | None,
    audit_tags: str | None,
    ignore: str | None,
    dataset: Path | None,
    no_export: bool,
    as_json: bool,
    debug: bool,
) -> None:
    """
    Check email HTML against the caniemail.com support dataset

    \b
    Example usages:
      caniemail '<table style="display:flex"></table>'
      caniemail template.html --ignore tag:meta
      caniemail template.html --audit --audit-tags wcag2aa
      cat template.html | caniemail --json --no-export
    """
    if debug:
        os.environ[DEBUG_ENV_VAR] = "1"
        logging.basicConfig(level=logging.DEBUG)

    tags = split_csv(audit_tags)
    if audit_tags is not None and not tags:
        raise click.BadParameter("tag list cannot be empty", param_hint="--audit-tags")

    console = Console()
    try:
        auditor: Auditor | None = None
        if audit:
            auditor = load_auditor(auditor_ref) if auditor_ref else PlaywrightAuditor()
        database = FeatureDatabase.from_path(dataset) if dataset is not None else None
        html = load_source(" ".join(source) if source else None)
        report = validate(html, audit, tags, database=database, auditor=auditor)
        report = ignore_tokens(report, [*DEFAULT_IGNORED_TOKENS, *split_csv(ignore)])

        if as_json:
            click.echo(report_to_json(report))
        else:
            console.print(render_report(report))

        if not no_export:
            ReportExporter(output_dir).export(report)
            _write_github_outputs(report, output_dir)
    except _INPUT_ERRORS as exc:
        click.echo(f"Input error: {exc}", err=True)
        ctx.exit(1)
    except CaniemailError as exc:
        click.echo(f"Unable to validate HTML: {exc}", err=True)
        ctx.exit(2)

    if report.audit is not None and report.audit.status == AUDIT_STATUS_ERROR:
        ctx.exit(2)
