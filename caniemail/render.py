"""Console renderer for validation reports."""

from __future__ import annotations

from rich.console import Group
from rich.panel import Panel
from rich.text import Text

from .constants import AUDIT_STATUS_PASS, LEVEL_ACCEPTED, LEVEL_PARTIAL, LEVELS
from .model import ValidationReport

_LEVEL_ICON_MAP: dict[str, str] = {
    "accepted": "✅",
    "partial": "◐",
    "rejected": "❌",
}

_LEVEL_STYLE_MAP: dict[str, str] = {
    "accepted": "green",
    "partial": "yellow",
    "rejected": "red",
}


def _section(lines: list[Text], title: str, values: list[str], style: str = "") -> None:
    if not values:
        return
    lines.append(Text(""))
    lines.append(Text(title, style="bold"))
    for value in values:
        lines.append(Text(f"  * {value}", style=style))


def render_report(report: ValidationReport) -> Group:
    """Render a validation report as a Rich renderable group."""
    lines: list[Text] = [Text(f"Features evaluated: {report.total_features}", style="bold")]

    for level in LEVELS:
        icon = _LEVEL_ICON_MAP[level]
        lines.append(
            Text(
                f"  {icon} {level}: {report.percentage(level):.2f}%",
                style=_LEVEL_STYLE_MAP[level],
            )
        )

    lines.append(Text(""))
    lines.append(Text("Findings", style="bold"))
    if not report.partial_notes:
        lines.append(Text("  (none)", style="dim"))
    for token, notes in sorted(report.partial_notes.items()):
        suffix = f" ({'; '.join(notes)})" if notes else ""
        lines.append(Text(f"  * {token} -> {LEVEL_PARTIAL}{suffix}"))

    _section(lines, "Unknown", sorted(report.unknown_features), style="dim")
    _section(lines, "Partial clients", report.partial_clients, style="yellow")
    _section(lines, "Rejected clients", report.rejected_clients, style="red")
    if report.ignored_features:
        _section(lines, f"Ignored ({report.ignored_count})", report.ignored_features, style="dim")

    if report.audit is not None:
        audit_style = "green" if report.audit.status == AUDIT_STATUS_PASS else "red"
        lines.append(Text(""))
        lines.append(
            Text(
                f"Accessibility audit: {report.audit.status} ({report.audit.issue_count} issues)",
                style=f"bold {audit_style}",
            )
        )
        for issue in report.audit.issues:
            lines.append(Text(f"  - {issue}"))

    lines.append(Text(""))
    lines.append(
        Text(
            f"Dataset: {report.feature_count} features, {report.client_count} clients, "
            f"{report.operating_system_count} operating systems",
            style="dim",
        )
    )
    lines.append(Text(f"Reference: {report.reference_url}", style="dim"))

    border = "green" if report.percentage(LEVEL_ACCEPTED) >= 90 else "blue"
    return Group(Panel(Group(*lines), border_style=border, title="caniemail"))
