"""Report serialization to JSON, XML, HTML and Markdown files."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any
import xml.etree.ElementTree as ET

from jinja2 import Environment, PackageLoader, select_autoescape

from .constants import LEVELS
from .exceptions import ExportError
from .model import ValidationReport

_NONE = "(none)"

_jinja = Environment(
    loader=PackageLoader("caniemail", "templates"),
    autoescape=select_autoescape(enabled_extensions=("html.j2",), default=False),
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=True,
)

# Mapping values whose keys are feature tokens rather than element names.
_TOKEN_KEYED = {"partialNotes"}


def _template_context(report: ValidationReport) -> dict[str, Any]:
    return {
        "report": report,
        "percentages": [(level, f"{report.percentage(level):.2f}") for level in LEVELS],
        "notes": sorted(report.partial_notes.items()),
        "unknown": sorted(report.unknown_features),
        "empty": _NONE,
    }


def report_to_json(report: ValidationReport) -> str:
    return json.dumps(report.to_dict(), indent=2, ensure_ascii=False)


def _append_value(parent: ET.Element, name: str, value: Any) -> None:
    element = ET.SubElement(parent, name)
    if isinstance(value, dict):
        for key in sorted(value):
            if name in _TOKEN_KEYED:
                entry = ET.SubElement(element, "feature", {"token": str(key)})
                for note in value[key]:
                    ET.SubElement(entry, "note").text = str(note)
            else:
                _append_value(element, str(key), value[key])
    elif isinstance(value, list):
        for item in value:
            ET.SubElement(element, "item").text = str(item)
    elif value is not None:
        element.text = str(value)


def report_to_xml(report: ValidationReport) -> str:
    root = ET.Element("report")
    for key, value in report.to_dict().items():
        _append_value(root, key, value)
    ET.indent(root)
    body = ET.tostring(root, encoding="unicode")
    return f'<?xml version="1.0" encoding="UTF-8"?>\n{body}\n'


def report_to_markdown(report: ValidationReport) -> str:
    return _jinja.get_template("report.md.j2").render(_template_context(report))


def report_to_html(report: ValidationReport) -> str:
    return _jinja.get_template("report.html.j2").render(_template_context(report))


class ReportExporter:
    """Write every report format into one directory."""

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    def export(self, report: ValidationReport) -> list[Path]:
        contents = {
            "report.json": report_to_json(report),
            "report.xml": report_to_xml(report),
            "report.html": report_to_html(report),
            "report.md": report_to_markdown(report),
        }
        written: list[Path] = []
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            for name, content in contents.items():
                path = self.directory / name
                path.write_text(content, encoding="utf-8")
                written.append(path)
        except OSError as exc:
            raise ExportError(str(self.directory), cause=exc.__class__.__name__) from exc
        return written
