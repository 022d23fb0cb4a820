"""Weigh the features used by an HTML document against the caniemail dataset."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import replace
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from .audit import Auditor, run_audit
from .constants import (
    DEFAULT_IGNORED_TOKENS,
    GENERIC_PLATFORM,
    LEVEL_ACCEPTED,
    LEVEL_PARTIAL,
    LEVEL_REJECTED,
)
from .database import FeatureDatabase, default_database
from .exceptions import InvalidInputError
from .model import FeatureRecord, SupportCounts, ValidationReport
from .tokenizer import list_features
from .util.html import debug_log
from .util.text import normalize_tokens, slugify_client

_SHARE_PLACES = Decimal("0.00000001")
_PERCENT_PLACES = Decimal("0.01")
_HUNDRED = Decimal(100)


def _synthetic_record(slug: str, title: str) -> FeatureRecord:
    return FeatureRecord(
        slug=slug,
        title=title,
        category="",
        stats={"synthetic": {"global": {"2024-01": "y"}}},
    )


# Plain HTML constructs every client understands but the dataset does not list.
_FALLBACK_RECORDS: dict[str, FeatureRecord] = {
    "attribute:style": _synthetic_record("html-inline-style", "Inline style attribute"),
    "attribute:class": _synthetic_record("html-class-attribute", "Class attribute"),
    "css:color": _synthetic_record("css-color", "color"),
}


def _tally_code(value: object, counts: SupportCounts) -> None:
    if value is None:
        return
    if not isinstance(value, str):
        counts.partial += 1
        return
    code = value.strip()
    if not code:
        counts.partial += 1
        return
    first_char = code[0].lower()
    if first_char == "y":
        counts.accepted += 1
    elif first_char == "n":
        counts.rejected += 1
    else:
        counts.partial += 1


def tally(node: Any, counts: SupportCounts | None = None) -> SupportCounts:
    """Count every support code reachable from node, whatever its nesting."""
    counts = counts if counts is not None else SupportCounts()
    if isinstance(node, Mapping):
        for value in node.values():
            tally(value, counts)
    elif isinstance(node, (list, tuple)):
        for value in node:
            tally(value, counts)
    else:
        _tally_code(node, counts)
    return counts


def classify(counts: SupportCounts) -> str:
    if counts.accepted > 0 and counts.partial == 0 and counts.rejected == 0:
        return LEVEL_ACCEPTED
    if counts.rejected > 0 and counts.accepted == 0:
        return LEVEL_REJECTED
    return LEVEL_PARTIAL


def collect_notes(notes_by_num: Mapping[str, Any] | None) -> list[str]:
    if not notes_by_num:
        return []
    notes: list[str] = []
    for key, value in sorted(notes_by_num.items(), key=lambda item: str(item[0])):
        if value is None:
            continue
        text = str(value).strip()
        if text:
            notes.append(text)
    return notes


def evaluate_feature(record: FeatureRecord) -> tuple[str, list[str]]:
    """Classify a whole feature and return its status with its ordered notes."""
    return classify(tally(record.stats)), collect_notes(record.notes_by_num)


def client_statuses(stats: Mapping[str, Any]) -> dict[str, str]:
    """Classify every client/platform pairing, keyed ``<platform>:<client>``."""
    statuses: dict[str, str] = {}
    for client, payload in stats.items():
        if isinstance(payload, Mapping):
            for platform, data in payload.items():
                key = f"{slugify_client(str(platform))}:{slugify_client(str(client))}"
                statuses[key] = classify(tally(data))
        else:
            key = f"{GENERIC_PLATFORM}:{slugify_client(str(client))}"
            statuses[key] = classify(tally(payload))
    return statuses


def _share(part: int, total: int) -> Decimal:
    return (Decimal(part) / Decimal(total)).quantize(_SHARE_PLACES, rounding=ROUND_HALF_UP)


def _percentage(total_share: Decimal, feature_count: int) -> Decimal:
    mean = (total_share / Decimal(feature_count)).quantize(_SHARE_PLACES, rounding=ROUND_HALF_UP)
    return (mean * _HUNDRED).quantize(_PERCENT_PLACES, rounding=ROUND_HALF_UP)


def _resolve(token: str, database: FeatureDatabase) -> FeatureRecord | None:
    record = database.get(token)
    if record is None:
        record = _FALLBACK_RECORDS.get(token)
    return record


def validate(
    html: str | None,
    include_audit: bool = False,
    audit_tags: Sequence[str] | None = None,
    *,
    database: FeatureDatabase | None = None,
    auditor: Auditor | None = None,
) -> ValidationReport:
    """Score html against the dataset and return a fresh ValidationReport.

    Each feature that has client data contributes its own accepted/partial/
    rejected share of client-platform pairings; the reported percentages are
    the mean of those shares, so every feature weighs the same no matter how
    many clients it was tested against.
    """
    if html is None:
        raise InvalidInputError("html must not be None")
    if database is None:
        database = default_database()

    features = list_features(html)
    partial_notes: dict[str, list[str]] = {}
    unknown: list[str] = []
    partial_clients: set[str] = set()
    rejected_clients: set[str] = set()
    totals = {LEVEL_ACCEPTED: Decimal(0), LEVEL_PARTIAL: Decimal(0), LEVEL_REJECTED: Decimal(0)}
    weighted_features = 0

    for feature in features:
        record = _resolve(feature, database)
        if record is None:
            unknown.append(feature)
            continue

        status, notes = evaluate_feature(record)
        if status == LEVEL_PARTIAL:
            partial_notes[feature] = notes

        clients = client_statuses(record.stats)
        if not clients:
            continue
        weighted_features += 1
        for level in totals:
            matching = sum(1 for client_status in clients.values() if client_status == level)
            totals[level] += _share(matching, len(clients))
        for client_name, client_status in clients.items():
            if client_status == LEVEL_PARTIAL:
                partial_clients.add(client_name)
            elif client_status == LEVEL_REJECTED:
                rejected_clients.add(client_name)

    if weighted_features:
        percentages = {
            level: _percentage(share, weighted_features) for level, share in totals.items()
        }
    else:
        percentages = {level: Decimal("0.00") for level in totals}

    if unknown:
        debug_log(f"Unknown features: {', '.join(unknown)}")

    return ValidationReport(
        total_features=len(features),
        accepted=percentages[LEVEL_ACCEPTED],
        partial=percentages[LEVEL_PARTIAL],
        rejected=percentages[LEVEL_REJECTED],
        partial_notes=partial_notes,
        unknown_features=unknown,
        partial_clients=sorted(partial_clients),
        rejected_clients=sorted(rejected_clients),
        feature_count=database.feature_count(),
        client_count=database.client_count(),
        operating_system_count=database.operating_system_count(),
        audit=run_audit(html, audit_tags, auditor) if include_audit else None,
    )


def ignore_tokens(
    report: ValidationReport,
    tokens: Sequence[str | None] | None = DEFAULT_IGNORED_TOKENS,
) -> ValidationReport:
    """Drop the given tokens from the unknown list and the partial notes.

    Percentages and client sets stay as scored; the dropped entries are
    recorded under ``ignored_features``.
    """
    normalized = set(normalize_tokens(tokens))
    if not normalized:
        return report

    ignored = list(report.ignored_features)
    unknown: list[str] = []
    for token in report.unknown_features:
        if token.lower() in normalized:
            ignored.append(token)
        else:
            unknown.append(token)

    partial_notes: dict[str, list[str]] = {}
    for token, notes in report.partial_notes.items():
        if token.lower() in normalized:
            ignored.append(token)
        else:
            partial_notes[token] = notes

    if len(ignored) == len(report.ignored_features):
        return report
    return replace(
        report,
        unknown_features=unknown,
        partial_notes=partial_notes,
        ignored_features=ignored,
    )
