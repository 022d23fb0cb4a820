"""Data models for the compatibility dataset and validation reports."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from .constants import REFERENCE_URL

_ZERO = Decimal("0.00")


@dataclass(frozen=True)
class FeatureRecord:
    slug: str
    title: str
    category: str
    stats: Mapping[str, Any]
    notes_by_num: Mapping[str, Any] = field(default_factory=dict)


@dataclass
class SupportCounts:
    accepted: int = 0
    partial: int = 0
    rejected: int = 0

    @property
    def total(self) -> int:
        return self.accepted + self.partial + self.rejected


@dataclass(frozen=True)
class AuditResult:
    status: str
    issues: list[str] = field(default_factory=list)

    @property
    def issue_count(self) -> int:
        return len(self.issues)


@dataclass(frozen=True)
class ValidationReport:
    """Outcome of scoring one HTML document against the dataset."""

    total_features: int
    accepted: Decimal = _ZERO
    partial: Decimal = _ZERO
    rejected: Decimal = _ZERO
    partial_notes: dict[str, list[str]] = field(default_factory=dict)
    unknown_features: list[str] = field(default_factory=list)
    partial_clients: list[str] = field(default_factory=list)
    rejected_clients: list[str] = field(default_factory=list)
    feature_count: int = 0
    client_count: int = 0
    operating_system_count: int = 0
    reference_url: str = REFERENCE_URL
    ignored_features: list[str] = field(default_factory=list)
    audit: AuditResult | None = None

    @property
    def ignored_count(self) -> int:
        return len(self.ignored_features)

    def percentage(self, level: str) -> Decimal:
        value = getattr(self, level, None)
        return value if isinstance(value, Decimal) else _ZERO

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the camelCase mapping used by exported reports."""
        output: dict[str, Any] = {
            "totalFeatures": self.total_features,
            "accepted": f"{self.accepted:.2f}",
            "partial": f"{self.partial:.2f}",
            "rejected": f"{self.rejected:.2f}",
            "partialNotes": {key: list(notes) for key, notes in self.partial_notes.items()},
            "unknownFeatures": list(self.unknown_features),
            "partialClients": list(self.partial_clients),
            "rejectedClients": list(self.rejected_clients),
            "featureCount": self.feature_count,
            "clientCount": self.client_count,
            "operatingSystemCount": self.operating_system_count,
            "caniemailUrl": self.reference_url,
        }
        if self.ignored_features:
            output["ignoredFeatures"] = list(self.ignored_features)
            output["ignoredFeatureCount"] = self.ignored_count
        if self.audit is not None:
            output["auditStatus"] = self.audit.status
            output["auditIssueCount"] = self.audit.issue_count
            output["auditIssues"] = list(self.audit.issues)
        return output
