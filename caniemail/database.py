"""Compatibility dataset loading and lookup-key derivation.

Every dataset record is indexed under one or more canonical feature keys:

* ``css:<property>`` for CSS records (slug without the ``css-`` prefix),
* ``attribute:<name>`` / ``tag:<name>`` for HTML records, derived from the
  backticked or angle-bracketed names in the title, or from the slug,
* ``feature:<slug>`` for everything else.

When two records derive the same key the record processed last wins.
"""

from __future__ import annotations

from collections.abc import Mapping
from importlib import resources
import json
from pathlib import Path
import re
import threading
from types import MappingProxyType
from typing import Any

from .constants import DATASET_PACKAGE, DATASET_RESOURCE
from .exceptions import DatasetError
from .model import FeatureRecord
from .util.html import debug_log

_TAG_NAME_RE = re.compile(r"</?((?:[^\W_]|[-:])+)")
_BACKTICK_RE = re.compile(r"`([^`]*)`")
_HEADING_RANGE_RE = re.compile(r"^h(\d+)-h(\d+)$")

_DEFAULT_DATABASE: FeatureDatabase | None = None
_DEFAULT_LOCK = threading.Lock()


def _clean_prefix(slug: str, prefix: str) -> str:
    value = slug.removeprefix(prefix)
    value = value.removesuffix("-element")
    return value.lower()


def _clean_attribute_name(slug: str) -> str:
    return _clean_prefix(slug, "html-").removesuffix("-attribute")


def _looks_like_attribute(title: str, slug: str) -> bool:
    normalized_title = title.lower()
    normalized_slug = slug.lower()
    return (
        "attribute" in normalized_title
        or "attribute" in normalized_slug
        or "aria-" in normalized_slug
        or "data-" in normalized_slug
    )


def _extract_tag_names(title: str) -> list[str]:
    return list(dict.fromkeys(match.group(1).lower() for match in _TAG_NAME_RE.finditer(title)))


def _extract_backtick_names(title: str) -> list[str]:
    names = (match.group(1).strip().lower() for match in _BACKTICK_RE.finditer(title))
    return list(dict.fromkeys(name for name in names if name))


def _expand_heading_range(value: str) -> list[str]:
    match = _HEADING_RANGE_RE.match(value)
    if match is None:
        return []
    start, end = int(match.group(1)), int(match.group(2))
    if start > end:
        return []
    return [f"h{level}" for level in range(start, end + 1)]


def _determine_attribute_names(slug: str, title: str) -> list[str]:
    names = _extract_backtick_names(title)
    if names:
        return names
    return [_clean_attribute_name(slug)]


def _determine_tag_names(slug: str, title: str) -> list[str]:
    names = _extract_tag_names(title)
    cleaned = _clean_prefix(slug, "html-")
    headings = _expand_heading_range(cleaned)
    # Titles like "<h1> to <h6>" only name the endpoints of the range.
    if headings and set(names) <= set(headings):
        return headings
    if names:
        return names
    return [cleaned]


def derive_feature_names(slug: str, category: str, title: str) -> list[str]:
    """Derive the canonical lookup keys for a single dataset record."""
    normalized_category = category.lower()
    if normalized_category == "css":
        return [f"css:{_clean_prefix(slug, 'css-')}"]
    if normalized_category == "html":
        if _looks_like_attribute(title, slug):
            return [f"attribute:{name}" for name in _determine_attribute_names(slug, title)]
        return [f"tag:{name}" for name in _determine_tag_names(slug, title)]
    return [f"feature:{slug}"]


def _to_record(slug: str, raw: Mapping[str, Any]) -> FeatureRecord:
    record_slug = raw.get("slug")
    if not isinstance(record_slug, str) or not record_slug.strip():
        record_slug = slug
    title = raw.get("title")
    category = raw.get("category")
    stats = raw.get("stats")
    notes = raw.get("notes_by_num")
    if not isinstance(notes, Mapping):
        notes = raw.get("notesByNum")
    return FeatureRecord(
        slug=record_slug,
        title=title if isinstance(title, str) else record_slug,
        category=category if isinstance(category, str) else "",
        stats=stats if isinstance(stats, Mapping) else {},
        notes_by_num=notes if isinstance(notes, Mapping) else {},
    )


def _records_from_payload(payload: Any, location: str) -> dict[str, Mapping[str, Any]]:
    if not isinstance(payload, Mapping):
        raise DatasetError(location, cause="expected a JSON object")

    # caniemail.com API exports wrap the records in a "data" list.
    data = payload.get("data")
    if isinstance(data, list):
        output: dict[str, Mapping[str, Any]] = {}
        for item in data:
            if isinstance(item, Mapping) and isinstance(item.get("slug"), str):
                output[item["slug"]] = item
        return output

    return {
        str(slug): raw
        for slug, raw in payload.items()
        if isinstance(raw, Mapping)
    }


class FeatureDatabase:
    """Immutable compatibility dataset plus its derived lookup index."""

    def __init__(self, records: Mapping[str, Mapping[str, Any]]) -> None:
        self._records: dict[str, FeatureRecord] = {
            str(slug): _to_record(str(slug), raw) for slug, raw in records.items()
        }

        lookup: dict[str, FeatureRecord] = {}
        for record in self._records.values():
            for name in derive_feature_names(record.slug, record.category, record.title):
                lookup[name] = record
        self._lookup = MappingProxyType(lookup)

        clients: dict[str, None] = {}
        platforms: dict[str, None] = {}
        for record in self._records.values():
            for client, payload in record.stats.items():
                clients[str(client).lower()] = None
                if isinstance(payload, Mapping):
                    for platform in payload:
                        platforms[str(platform).lower()] = None
        self._clients = tuple(clients)
        self._platforms = tuple(platforms)

    @classmethod
    def from_mapping(cls, payload: Any, *, location: str = "<memory>") -> FeatureDatabase:
        return cls(_records_from_payload(payload, location))

    @classmethod
    def from_path(cls, path: str | Path) -> FeatureDatabase:
        location = str(path)
        try:
            raw = Path(path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise DatasetError(location, cause=exc.__class__.__name__) from exc
        return cls._from_json(raw, location)

    @classmethod
    def load(cls) -> FeatureDatabase:
        """Load the snapshot bundled with the package."""
        location = f"{DATASET_PACKAGE}/{DATASET_RESOURCE}"
        try:
            raw = resources.files(DATASET_PACKAGE).joinpath(DATASET_RESOURCE).read_text(
                encoding="utf-8"
            )
        except (OSError, UnicodeDecodeError, ModuleNotFoundError) as exc:
            raise DatasetError(location, cause=exc.__class__.__name__) from exc
        return cls._from_json(raw, location)

    @classmethod
    def _from_json(cls, raw: str, location: str) -> FeatureDatabase:
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise DatasetError(location, cause="invalid JSON") from exc
        database = cls.from_mapping(payload, location=location)
        debug_log(
            f"Loaded {database.feature_count()} features, {len(database.lookup())} lookup keys "
            f"from {location}"
        )
        return database

    def lookup(self) -> Mapping[str, FeatureRecord]:
        return self._lookup

    def get(self, token: str) -> FeatureRecord | None:
        return self._lookup.get(token)

    def feature_count(self) -> int:
        return len(self._records)

    def clients(self) -> list[str]:
        return list(self._clients)

    def client_count(self) -> int:
        return len(self._clients)

    def operating_systems(self) -> list[str]:
        return list(self._platforms)

    def operating_system_count(self) -> int:
        return len(self._platforms)


def default_database() -> FeatureDatabase:
    """Return the process-wide database, loading the bundled snapshot once."""
    global _DEFAULT_DATABASE
    if _DEFAULT_DATABASE is None:
        with _DEFAULT_LOCK:
            if _DEFAULT_DATABASE is None:
                _DEFAULT_DATABASE = FeatureDatabase.load()
    return _DEFAULT_DATABASE
