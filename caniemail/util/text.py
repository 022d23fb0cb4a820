"""Text utility helpers."""

from __future__ import annotations

from collections.abc import Iterable
import re

_WHITESPACE_RE = re.compile(r"\s+")


def slugify_client(value: str | None) -> str:
    """Lowercase a client/platform name and collapse whitespace runs to hyphens."""
    if value is None:
        return "unknown"
    return _WHITESPACE_RE.sub("-", value.lower())


def dedupe(values: Iterable[str]) -> list[str]:
    """Trim values, drop blanks and keep the first occurrence of each."""
    output: list[str] = []
    seen: set[str] = set()
    for value in values:
        cleaned = value.strip()
        if not cleaned or cleaned in seen:
            continue
        seen.add(cleaned)
        output.append(cleaned)
    return output


def normalize_tokens(values: Iterable[str | None] | None) -> list[str]:
    """Lowercase, trim and dedupe user supplied tokens or tags."""
    if not values:
        return []
    return dedupe(value.lower() for value in values if value is not None)


def split_csv(value: str | None) -> list[str]:
    """Split a comma separated option value into trimmed non-empty parts."""
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]

