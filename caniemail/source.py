"""Resolve a user supplied HTML source into markup."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
import sys
from typing import TextIO
from urllib.parse import urlparse

from .exceptions import InvalidInputError
from .http import fetch_remote_html


def looks_like_inline_html(source: str) -> bool:
    return source.lstrip().startswith("<")


def http_url(source: str) -> str | None:
    """Return source trimmed if it is an http(s) URL, otherwise None."""
    candidate = source.strip()
    try:
        parsed = urlparse(candidate)
    except ValueError:
        return None
    if parsed.scheme.lower() in {"http", "https"} and parsed.netloc:
        return candidate
    return None


def _is_existing_file(source: str) -> bool:
    try:
        return Path(source).is_file()
    except (OSError, ValueError):
        return False


def load_source(
    source: str | None,
    *,
    fetcher: Callable[[str], str] = fetch_remote_html,
    stdin: TextIO | None = None,
) -> str:
    """Load HTML from inline markup, a file path, an http(s) URL, or ``-`` for stdin."""
    if source is None or not source.strip() or source.strip() == "-":
        stream = stdin if stdin is not None else sys.stdin
        return stream.read()
    if looks_like_inline_html(source):
        return source
    if _is_existing_file(source):
        path = Path(source)
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise InvalidInputError(f"Unable to read HTML file {path}") from exc
    url = http_url(source)
    if url is not None:
        return fetcher(url)
    raise InvalidInputError(f"Unable to interpret HTML source: {source}")
