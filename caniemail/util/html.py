"""HTML parsing helpers built around BeautifulSoup."""

from __future__ import annotations

from collections.abc import Iterator
import logging
import os

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.builder import ParserRejectedMarkup

from ..constants import DEBUG_ENV_VAR

LOGGER = logging.getLogger(__name__)

_DOCUMENT_NAME = "[document]"


def parse_document(html: str) -> BeautifulSoup:
    """Parse HTML leniently, keeping every attribute value as a plain string."""
    try:
        return BeautifulSoup(html, "html.parser", multi_valued_attributes=None)
    except ParserRejectedMarkup as exc:
        LOGGER.warning("HTML parser rejected markup, continuing with an empty tree: %s", exc)
        return BeautifulSoup("", "html.parser", multi_valued_attributes=None)


def iter_elements(doc: BeautifulSoup) -> Iterator[Tag]:
    """Yield every element in document order, skipping the synthetic root."""
    for element in doc.find_all(True):
        if element.name and element.name != _DOCUMENT_NAME:
            yield element


def tag_name(element: Tag) -> str:
    return (element.name or "").lower()


def attributes(element: Tag) -> list[tuple[str, str]]:
    """Return (name, value) pairs in source order with values coerced to text."""
    output: list[tuple[str, str]] = []
    for name, value in (element.attrs or {}).items():
        if value is None:
            value = ""
        elif isinstance(value, list):
            value = " ".join(str(item) for item in value)
        output.append((str(name), str(value)))
    return output


def raw_text(element: Tag) -> str:
    """Return the unnormalized character data directly inside element."""
    return "".join(str(child) for child in element.children if isinstance(child, NavigableString))


def debug_enabled() -> bool:
    """Check debug mode env flag."""
    return os.environ.get(DEBUG_ENV_VAR, "").strip() == "1"


def debug_log(message: str) -> None:
    """Emit debug logs in debug mode only."""
    if debug_enabled():
        LOGGER.debug("%s", message)
