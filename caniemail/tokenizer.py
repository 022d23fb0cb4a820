"""Turn an HTML fragment into the feature tokens it actually uses."""

from __future__ import annotations

import re

from .constants import TOKEN_AT_MEDIA, TOKEN_AT_MEDIA_DEVICE_PIXEL_RATIO
from .util.html import attributes, debug_log, iter_elements, parse_document, raw_text, tag_name
from .util.text import dedupe

_PROPERTY_SPLIT_RE = re.compile(r";+")
_DECLARED_TAG_RE = re.compile(r"<\s*/?\s*([a-zA-Z0-9:-]+)")
_MEDIA_RE = re.compile(r"@media\b", re.IGNORECASE)
_MEDIA_DEVICE_PIXEL_RE = re.compile(r"@media[^{]*-webkit-device-pixel-ratio", re.IGNORECASE)


def declared_tags(html: str | None) -> set[str]:
    """Collect tag names literally present in the source, open or closing."""
    if not html or not html.strip():
        return set()
    return {match.group(1).lower() for match in _DECLARED_TAG_RE.finditer(html)}


def parse_css(css_block: str | None) -> list[str]:
    """Tokenize ``property: value`` declarations into ``css:<property>`` tokens."""
    if not css_block or not css_block.strip():
        return []
    tokens: list[str] = []
    for chunk in _PROPERTY_SPLIT_RE.split(css_block):
        chunk = chunk.strip()
        if ":" not in chunk:
            continue
        prop = chunk.split(":", maxsplit=1)[0].strip().lower()
        if prop:
            tokens.append(f"css:{prop}")
    return tokens


def collect_at_rules(css_block: str | None) -> list[str]:
    """Record notable at-rules as synthetic CSS tokens."""
    if not css_block or not css_block.strip():
        return []
    tokens: list[str] = []
    if _MEDIA_RE.search(css_block):
        tokens.append(TOKEN_AT_MEDIA)
    if _MEDIA_DEVICE_PIXEL_RE.search(css_block):
        tokens.append(TOKEN_AT_MEDIA_DEVICE_PIXEL_RATIO)
    return tokens


def _css_tokens(css_block: str) -> list[str]:
    return parse_css(css_block) + collect_at_rules(css_block)


def list_features(html: str | None) -> list[str]:
    """Return the deduplicated feature tokens found in html, in first-seen order.

    Only tags that appear in the raw source are reported, so structure a
    parser may add on its own never shows up as a feature.
    """
    declared = declared_tags(html)
    if not declared:
        return []

    tokens: list[str] = []
    for element in iter_elements(parse_document(html or "")):
        name = tag_name(element)
        if name not in declared:
            continue
        tokens.append(f"tag:{name}")
        for key, value in attributes(element):
            normalized_key = key.lower()
            tokens.append(f"attribute:{normalized_key}")
            if normalized_key == "style":
                tokens.extend(_css_tokens(value))
        if name == "style":
            tokens.extend(_css_tokens(raw_text(element)))

    features = dedupe(tokens)
    debug_log(f"Tokenized {len(features)} distinct features from {len(declared)} declared tags")
    return features
