from __future__ import annotations

from typing import Any

import pytest

from caniemail.database import FeatureDatabase

SAMPLE_RECORDS: dict[str, dict[str, Any]] = {
    "html-table": {
        "slug": "html-table",
        "title": "<table> element",
        "category": "html",
        "stats": {
            "gmail": {"desktop-webmail": {"2019-02": "y"}, "ios": {"2019-02": "y"}},
            "outlook": {"windows": {"2019-02": "y"}},
        },
        "notes_by_num": {},
    },
    "css-display": {
        "slug": "css-display",
        "title": "display",
        "category": "css",
        "stats": {
            "gmail": {"desktop-webmail": {"2019-02": "y"}, "ios": {"2019-02": "a #1"}},
            "outlook": {"windows": {"2019-02": "n"}},
        },
        "notes_by_num": {"1": "Only `display:block` is kept."},
    },
    "html-style": {
        "slug": "html-style",
        "title": "<style> element",
        "category": "html",
        "stats": {"gmail": {"desktop-webmail": {"2019-02": "n"}}},
        "notes_by_num": {},
    },
}


@pytest.fixture
def sample_database() -> FeatureDatabase:
    return FeatureDatabase.from_mapping(SAMPLE_RECORDS)
