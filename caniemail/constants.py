"""Constants used across pycaniemail."""

from __future__ import annotations

from typing import Final

REFERENCE_URL: Final[str] = "https://www.caniemail.com"

DATASET_PACKAGE: Final[str] = "caniemail.data"
DATASET_RESOURCE: Final[str] = "features-database.json"

LEVEL_ACCEPTED: Final[str] = "accepted"
LEVEL_PARTIAL: Final[str] = "partial"
LEVEL_REJECTED: Final[str] = "rejected"
LEVELS: Final[tuple[str, ...]] = (LEVEL_ACCEPTED, LEVEL_PARTIAL, LEVEL_REJECTED)

TOKEN_AT_MEDIA: Final[str] = "css:at-media"
TOKEN_AT_MEDIA_DEVICE_PIXEL_RATIO: Final[str] = "css:at-media-device-pixel-ratio"

DEFAULT_IGNORED_TOKENS: Final[tuple[str, ...]] = ("tag:html", "tag:head", "tag:body")

GENERIC_PLATFORM: Final[str] = "generic"

# axe-core rules that only make sense for complete documents.
FRAGMENT_DOCUMENT_RULES: Final[frozenset[str]] = frozenset(
    {
        "document-title",
        "html-has-lang",
        "landmark-one-main",
        "page-has-heading-one",
    }
)

AUDIT_STATUS_PASS: Final[str] = "pass"
AUDIT_STATUS_FAIL: Final[str] = "fail"
AUDIT_STATUS_ERROR: Final[str] = "error"
AUDIT_STATUS_SKIPPED: Final[str] = "skipped"

DEFAULT_TIMEOUT_SECONDS: Final[float] = 15.0
DEFAULT_OUTPUT_DIR: Final[str] = "reports"

DEBUG_ENV_VAR: Final[str] = "PYCANIEMAIL_DEBUG"
ENV_OUTPUT_DIR: Final[str] = "CANIEMAIL_OUTPUT_DIR"
ENV_AUDIT: Final[str] = "CANIEMAIL_AUDIT"
ENV_AUDITOR: Final[str] = "CANIEMAIL_AUDITOR"
ENV_AUDIT_TAGS: Final[str] = "CANIEMAIL_AUDIT_TAGS"
ENV_IGNORE: Final[str] = "CANIEMAIL_IGNORE"
ENV_GITHUB_OUTPUT: Final[str] = "GITHUB_OUTPUT"
ENV_AXE_SCRIPT: Final[str] = "CANIEMAIL_AXE_SCRIPT"
ENV_DATASET: Final[str] = "CANIEMAIL_DATASET"

DEFAULT_AXE_SCRIPT_URL: Final[str] = (
    "https://cdnjs.cloudflare.com/ajax/libs/axe-core/4.10.2/axe.min.js"
)
