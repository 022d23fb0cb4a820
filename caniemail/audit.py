"""Accessibility audit.

The default auditor loads the HTML into headless Chromium through Playwright and
runs axe-core on it. Any object with a matching ``audit`` method can stand in
through the :class:`Auditor` protocol. This module also normalizes the tag
filter, drops document-level rules for fragments and formats the violations.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
import importlib
import logging
import os
from typing import Any, Protocol

from .constants import (
    AUDIT_STATUS_ERROR,
    AUDIT_STATUS_FAIL,
    AUDIT_STATUS_PASS,
    DEFAULT_AXE_SCRIPT_URL,
    DEFAULT_TIMEOUT_SECONDS,
    ENV_AXE_SCRIPT,
    FRAGMENT_DOCUMENT_RULES,
)
from .exceptions import CaniemailError, InvalidInputError
from .model import AuditResult
from .util.text import normalize_tokens

LOGGER = logging.getLogger(__name__)

Violation = Mapping[str, Any]

AXE_RUN_SCRIPT = """
tags => axe.run(document, tags.length ? {runOnly: {type: "tag", values: tags}} : {})
"""


class Auditor(Protocol):
    def audit(self, html: str, tags: Sequence[str]) -> Sequence[Violation]: ...


def normalize_tags(tags: Sequence[str | None] | None) -> list[str]:
    return normalize_tokens(tags)


def is_html_fragment(html: str | None) -> bool:
    """A snippet without an ``<html`` root is audited as a fragment."""
    return html is None or "<html" not in html.lower()


def should_ignore_rule(rule: Violation | None, html_is_fragment: bool) -> bool:
    if not html_is_fragment or rule is None:
        return False
    rule_id = rule.get("id")
    return isinstance(rule_id, str) and rule_id.lower() in FRAGMENT_DOCUMENT_RULES


def format_target(target: object) -> str:
    if target is None:
        return ""
    if isinstance(target, (list, tuple)):
        return " ".join(str(item) for item in target if item is not None)
    return str(target)


def format_violation(rule: Violation) -> str:
    """Render one violation as ``rule-id [impact]: summary -> target; target``."""
    rule_id = rule.get("id") or "rule"
    line = str(rule_id)
    impact = rule.get("impact")
    if isinstance(impact, str) and impact.strip():
        line = f"{line} [{impact}]"
    summary = rule.get("help") or rule.get("description") or "Accessibility violation"
    line = f"{line}: {summary}"

    targets: list[str] = []
    nodes = rule.get("nodes")
    if isinstance(nodes, Sequence) and not isinstance(nodes, str):
        for node in nodes:
            if not isinstance(node, Mapping):
                continue
            target = format_target(node.get("target"))
            if target.strip():
                targets.append(target)
    if targets:
        line = f"{line} -> {'; '.join(targets)}"
    return line


def run_audit(
    html: str | None,
    tags: Sequence[str | None] | None = None,
    auditor: Auditor | None = None,
) -> AuditResult:
    """Run the external auditor and condense its violations into an AuditResult."""
    if html is None or not html.strip():
        return AuditResult(AUDIT_STATUS_PASS, [])
    if auditor is None:
        return AuditResult(AUDIT_STATUS_ERROR, ["Accessibility auditor not configured"])

    fragment = is_html_fragment(html)
    try:
        violations = auditor.audit(html, normalize_tags(tags))
    except Exception as exc:
        LOGGER.warning("Accessibility audit failed: %s", exc)
        return AuditResult(AUDIT_STATUS_ERROR, [f"audit failure: {exc.__class__.__name__}: {exc}"])

    issues = [
        format_violation(rule)
        for rule in violations or []
        if isinstance(rule, Mapping) and not should_ignore_rule(rule, fragment)
    ]
    return AuditResult(AUDIT_STATUS_PASS if not issues else AUDIT_STATUS_FAIL, issues)


def load_auditor(reference: str) -> Auditor:
    """Build an auditor from a ``package.module:factory`` reference."""
    module_name, _, attr_name = reference.strip().partition(":")
    if not module_name or not attr_name:
        raise InvalidInputError(
            f"Auditor reference must look like 'module:factory', got {reference!r}"
        )
    try:
        factory = getattr(importlib.import_module(module_name), attr_name)
    except (ImportError, AttributeError) as exc:
        raise InvalidInputError(f"Unable to load auditor {reference!r}") from exc
    if isinstance(factory, type) or (callable(factory) and not hasattr(factory, "audit")):
        auditor = factory()
    else:
        auditor = factory
    if not hasattr(auditor, "audit"):
        raise InvalidInputError(f"Auditor {reference!r} has no audit() method")
    return auditor


def axe_script_source(script: str | None = None) -> dict[str, str]:
    """Keyword arguments for ``page.add_script_tag`` that load axe-core."""
    configured = (script or os.environ.get(ENV_AXE_SCRIPT, "")).strip()
    configured = configured or DEFAULT_AXE_SCRIPT_URL
    if configured.startswith(("http://", "https://")):
        return {"url": configured}
    return {"path": configured}


def audit_page(
    page: Any,
    html: str,
    tags: Sequence[str],
    script: Mapping[str, str],
) -> list[Violation]:
    """Render ``html`` in a Playwright page and return the axe-core violations."""
    page.set_content(html, wait_until="networkidle")
    page.add_script_tag(**script)
    results = page.evaluate(AXE_RUN_SCRIPT, list(tags))
    if not isinstance(results, Mapping):
        raise CaniemailError("axe-core returned no result")
    violations = results.get("violations")
    if not isinstance(violations, list):
        return []
    return violations


class PlaywrightAuditor:
    """Run axe-core inside a headless Chromium page.

    Needs the ``audit`` extra and a browser from ``playwright install chromium``.
    """

    def __init__(
        self,
        *,
        script: str | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self.script = script
        self.timeout = timeout

    def audit(self, html: str, tags: Sequence[str]) -> list[Violation]:
        try:
            from playwright.sync_api import sync_playwright
        except ImportError as exc:
            raise CaniemailError(
                "Playwright is not installed. Install 'pycaniemail[audit]' and run "
                "'playwright install chromium'."
            ) from exc

        script = axe_script_source(self.script)
        LOGGER.debug("Running axe-core from %s", next(iter(script.values())))
        with sync_playwright() as playwright:
            browser = playwright.chromium.launch(headless=True)
            try:
                context = browser.new_context()
                page = context.new_page()
                page.set_default_timeout(self.timeout * 1000)
                return audit_page(page, html, tags, script)
            finally:
                browser.close()
