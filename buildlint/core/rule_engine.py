"""
Rule Engine — Orchestrates all build-file rules.

Runs every registered rule against extracted documents. Rules are pure
functions of one ExtractedDocument: no shared state, no I/O, so the order
they run in never changes the result.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from buildlint.core.errors import RuleExecutionError
from buildlint.core.extractor import ExtractedDocument
from buildlint.models.rule_models import (
    INPUT_RULE_IDS,
    Diagnostic,
    RuleId,
    RuleInfo,
    RuleResult,
    Severity,
)

# Import all rule modules
from buildlint.core.rules import (
    missing_os_condition_pair,
    mixed_line_continuation,
    non_portable_command,
    property_forward_reference,
    unescaped_xml_character,
    unquoted_path_with_placeholder,
)

logger = logging.getLogger("buildlint.engine")

# Type for a rule check function
RuleCheckFn = Callable[[ExtractedDocument], list[Diagnostic]]

# Registry of all rules
RULE_REGISTRY: dict[RuleId, RuleCheckFn] = {
    mixed_line_continuation.RULE_ID: mixed_line_continuation.check,
    unescaped_xml_character.RULE_ID: unescaped_xml_character.check,
    unquoted_path_with_placeholder.RULE_ID: unquoted_path_with_placeholder.check,
    non_portable_command.RULE_ID: non_portable_command.check,
    property_forward_reference.RULE_ID: property_forward_reference.check,
    missing_os_condition_pair.RULE_ID: missing_os_condition_pair.check,
}

# Catalog of every diagnostic kind, including those reported outside the rules
RULE_CATALOG: dict[RuleId, RuleInfo] = {
    mixed_line_continuation.RULE_ID: mixed_line_continuation.RULE_INFO,
    unescaped_xml_character.RULE_ID: unescaped_xml_character.RULE_INFO,
    unquoted_path_with_placeholder.RULE_ID: unquoted_path_with_placeholder.RULE_INFO,
    non_portable_command.RULE_ID: non_portable_command.RULE_INFO,
    property_forward_reference.RULE_ID: property_forward_reference.RULE_INFO,
    missing_os_condition_pair.RULE_ID: missing_os_condition_pair.RULE_INFO,
    RuleId.MALFORMED_MARKUP: RuleInfo(
        rule_id=RuleId.MALFORMED_MARKUP,
        severity=Severity.ERROR,
        title="Malformed project file",
        description="The file is not well-formed XML; analysis continued where possible.",
    ),
    RuleId.IO_ERROR: RuleInfo(
        rule_id=RuleId.IO_ERROR,
        severity=Severity.ERROR,
        title="File could not be read",
        description="The file is missing, unreadable, too large, or not valid text.",
    ),
}


def parse_rule_ids(names: list[str] | None) -> list[RuleId] | None:
    """
    Resolve user-supplied rule names (case-insensitive) to RuleIds.

    Returns None when no filter was given. Raises ValueError naming the
    first unknown rule.
    """
    if not names:
        return None
    by_name = {rule_id.value.lower(): rule_id for rule_id in RuleId}
    selected: list[RuleId] = []
    for name in names:
        rule_id = by_name.get(name.strip().lower())
        if rule_id is None:
            raise ValueError(
                f"Unknown rule: {name.strip()} (known: {', '.join(r.value for r in RuleId)})"
            )
        if rule_id not in selected:
            selected.append(rule_id)
    return selected


class RuleEngine:
    """
    Build-file rule engine.

    Runs the registered rules against ExtractedDocument objects and merges
    in the markup diagnostics the extractor already found.
    """

    def __init__(
        self,
        rules: dict[RuleId, RuleCheckFn] | None = None,
        enabled: list[RuleId] | None = None,
    ) -> None:
        self.rules = rules or RULE_REGISTRY
        self.enabled = set(enabled) if enabled else None

    def _is_enabled(self, rule_id: RuleId) -> bool:
        return self.enabled is None or rule_id in self.enabled or rule_id in INPUT_RULE_IDS

    @property
    def active_rules(self) -> list[str]:
        """IDs of the registered rules this engine will run."""
        return [rule_id.value for rule_id in self.rules if self._is_enabled(rule_id)]

    def run(self, documents: dict[str, ExtractedDocument]) -> RuleResult:
        """
        Run all enabled rules against all documents.

        Args:
            documents: Dict mapping path -> ExtractedDocument.

        Returns:
            RuleResult with every diagnostic found, unsorted.

        Raises:
            RuleExecutionError: a rule crashed. This is a defect in the rule,
                never a property of the input, so it is not turned into a
                diagnostic.
        """
        start = time.monotonic()
        diagnostics: list[Diagnostic] = []
        rules_executed: list[str] = []

        for extracted in documents.values():
            diagnostics.extend(d for d in extracted.diagnostics if self._is_enabled(d.rule_id))

        for rule_id, check_fn in self.rules.items():
            if not self._is_enabled(rule_id):
                continue
            rules_executed.append(rule_id.value)
            for path, extracted in documents.items():
                diagnostics.extend(self._run_check(rule_id, check_fn, path, extracted))

        elapsed = (time.monotonic() - start) * 1000
        logger.debug(
            f"{len(rules_executed)} rules on {len(documents)} documents: "
            f"{len(diagnostics)} diagnostics ({elapsed:.1f}ms)"
        )

        return RuleResult(
            diagnostics=diagnostics,
            rules_executed=rules_executed,
            total_files_scanned=len(documents),
            scan_duration_ms=round(elapsed, 2),
        )

    def run_single_rule(self, rule_id: RuleId | str, extracted: ExtractedDocument) -> list[Diagnostic]:
        """Run a single rule against a single document."""
        key = RuleId(rule_id)
        if key not in self.rules:
            raise ValueError(f"Unknown rule: {rule_id}")
        return self._run_check(key, self.rules[key], extracted.path, extracted)

    @staticmethod
    def _run_check(
        rule_id: RuleId, check_fn: RuleCheckFn, path: str, extracted: ExtractedDocument
    ) -> list[Diagnostic]:
        try:
            return check_fn(extracted)
        except Exception as e:
            logger.error(f"Rule {rule_id.value} crashed on {path}: {type(e).__name__}: {e}")
            raise RuleExecutionError(rule_id.value, path, e) from e
