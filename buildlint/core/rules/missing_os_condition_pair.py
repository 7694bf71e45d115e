"""
Missing OS Condition Pair Rule — OS-guarded commands with no counterpart.

A command guarded with Condition="'$(OS)' == 'Windows_NT'" silently does
nothing on Linux and macOS. That is often intended, but usually the author
forgot the sibling command for the other platform.
"""

from __future__ import annotations

from buildlint.core.conditions import os_guard_of
from buildlint.core.extractor import ExtractedDocument, has_guarded_alternate
from buildlint.models.document_models import OsGuard
from buildlint.models.rule_models import Diagnostic, RuleId, RuleInfo, Severity


RULE_ID = RuleId.MISSING_OS_CONDITION_PAIR

RULE_INFO = RuleInfo(
    rule_id=RULE_ID,
    severity=Severity.INFO,
    title="OS-specific command without a counterpart",
    description=(
        "A command element has its own Condition for one operating system, but no "
        "sibling command covers the other one, so the step is skipped there."
    ),
)

_COMPLEMENT_CONDITION = {
    OsGuard.WINDOWS: "Condition=\"'$(OS)' != 'Windows_NT'\"",
    OsGuard.NON_WINDOWS: "Condition=\"'$(OS)' == 'Windows_NT'\"",
}

_LABEL = {OsGuard.WINDOWS: "Windows", OsGuard.NON_WINDOWS: "non-Windows platforms"}


def check(extracted: ExtractedDocument) -> list[Diagnostic]:
    """Detect guarded commands without a complementary-platform command."""
    diagnostics: list[Diagnostic] = []

    for fragment in extracted.fragments:
        # Own Condition only; guards inherited from an enclosing Target do not count
        guard = os_guard_of(fragment.condition)
        if guard is None:
            continue
        if has_guarded_alternate(fragment, guard.complement, extracted.fragments):
            continue

        scope = fragment.scope.split(":", 1)[-1] if fragment.scope else "the project"
        diagnostics.append(
            Diagnostic(
                rule_id=RULE_ID,
                severity=Severity.INFO,
                message=(
                    f"<{fragment.kind}> only runs on {_LABEL[guard]}; nothing in "
                    f"{scope} runs on {_LABEL[guard.complement]}"
                ),
                span=fragment.span,
                path=extracted.path,
                suggested_fix=(
                    f"Add a sibling <{fragment.element}> with "
                    f"{_COMPLEMENT_CONDITION[guard]} if the step is needed there"
                ),
            )
        )

    return diagnostics
