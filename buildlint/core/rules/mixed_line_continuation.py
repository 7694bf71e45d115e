"""
Mixed Line Continuation Rule — Detects a continuation marker from the wrong shell.

Triggers when:
  - a PowerShell / PowerShell Core command ends a line with the batch caret '^'
  - a batch command ends a line with the PowerShell backtick '`'

Either way the next line runs as a separate command (or the marker is passed
through as a literal argument), which breaks the build step in confusing ways.
"""

from __future__ import annotations

from buildlint.core.extractor import ExtractedDocument
from buildlint.models.document_models import Dialect
from buildlint.models.rule_models import Diagnostic, RuleId, RuleInfo, Severity


RULE_ID = RuleId.MIXED_LINE_CONTINUATION

RULE_INFO = RuleInfo(
    rule_id=RULE_ID,
    severity=Severity.ERROR,
    title="Line continuation from another shell",
    description=(
        "PowerShell commands continue lines with a backtick, batch commands with a caret. "
        "Using the other shell's marker splits the command at the line break."
    ),
)

_POWERSHELL_DIALECTS = {Dialect.POWERSHELL, Dialect.POWERSHELL_CORE}


def continued_lines(text: str, marker: str) -> list[int]:
    """1-based line numbers (within text) ending in marker right before the line break."""
    lines = text.split("\n")
    return [
        number
        for number, line in enumerate(lines[:-1], start=1)
        if line.rstrip("\r").endswith(marker)
    ]


def check(extracted: ExtractedDocument) -> list[Diagnostic]:
    """Detect caret continuation in PowerShell and backtick continuation in batch."""
    diagnostics: list[Diagnostic] = []

    for fragment in extracted.fragments:
        if fragment.dialect in _POWERSHELL_DIALECTS:
            found, used, expected = continued_lines(fragment.text, "^"), "caret '^'", "backtick '`'"
        elif fragment.dialect is Dialect.BATCH:
            found, used, expected = continued_lines(fragment.text, "`"), "backtick '`'", "caret '^'"
        else:
            continue

        if not found:
            continue

        first_line = extracted.locate(fragment.raw_offset).line
        where = ", ".join(str(first_line + n - 1) for n in found)
        diagnostics.append(
            Diagnostic(
                rule_id=RULE_ID,
                severity=Severity.ERROR,
                message=(
                    f"{fragment.dialect.value} command in <{fragment.kind}> continues a line "
                    f"with the {used} (line {where}); this shell expects a {expected}"
                ),
                span=fragment.span,
                path=extracted.path,
                suggested_fix=(
                    f"Replace the {used} at the end of the line with a {expected}, "
                    "or join the command onto one line"
                ),
            )
        )

    return diagnostics
