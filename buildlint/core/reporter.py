"""
Diagnostic Reporter — Dedup, ordering, rendering and exit codes.

Output is deterministic: the same inputs always produce byte-identical
text and JSON, whatever order files were scanned or rules were run in.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping

from buildlint.core.errors import InvariantViolationError
from buildlint.models.rule_models import SEVERITY_RANK, Diagnostic, Severity
from buildlint.models.scan_models import DiagnosticRecord, FileReport, SeveritySummary


def sort_key(diagnostic: Diagnostic) -> tuple:
    span = diagnostic.span
    return (
        diagnostic.path,
        span.line,
        span.column,
        SEVERITY_RANK[diagnostic.severity],
        diagnostic.rule_id.value,
        diagnostic.message,
    )


def deduplicate(diagnostics: Iterable[Diagnostic]) -> list[Diagnostic]:
    """Drop exact duplicates (same path, rule, span and message), keeping the first."""
    seen: set[tuple] = set()
    unique: list[Diagnostic] = []
    for diagnostic in diagnostics:
        key = diagnostic.dedup_key
        if key in seen:
            continue
        seen.add(key)
        unique.append(diagnostic)
    return unique


def check_spans(diagnostics: Iterable[Diagnostic], lengths: Mapping[str, int]) -> None:
    """
    Verify every span lies inside its document.

    Raises:
        InvariantViolationError: a span is out of range. This is a defect in
            buildlint, never a problem with the input file.
    """
    for diagnostic in diagnostics:
        span = diagnostic.span
        length = lengths.get(diagnostic.path, 0)
        if not 0 <= span.offset <= span.end_offset <= length:
            raise InvariantViolationError(
                f"{diagnostic.rule_id.value} diagnostic span {span.offset}..{span.end_offset} "
                f"outside '{diagnostic.path}' (length {length})"
            )


def finalize(diagnostics: Iterable[Diagnostic], lengths: Mapping[str, int]) -> list[Diagnostic]:
    """Check spans, dedup and sort. The result is ready for rendering."""
    collected = list(diagnostics)
    check_spans(collected, lengths)
    return sorted(deduplicate(collected), key=sort_key)


def summarize(diagnostics: Iterable[Diagnostic]) -> SeveritySummary:
    counts = {severity: 0 for severity in Severity}
    for diagnostic in diagnostics:
        counts[diagnostic.severity] += 1
    return SeveritySummary(
        error=counts[Severity.ERROR],
        warning=counts[Severity.WARNING],
        info=counts[Severity.INFO],
        total=sum(counts.values()),
    )


def exit_code(diagnostics: Iterable[Diagnostic], threshold: Severity = Severity.ERROR) -> int:
    """1 if any diagnostic is at or above the threshold severity, else 0."""
    limit = SEVERITY_RANK[threshold]
    return int(any(SEVERITY_RANK[d.severity] <= limit for d in diagnostics))


def format_text(diagnostic: Diagnostic) -> str:
    span = diagnostic.span
    line = (
        f"{diagnostic.path}:{span.line}:{span.column}: "
        f"{diagnostic.severity.value} {diagnostic.rule_id.value}: {diagnostic.message}"
    )
    if diagnostic.suggested_fix:
        line += f" [fix: {diagnostic.suggested_fix}]"
    return line


def render_text(diagnostics: list[Diagnostic], summary: bool = True) -> str:
    lines = [format_text(d) for d in diagnostics]
    if summary:
        counts = summarize(diagnostics)
        lines.append(
            f"{counts.total} diagnostic(s): {counts.error} error(s), "
            f"{counts.warning} warning(s), {counts.info} info"
        )
    return "\n".join(lines)


def to_records(diagnostics: Iterable[Diagnostic]) -> list[DiagnosticRecord]:
    return [DiagnosticRecord.from_diagnostic(d) for d in diagnostics]


def render_json(diagnostics: list[Diagnostic]) -> str:
    """JSON array of diagnostic records, one object per diagnostic."""
    return json.dumps([r.model_dump(mode="json") for r in to_records(diagnostics)], indent=2)


def combine(reports: Iterable[FileReport]) -> list[Diagnostic]:
    """All diagnostics of a multi-file scan, deduplicated and in output order."""
    return sorted(deduplicate(d for report in reports for d in report.diagnostics), key=sort_key)
