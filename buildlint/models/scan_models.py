"""
Scan Request/Response Models — API and report schemas.

These are the public-facing Pydantic models shared by the HTTP endpoints,
the CLI's JSON output and the per-file cache.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from buildlint.models.rule_models import Diagnostic, Severity


class FileInput(BaseModel):
    """A single build file submitted for scanning."""

    path: str = Field(..., min_length=1, description="File path (absolute or relative)")
    content: str = Field(..., description="Build file text")


class ScanRequest(BaseModel):
    """Request body for POST /scan."""

    files: list[FileInput] = Field(default_factory=list)
    rules: list[str] | None = Field(
        default=None, description="Rule IDs to run; all rules when omitted"
    )


class DiagnosticRecord(BaseModel):
    """Flat, JSON-friendly view of a Diagnostic."""

    path: str
    line: int
    column: int
    severity: Severity
    ruleId: str  # noqa: N815
    message: str
    suggestedFix: str | None = None  # noqa: N815

    @classmethod
    def from_diagnostic(cls, diagnostic: Diagnostic) -> DiagnosticRecord:
        return cls(
            path=diagnostic.path,
            line=diagnostic.span.line,
            column=diagnostic.span.column,
            severity=diagnostic.severity,
            ruleId=diagnostic.rule_id.value,
            message=diagnostic.message,
            suggestedFix=diagnostic.suggested_fix,
        )


class SeveritySummary(BaseModel):
    """Diagnostic counts per severity."""

    error: int = 0
    warning: int = 0
    info: int = 0
    total: int = 0


class FileReport(BaseModel):
    """Analysis result for one build file."""

    path: str
    diagnostics: list[Diagnostic] = Field(default_factory=list)
    fragments: int = Field(default=0, description="Command fragments extracted")
    properties: int = Field(default=0, description="Property definitions extracted")
    dialects: dict[str, int] = Field(
        default_factory=dict, description="Fragment count per shell dialect"
    )
    cached: bool = False


class ScanReport(BaseModel):
    """Report for a whole scan, diagnostics sorted for output."""

    files: list[FileReport] = Field(default_factory=list)
    diagnostics: list[DiagnosticRecord] = Field(default_factory=list)
    summary: SeveritySummary = Field(default_factory=SeveritySummary)
    rules_executed: list[str] = Field(default_factory=list)
    files_scanned: int = 0
    files_skipped: int = Field(default=0, description="Files not started because the scan was cancelled")
    duration_ms: float = 0.0


class ScanResponse(BaseModel):
    """Top-level response for POST /scan."""

    message: str = "scan_complete"
    scan_id: str = ""
    report: ScanReport | None = None
