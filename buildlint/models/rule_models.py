"""
Rule Engine Data Models — Diagnostics, results, and rule metadata.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from buildlint.models.document_models import SourceSpan


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


# Lower rank sorts first and is more severe
SEVERITY_RANK: dict[Severity, int] = {
    Severity.ERROR: 0,
    Severity.WARNING: 1,
    Severity.INFO: 2,
}


class RuleId(str, Enum):
    MIXED_LINE_CONTINUATION = "MixedLineContinuation"
    UNESCAPED_XML_CHARACTER = "UnescapedXmlCharacter"
    UNQUOTED_PATH_WITH_PLACEHOLDER = "UnquotedPathWithPlaceholder"
    NON_PORTABLE_COMMAND = "NonPortableCommand"
    PROPERTY_FORWARD_REFERENCE = "PropertyForwardReference"
    MISSING_OS_CONDITION_PAIR = "MissingOsConditionPair"
    MALFORMED_MARKUP = "MalformedMarkup"
    IO_ERROR = "IoError"


# Reported by the extractor/worker rather than a rule check; never filtered out
INPUT_RULE_IDS: frozenset[RuleId] = frozenset({RuleId.MALFORMED_MARKUP, RuleId.IO_ERROR})


class Diagnostic(BaseModel):
    """A single issue found in a build file."""

    model_config = ConfigDict(frozen=True)

    rule_id: RuleId
    severity: Severity
    message: str = Field(..., description="Human-readable description of the problem")
    span: SourceSpan
    path: str = Field(default="", description="File the diagnostic belongs to")
    suggested_fix: str | None = Field(default=None, description="Mechanical remediation hint")

    @property
    def dedup_key(self) -> tuple:
        return (self.path, self.rule_id, self.span, self.message)


class RuleInfo(BaseModel):
    """Catalog entry describing a rule."""

    rule_id: RuleId
    severity: Severity
    title: str
    description: str


class RuleResult(BaseModel):
    """Result of running the rule engine over a set of documents."""

    diagnostics: list[Diagnostic] = Field(default_factory=list)
    rules_executed: list[str] = Field(default_factory=list)
    total_files_scanned: int = 0
    scan_duration_ms: float = 0.0
