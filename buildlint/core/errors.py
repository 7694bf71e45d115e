"""
Custom exception types used across buildlint.

User-facing problems in build files are never raised; they are reported as
diagnostics. These exceptions cover the cases where analysis of a file
cannot start at all, or where buildlint itself is at fault.
"""

from __future__ import annotations


class BuildLintError(Exception):
    """Base class for all buildlint specific errors."""


class MalformedDocumentError(BuildLintError):
    """Raised when no element at all can be recovered from a document."""

    def __init__(self, message: str, line: int = 1, column: int = 1, offset: int = 0) -> None:
        super().__init__(message)
        self.line = line
        self.column = column
        self.offset = offset


class InvariantViolationError(BuildLintError):
    """Raised when buildlint produces inconsistent output (a defect in the tool)."""


class RuleExecutionError(BuildLintError):
    """Raised when a rule check crashes on a document."""

    def __init__(self, rule_id: str, path: str, cause: BaseException) -> None:
        super().__init__(f"Rule '{rule_id}' failed on '{path}': {type(cause).__name__}: {cause}")
        self.rule_id = rule_id
        self.path = path
