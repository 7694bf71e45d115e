"""
Unquoted Path With Placeholder Rule — Detects $(Dir)segment paths outside quotes.

Property placeholders such as $(ProjectDir) or $(TargetDir) expand to paths
that commonly contain spaces ("C:\\Program Files\\...", "My Project"). When
the resulting path is not quoted, the shell splits it into several arguments.

Quoting is tracked per dialect with an explicit state machine:
  - Batch / Unknown: "..."
  - PosixShell:      "..." and '...', backslash escapes
  - PowerShell:      nested quotes; inside a quoted -Command "..." argument the
                     path needs its own '...' or \\"...\\" quotes
"""

from __future__ import annotations

from buildlint.core.extractor import ExtractedDocument
from buildlint.core.placeholders import iter_property_references
from buildlint.models.document_models import Dialect
from buildlint.models.rule_models import Diagnostic, RuleId, RuleInfo, Severity


RULE_ID = RuleId.UNQUOTED_PATH_WITH_PLACEHOLDER

RULE_INFO = RuleInfo(
    rule_id=RULE_ID,
    severity=Severity.WARNING,
    title="Unquoted path built from a property",
    description=(
        "A path built from a property placeholder is passed to the shell without quotes "
        "and breaks as soon as the path contains a space."
    ),
)

_POWERSHELL_DIALECTS = {Dialect.POWERSHELL, Dialect.POWERSHELL_CORE}

# Host flags whose quoted argument is a whole script, not a single path
_SCRIPT_FLAGS = frozenset({"-command", "-c"})

_PATH_PUNCTUATION = set("\\/._-~$%")


def _is_path_segment_char(ch: str) -> bool:
    return ch.isalnum() or ch in _PATH_PUNCTUATION


def _simple_quote_levels(text: str, posix: bool) -> list[int]:
    """Quote level (0 or 1) before each character, for batch and POSIX shells."""
    levels: list[int] = []
    quote = ""
    i = 0
    while i < len(text):
        ch = text[i]
        levels.append(1 if quote else 0)
        if posix and ch == "\\" and quote != "'" and i + 1 < len(text):
            levels.append(1 if quote else 0)
            i += 2
            continue
        if quote:
            if ch == quote:
                quote = ""
        elif ch == '"' or (posix and ch == "'"):
            quote = ch
        i += 1
    return levels


def _preceding_word(text: str, i: int) -> str:
    words = text[:i].split()
    return words[-1].lower() if words else ""


def _powershell_quote_levels(text: str) -> list[int]:
    """
    Effective quote level before each character for PowerShell commands.

    The outermost "..." following -Command only wraps the script for the
    calling shell and does not count as quoting inside the script.
    """
    levels: list[int] = []
    stack: list[str] = []
    wrapper = False
    i = 0
    while i < len(text):
        ch = text[i]
        level = len(stack) - (1 if wrapper and stack else 0)
        levels.append(level)

        if ch == "\\" and i + 1 < len(text) and text[i + 1] == '"' and stack:
            levels.append(level)
            if stack[-1] == '\\"':
                stack.pop()
            elif stack[-1] != "'":
                stack.append('\\"')
            i += 2
            continue

        if ch == "'":
            if stack and stack[-1] == "'":
                stack.pop()
            else:
                stack.append("'")
        elif ch == '"':
            if stack and stack[-1] == '"':
                stack.pop()
                if not stack:
                    wrapper = False
            elif not stack or stack[-1] != "'":
                if not stack:
                    wrapper = _preceding_word(text, i) in _SCRIPT_FLAGS
                stack.append('"')
        i += 1
    return levels


def quote_levels(text: str, dialect: Dialect) -> list[int]:
    """Quote level before each character of text (len(result) == len(text))."""
    if dialect in _POWERSHELL_DIALECTS:
        return _powershell_quote_levels(text)
    return _simple_quote_levels(text, posix=dialect is Dialect.POSIX_SHELL)


def _is_word_char(ch: str) -> bool:
    return not ch.isspace() and ch not in "\"'"


def _word_bounds(text: str, i: int) -> tuple[int, int]:
    start = i
    while start > 0 and _is_word_char(text[start - 1]):
        start -= 1
    end = i
    while end < len(text) and _is_word_char(text[end]):
        end += 1
    return start, end


def unquoted_placeholder_paths(text: str, dialect: Dialect) -> list[str]:
    """Words containing a placeholder-built path that sit outside quotes."""
    levels = quote_levels(text, dialect)
    paths: list[str] = []
    covered_until = 0
    for ref in iter_property_references(text):
        if ref.nested or ref.start < covered_until or ref.end >= len(text):
            continue
        if not _is_path_segment_char(text[ref.end]) or levels[ref.start] > 0:
            continue
        start, end = _word_bounds(text, ref.start)
        paths.append(text[start:end])
        covered_until = end
    return paths


def check(extracted: ExtractedDocument) -> list[Diagnostic]:
    """Detect placeholder-built paths that are not quoted for the fragment's dialect."""
    diagnostics: list[Diagnostic] = []

    for fragment in extracted.fragments:
        paths = unquoted_placeholder_paths(fragment.text, fragment.dialect)
        if not paths:
            continue

        if fragment.dialect in _POWERSHELL_DIALECTS:
            fix = f"Quote the path inside the script, e.g. '{paths[0]}'"
        else:
            fix = f'Quote the path, e.g. "{paths[0]}"'
        listed = ", ".join(paths)
        diagnostics.append(
            Diagnostic(
                rule_id=RULE_ID,
                severity=Severity.WARNING,
                message=(
                    f"Command in <{fragment.kind}> passes unquoted path(s) built from "
                    f"properties: {listed}; they break when the path contains spaces"
                ),
                span=fragment.span,
                path=extracted.path,
                suggested_fix=fix,
            )
        )

    return diagnostics
