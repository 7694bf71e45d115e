"""
Non-Portable Command Rule — Detects platform-specific commands that run everywhere.

Triggers when a command uses something that only works on one platform and
is neither guarded for that platform nor backed by an alternative command,
in the same Target (or at project level), guarded for the other platform.

Windows-only: xcopy, robocopy, copy, del, rd, attrib, mklink, findstr, cmd,
              drive-letter paths (C:\\...), mkdir without -p
POSIX-only:   cp, mv, rm, chmod, chown, ln, touch, sed, mkdir -p
"""

from __future__ import annotations

from buildlint.core.conditions import os_guard_of
from buildlint.core.dialect import executable_name, split_segments, split_words
from buildlint.core.extractor import ExtractedDocument, has_guarded_alternate
from buildlint.models.document_models import CommandFragment, OsGuard
from buildlint.models.rule_models import Diagnostic, RuleId, RuleInfo, Severity


RULE_ID = RuleId.NON_PORTABLE_COMMAND

RULE_INFO = RuleInfo(
    rule_id=RULE_ID,
    severity=Severity.WARNING,
    title="Platform-specific command without a platform guard",
    description=(
        "The command only works on one operating system but runs on every platform, "
        "and no alternative command guarded for the other platform exists."
    ),
)

WINDOWS_ONLY_COMMANDS = frozenset(
    {"xcopy", "robocopy", "copy", "del", "erase", "rd", "attrib", "mklink", "findstr", "cmd"}
)
POSIX_ONLY_COMMANDS = frozenset({"cp", "mv", "rm", "chmod", "chown", "ln", "touch", "sed"})

_PLATFORM_LABEL = {OsGuard.WINDOWS: "Windows", OsGuard.NON_WINDOWS: "non-Windows"}

_GUARD_EXAMPLE = {
    OsGuard.WINDOWS: "Condition=\"'$(OS)' == 'Windows_NT'\"",
    OsGuard.NON_WINDOWS: "Condition=\"'$(OS)' != 'Windows_NT'\"",
}


def _strip_exe(name: str) -> str:
    return name[:-4] if name.endswith(".exe") else name


def drive_letter_paths(text: str) -> list[str]:
    """Words containing an absolute drive-letter path such as C:\\tools or d:/out."""
    found: list[str] = []
    for i in range(len(text) - 2):
        if not text[i].isalpha() or text[i + 1] != ":" or text[i + 2] not in "\\/":
            continue
        if i > 0 and (text[i - 1].isalnum() or text[i - 1] in "_$"):
            continue
        end = i
        while end < len(text) and not text[end].isspace() and text[end] not in "\"'":
            end += 1
        found.append(text[i:end])
    return found


def platform_indicators(fragment: CommandFragment) -> dict[OsGuard, list[str]]:
    """What ties the command to each platform."""
    indicators: dict[OsGuard, list[str]] = {OsGuard.WINDOWS: [], OsGuard.NON_WINDOWS: []}

    for segment in split_segments(fragment.text):
        words = split_words(segment)
        if not words:
            continue
        command = _strip_exe(executable_name(words[0]))
        args = [w.lower() for w in words[1:]]
        if command in WINDOWS_ONLY_COMMANDS:
            indicators[OsGuard.WINDOWS].append(command)
        elif command in POSIX_ONLY_COMMANDS:
            indicators[OsGuard.NON_WINDOWS].append(command)
        elif command in ("mkdir", "md"):
            if "-p" in args:
                indicators[OsGuard.NON_WINDOWS].append("mkdir -p")
            elif fragment.os_guard is not OsGuard.WINDOWS:
                indicators[OsGuard.WINDOWS].append(f"{command} without -p")

    for path in drive_letter_paths(fragment.text):
        indicators[OsGuard.WINDOWS].append(f"drive-letter path {path}")

    return indicators


def guard_origin(fragment: CommandFragment) -> str:
    """Describe which Condition restricts the fragment to a platform."""
    if os_guard_of(fragment.condition) is not None:
        return f"its Condition=\"{fragment.condition}\""
    # Nearest enclosing element first
    for condition in reversed(fragment.ancestor_conditions):
        if os_guard_of(condition) is not None:
            return f"the enclosing Condition=\"{condition}\""
    return "its conditions"


def check(extracted: ExtractedDocument) -> list[Diagnostic]:
    """Detect platform-specific commands lacking a guard or a guarded alternative."""
    diagnostics: list[Diagnostic] = []

    for fragment in extracted.fragments:
        problems: list[str] = []
        fixes: list[str] = []
        for platform, found in platform_indicators(fragment).items():
            if not found or fragment.os_guard is platform:
                continue
            if fragment.os_guard is None and has_guarded_alternate(
                fragment, platform.complement, extracted.fragments
            ):
                continue
            problems.append(f"{', '.join(found)} (only works on {_PLATFORM_LABEL[platform]})")
            fixes.append(
                f"guard it with {_GUARD_EXAMPLE[platform]} and add an equivalent command "
                f"for {_PLATFORM_LABEL[platform.complement]}"
            )

        if not problems:
            continue

        where = ""
        if fragment.os_guard is not None:
            where = (
                f" although {guard_origin(fragment)} limits it to "
                f"{_PLATFORM_LABEL[fragment.os_guard]}"
            )
        diagnostics.append(
            Diagnostic(
                rule_id=RULE_ID,
                severity=Severity.WARNING,
                message=(
                    f"Command in <{fragment.kind}> is not portable{where}: "
                    + "; ".join(problems)
                ),
                span=fragment.span,
                path=extracted.path,
                suggested_fix="Use a cross-platform MSBuild task (Copy, MakeDir, Delete) or "
                + "; ".join(fixes),
            )
        )

    return diagnostics
