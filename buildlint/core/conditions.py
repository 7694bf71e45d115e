"""
MSBuild Condition analysis — recognizes operating-system guards.

Only the guard shapes build authors use for platform-specific commands are
recognized; anything else yields None (not an OS guard).
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from buildlint.models.document_models import OsGuard

_BOOLEAN_SPLIT = re.compile(r"\s+(and|or)\s+", re.IGNORECASE)

_NON_WINDOWS_PLATFORMS = {"linux", "osx", "macos", "freebsd", "unix"}


def _normalize(term: str) -> str:
    """Lowercase and drop whitespace and quotes: "'$(OS)' == 'Windows_NT'" -> "$(os)==windows_nt"."""
    return "".join(ch for ch in term.lower() if not ch.isspace() and ch not in "'\"")


def _strip_parens(term: str) -> str:
    while term.startswith("(") and term.endswith(")"):
        term = term[1:-1]
    return term


def _guard_of_term(term: str) -> OsGuard | None:
    term = _strip_parens(_normalize(term))
    negated = False
    while term.startswith("!"):
        negated = not negated
        term = _strip_parens(term[1:])

    guard: OsGuard | None = None
    if term in ("$(os)==windows_nt", "windows_nt==$(os)"):
        guard = OsGuard.WINDOWS
    elif term in ("$(os)!=windows_nt", "windows_nt!=$(os)"):
        guard = OsGuard.NON_WINDOWS
    elif term == "$([msbuild]::isosunixlike())":
        guard = OsGuard.NON_WINDOWS
    elif term.startswith("$([msbuild]::isosplatform(") and term.endswith("))"):
        platform = term[len("$([msbuild]::isosplatform(") : -2]
        if platform == "windows":
            guard = OsGuard.WINDOWS
        elif platform in _NON_WINDOWS_PLATFORMS:
            # !IsOSPlatform('Linux') still includes macOS, so it is not a Windows guard
            if negated:
                return None
            guard = OsGuard.NON_WINDOWS

    if guard is not None and negated:
        return guard.complement
    return guard


def os_guard_of(condition: str | None) -> OsGuard | None:
    """
    Determine which platform a Condition attribute restricts to.

    Conjunctions take the guard of any guarded term; disjunctions only when
    every term agrees.
    """
    if not condition or not condition.strip():
        return None

    parts = _BOOLEAN_SPLIT.split(condition.strip())
    terms = parts[0::2]
    operators = {op.lower() for op in parts[1::2]}
    guards = [_guard_of_term(t) for t in terms]

    if "or" in operators:
        if all(g is not None for g in guards) and len(set(guards)) == 1:
            return guards[0]
        return None

    found = {g for g in guards if g is not None}
    if len(found) == 1:
        return found.pop()
    return None


def effective_os_guard(conditions: Iterable[str | None]) -> OsGuard | None:
    """Combined guard of an element's own and inherited conditions."""
    found = {g for g in (os_guard_of(c) for c in conditions) if g is not None}
    if len(found) == 1:
        return found.pop()
    return None
