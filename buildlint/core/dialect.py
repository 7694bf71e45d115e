"""
Shell Dialect Classifier — Decides which interpreter a command is written for.

Ordered checks, first match wins:
  1. invokes pwsh / pwsh.exe                         -> PowerShellCore
  2. invokes powershell / powershell.exe, or starts
     with a PowerShell host flag (-Command, -File)   -> PowerShell
  3. guarded to the non-Windows case                 -> PosixShell
  4. batch-only syntax (caret continuation, %VAR%)   -> Batch
  5. otherwise                                       -> Unknown

Executable checks run before syntax checks: a PowerShell invocation string
routinely contains '%' and '^' that look like batch.
"""

from __future__ import annotations

from buildlint.models.document_models import Dialect, OsGuard

POWERSHELL_CORE_EXECUTABLES = frozenset({"pwsh", "pwsh.exe"})
WINDOWS_POWERSHELL_EXECUTABLES = frozenset({"powershell", "powershell.exe"})
POWERSHELL_HOST_FLAGS = frozenset({"-command", "-file", "-c", "-f", "-encodedcommand", "-ec"})

# Words that hand the rest of the segment to another executable
_LAUNCHERS = frozenset({"call", "start", "exec"})


def split_segments(text: str) -> list[str]:
    """Split a command line on &&, ||, &, |, ; and line breaks outside double quotes."""
    segments: list[str] = []
    current: list[str] = []
    in_quotes = False
    i = 0
    while i < len(text):
        ch = text[i]
        if ch == '"':
            in_quotes = not in_quotes
            current.append(ch)
        elif not in_quotes and ch in "&|;\r\n":
            segments.append("".join(current))
            current = []
            if ch in "&|" and i + 1 < len(text) and text[i + 1] == ch:
                i += 1
        else:
            current.append(ch)
        i += 1
    segments.append("".join(current))
    return [s.strip() for s in segments if s.strip()]


def split_words(segment: str) -> list[str]:
    """Whitespace split that keeps double-quoted runs together."""
    words: list[str] = []
    current: list[str] = []
    in_quotes = False
    for ch in segment:
        if ch == '"':
            in_quotes = not in_quotes
            current.append(ch)
        elif ch.isspace() and not in_quotes:
            if current:
                words.append("".join(current))
                current = []
        else:
            current.append(ch)
    if current:
        words.append("".join(current))
    return words


def executable_name(word: str) -> str:
    """'"C:\\Program Files\\PowerShell\\7\\pwsh.exe"' -> 'pwsh.exe'."""
    bare = word.strip("\"'").lstrip("@")
    for separator in ("\\", "/"):
        bare = bare.rsplit(separator, 1)[-1]
    return bare.lower()


def invoked_executables(text: str) -> list[str]:
    """Lowercased executable names started by each segment of a command."""
    names: list[str] = []
    for segment in split_segments(text):
        words = split_words(segment)
        while words and executable_name(words[0]) in _LAUNCHERS:
            words = words[1:]
        if words:
            names.append(executable_name(words[0]))
    return names


def starts_with_host_flag(text: str) -> bool:
    words = split_words(text.lstrip())
    if not words:
        return False
    flag = words[0].split(":", 1)[0].lower()
    return flag in POWERSHELL_HOST_FLAGS


def has_caret_continuation(text: str) -> bool:
    """True if some line ends in '^' (CRLF or LF)."""
    return any(line.rstrip("\r").endswith("^") for line in text.split("\n")[:-1])


def has_batch_expansion(text: str) -> bool:
    """True if text contains %VAR%, %%v or %~ modifiers."""
    i = 0
    n = len(text)
    while i < n:
        if text[i] != "%":
            i += 1
            continue
        nxt = text[i + 1] if i + 1 < n else ""
        if nxt == "%":
            if i + 2 < n and text[i + 2].isalpha():
                return True
            i += 2
            continue
        if nxt == "~":
            return True
        if nxt.isalpha() or nxt == "_":
            j = i + 1
            while j < n and (text[j].isalnum() or text[j] in "_-.()"):
                j += 1
            if j < n and text[j] == "%":
                return True
            i = j
            continue
        i += 1
    return False


def classify_dialect(text: str, os_guard: OsGuard | None = None) -> Dialect:
    """Return the dialect of a command. Never fails; defaults to Unknown."""
    executables = invoked_executables(text)

    if any(name in POWERSHELL_CORE_EXECUTABLES for name in executables):
        return Dialect.POWERSHELL_CORE
    if any(name in WINDOWS_POWERSHELL_EXECUTABLES for name in executables) or starts_with_host_flag(
        text
    ):
        return Dialect.POWERSHELL
    if os_guard is OsGuard.NON_WINDOWS:
        return Dialect.POSIX_SHELL
    if has_caret_continuation(text) or has_batch_expansion(text):
        return Dialect.BATCH
    return Dialect.UNKNOWN
