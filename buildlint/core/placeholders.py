"""
Property placeholder scanning — finds $(Name) references in MSBuild text.

Handles the forms that appear in real project files:
  $(OutDir)                              plain reference
  $(Version.Replace('.', '_'))           instance property function
  $([System.IO.Path]::Combine($(A), x))  static property function (nested refs)

Implemented as an explicit scanner with paren-depth and quote tracking
rather than a regex, so nested and unterminated placeholders behave
predictably.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

_QUOTES = "'\"`"


@dataclass(frozen=True)
class PropertyReference:
    """A single $(...) placeholder."""

    name: str  # '' for static property functions such as $([MSBuild]::...)
    start: int  # offset of '$'
    end: int  # offset just past the closing ')'
    nested: bool = False


def _is_name_start(ch: str) -> bool:
    return ch.isalpha() or ch == "_"


def _is_name_char(ch: str) -> bool:
    return ch.isalnum() or ch in "_-"


def find_closing_paren(text: str, open_index: int, limit: int | None = None) -> int:
    """Index of the ')' matching text[open_index] == '(', or -1."""
    stop = len(text) if limit is None else limit
    depth = 0
    quote = ""
    for i in range(open_index, stop):
        ch = text[i]
        if quote:
            if ch == quote:
                quote = ""
            continue
        if ch in _QUOTES and depth > 0:
            quote = ch
        elif ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth == 0:
                return i
    return -1


def iter_property_references(
    text: str, start: int = 0, end: int | None = None, nested: bool = False
) -> Iterator[PropertyReference]:
    """Yield every placeholder in text[start:end], outer before inner."""
    # (scan position, range end, inside another placeholder)
    pending: list[tuple[int, int, bool]] = [(start, len(text) if end is None else end, nested)]
    while pending:
        i, limit, inner = pending.pop()
        while i < limit - 1:
            if text[i] != "$" or text[i + 1] != "(":
                i += 1
                continue
            close = find_closing_paren(text, i + 1, limit)
            if close == -1:
                # Unterminated placeholder, MSBuild treats it as literal text
                i += 2
                continue

            name_start = i + 2
            name_end = name_start
            if name_start < close and _is_name_start(text[name_start]):
                name_end += 1
                while name_end < close and _is_name_char(text[name_end]):
                    name_end += 1
            yield PropertyReference(
                name=text[name_start:name_end], start=i, end=close + 1, nested=inner
            )
            # Rest of this range resumes after the placeholder's own contents
            pending.append((close + 1, limit, inner))
            pending.append((name_end, close, True))
            break


def referenced_names(text: str) -> list[str]:
    """Distinct property names referenced in text, in first-use order."""
    seen: set[str] = set()
    names: list[str] = []
    for ref in iter_property_references(text):
        if not ref.name:
            continue
        key = ref.name.casefold()
        if key not in seen:
            seen.add(key)
            names.append(ref.name)
    return names
