"""
Unescaped XML Character Rule — Detects literal &, < and > in command text.

Build files are XML: '&&', '& { ... }' and '>' redirects must be written as
&amp;&amp;, &amp; and &gt;. Valid entity references, CDATA sections and
comments are skipped.
"""

from __future__ import annotations

from buildlint.core.extractor import ExtractedDocument
from buildlint.core.markup_parser import match_reference
from buildlint.models.rule_models import Diagnostic, RuleId, RuleInfo, Severity


RULE_ID = RuleId.UNESCAPED_XML_CHARACTER

RULE_INFO = RuleInfo(
    rule_id=RULE_ID,
    severity=Severity.ERROR,
    title="Unescaped XML character in command",
    description=(
        "A literal '&', '<' or '>' in a command either breaks the project file or is "
        "silently reinterpreted by MSBuild."
    ),
)

_ENTITY_FOR = {"&": "&amp;", "<": "&lt;", ">": "&gt;"}


def find_unescaped(raw: str, markup: bool = True) -> list[int]:
    """
    Indexes in raw text of '&', '<' or '>' that are not valid markup.

    With markup=False (attribute values) no tags, comments or CDATA can occur,
    so every '<' is reported.
    """
    found: list[int] = []
    i = 0
    n = len(raw)
    while i < n:
        ch = raw[i]
        if ch == "&":
            matched = match_reference(raw, i)
            if matched is not None:
                i = matched[1]
                continue
            found.append(i)
        elif ch == "<":
            skipped = _skip_markup(raw, i) if markup else None
            if skipped is not None:
                i = skipped
                continue
            found.append(i)
        elif ch == ">":
            found.append(i)
        i += 1
    return found


def _skip_markup(raw: str, i: int) -> int | None:
    """End index of a CDATA section, comment or tag starting at i, else None."""
    for opener, closer in (("<![CDATA[", "]]>"), ("<!--", "-->")):
        if raw.startswith(opener, i):
            end = raw.find(closer, i + len(opener))
            return len(raw) if end == -1 else end + len(closer)
    nxt = raw[i + 1] if i + 1 < len(raw) else ""
    if nxt.isalpha() or nxt in "_/?":
        end = raw.find(">", i + 1)
        return len(raw) if end == -1 else end + 1
    return None


def check(extracted: ExtractedDocument) -> list[Diagnostic]:
    """Detect unescaped XML special characters in raw command text."""
    diagnostics: list[Diagnostic] = []

    for fragment in extracted.fragments:
        positions = find_unescaped(fragment.raw_text, markup=fragment.attribute is None)
        if not positions:
            continue

        characters = sorted({fragment.raw_text[p] for p in positions})
        first = fragment.raw_offset + positions[0]
        replacements = ", ".join(f"'{c}' as {_ENTITY_FOR[c]}" for c in characters)
        diagnostics.append(
            Diagnostic(
                rule_id=RULE_ID,
                severity=Severity.ERROR,
                message=(
                    f"Command in <{fragment.kind}> contains {len(positions)} unescaped XML "
                    f"character(s): {' '.join(characters)}"
                ),
                span=extracted.locate(first, first + 1),
                path=extracted.path,
                suggested_fix=f"Write {replacements}, or wrap the command in <![CDATA[ ... ]]>",
            )
        )

    return diagnostics
