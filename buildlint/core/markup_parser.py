"""
Markup Parser — Lenient, position-tracking scanner for MSBuild project files.

Turns build-file text into an immutable element tree (Document). Unlike a
strict XML parser it keeps going past the mistakes build authors actually
make (a bare '&' in a command, a '<' redirect, an unclosed element) and
records each one as a MarkupProblem, so the rest of the file can still be
analyzed.

Only when nothing at all can be recovered does it raise
MalformedDocumentError.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from buildlint.core.errors import MalformedDocumentError
from buildlint.models.document_models import (
    Document,
    MarkupAttribute,
    MarkupElement,
    MarkupProblem,
    MarkupProblemKind,
    SourceSpan,
    locate,
)

PREDEFINED_ENTITIES: dict[str, str] = {
    "amp": "&",
    "lt": "<",
    "gt": ">",
    "quot": '"',
    "apos": "'",
}

_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")

# Longest reference we try to match: "&#x10FFFF;"
_MAX_REFERENCE_LENGTH = 12


def compute_line_starts(text: str) -> list[int]:
    """Offsets at which each line starts."""
    starts = [0]
    index = text.find("\n")
    while index != -1:
        starts.append(index + 1)
        index = text.find("\n", index + 1)
    return starts


def is_xml_char(code_point: int) -> bool:
    """True if the code point may appear in an XML document (the Char production)."""
    if code_point in (0x9, 0xA, 0xD):
        return True
    return (
        0x20 <= code_point <= 0xD7FF
        or 0xE000 <= code_point <= 0xFFFD
        or 0x10000 <= code_point <= 0x10FFFF
    )


def match_reference(text: str, pos: int) -> tuple[str, int] | None:
    """
    Match an entity or character reference starting at text[pos] == '&'.

    Returns (decoded_text, end_offset) or None if no valid reference starts here.
    """
    end = text.find(";", pos + 1, pos + _MAX_REFERENCE_LENGTH)
    if end == -1:
        return None
    body = text[pos + 1 : end]
    if body in PREDEFINED_ENTITIES:
        return PREDEFINED_ENTITIES[body], end + 1

    if body[:2] in ("#x", "#X"):
        digits = body[2:]
        if not digits or not all(c in _HEX_DIGITS for c in digits):
            return None
        code_point = int(digits, 16)
    elif body[:1] == "#":
        digits = body[1:]
        if not digits or not (digits.isascii() and digits.isdigit()):
            return None
        code_point = int(digits)
    else:
        return None

    if not is_xml_char(code_point):
        return None
    return chr(code_point), end + 1


def _is_name_start(ch: str) -> bool:
    return ch.isalpha() or ch in "_:"


def _is_name_char(ch: str) -> bool:
    return ch.isalnum() or ch in "_:-."


@dataclass
class _OpenElement:
    """An element whose end tag has not been seen yet."""

    name: str
    start: int
    content_offset: int
    attributes: list[MarkupAttribute]
    text_parts: list[str] = field(default_factory=list)
    children: list[MarkupElement] = field(default_factory=list)


class _MarkupScanner:
    """Single forward pass over the document text."""

    def __init__(self, text: str, path: str) -> None:
        self.text = text
        self.path = path
        self.length = len(text)
        self.line_starts = compute_line_starts(text)
        self.pos = 1 if text.startswith("\ufeff") else 0
        self.pos_start = self.pos
        self.stack: list[_OpenElement] = []
        self.roots: list[MarkupElement] = []
        self.problems: list[MarkupProblem] = []

    # ── Driver ──

    def scan(self) -> Document:
        text = self.text
        while self.pos < self.length:
            ch = text[self.pos]
            if ch == "<":
                self._scan_markup()
            elif ch == "&":
                self._scan_reference()
            else:
                stop = self._next_special(self.pos)
                self._append_text(text[self.pos : stop], self.pos)
                self.pos = stop

        while self.stack:
            unclosed = self.stack[-1]
            self._problem(
                MarkupProblemKind.STRUCTURE,
                f"Element <{unclosed.name}> is never closed",
                unclosed.start,
                unclosed.content_offset,
            )
            self._close(unclosed, self.length, self.length)

        if not self.roots and (self.problems or text[self.pos_start :].strip()):
            first = self.problems[0].span if self.problems else self._span(0, 0)
            raise MalformedDocumentError(
                f"No element could be recovered from '{self.path}'",
                line=first.line,
                column=first.column,
                offset=first.offset,
            )

        return Document(
            path=self.path,
            length=self.length,
            elements=self.roots,
            problems=self.problems,
            line_starts=self.line_starts,
        )

    def _next_special(self, pos: int) -> int:
        candidates = [i for i in (self.text.find("<", pos), self.text.find("&", pos)) if i != -1]
        return min(candidates) if candidates else self.length

    # ── Markup ──

    def _scan_markup(self) -> None:
        text = self.text
        start = self.pos

        if text.startswith("<!--", start):
            self._skip_past("-->", start + 4, start, "Comment is never terminated")
        elif text.startswith("<![CDATA[", start):
            end = text.find("]]>", start + 9)
            if end == -1:
                self._fatal("CDATA section is never terminated", start)
                return
            self._append_text(text[start + 9 : end], start + 9)
            self.pos = end + 3
        elif text.startswith("<?", start):
            self._skip_past("?>", start + 2, start, "Processing instruction is never terminated")
        elif text.startswith("<!", start):
            self._skip_past(">", start + 2, start, "Declaration is never terminated")
        elif text.startswith("</", start):
            self._scan_end_tag()
        elif start + 1 < self.length and _is_name_start(text[start + 1]):
            self._scan_start_tag()
        else:
            self._problem(
                MarkupProblemKind.UNESCAPED_CHARACTER,
                "Literal '<' must be written as &lt;",
                start,
                start + 1,
            )
            self._append_text("<", start)
            self.pos = start + 1

    def _skip_past(self, terminator: str, search_from: int, start: int, message: str) -> None:
        end = self.text.find(terminator, search_from)
        if end == -1:
            self._fatal(message, start)
            return
        self.pos = end + len(terminator)

    def _scan_start_tag(self) -> None:
        text = self.text
        start = self.pos
        name_end = self._scan_name(start + 1)
        name = text[start + 1 : name_end]
        attributes: list[MarkupAttribute] = []
        i = name_end

        while True:
            i = self._skip_ws(i)
            if i >= self.length:
                self._fatal(f"Start tag <{name}> is never closed", start)
                return
            ch = text[i]
            if ch == ">":
                self._open(name, start, i + 1, attributes)
                return
            if text.startswith("/>", i):
                self._empty(name, start, i + 2, attributes)
                return
            if _is_name_start(ch):
                attribute, i = self._scan_attribute(i)
                if attribute is not None:
                    attributes.append(attribute)
                    continue
            self._recover_start_tag(name, start, i, attributes)
            return

    def _scan_attribute(self, i: int) -> tuple[MarkupAttribute | None, int]:
        """Scan name="value". Returns (None, position) when the attribute is malformed."""
        text = self.text
        attr_start = i
        name_end = self._scan_name(i)
        name = text[i:name_end]
        i = self._skip_ws(name_end)
        if i >= self.length or text[i] != "=":
            return None, i
        i = self._skip_ws(i + 1)
        if i >= self.length or text[i] not in "\"'":
            return None, i
        quote = text[i]
        value_start = i + 1
        value_end = text.find(quote, value_start)
        if value_end == -1:
            return None, value_start
        raw = text[value_start:value_end]
        value = self._decode(raw, value_start, in_attribute=True)
        attribute = MarkupAttribute(
            name=name,
            value=value,
            raw_value=raw,
            value_offset=value_start,
            span=self._span(attr_start, value_end + 1),
        )
        return attribute, value_end + 1

    def _recover_start_tag(
        self, name: str, start: int, i: int, attributes: list[MarkupAttribute]
    ) -> None:
        gt = self.text.find(">", i)
        if gt == -1:
            self._fatal(f"Start tag <{name}> is never closed", start)
            return
        self._problem(
            MarkupProblemKind.STRUCTURE,
            f"Malformed start tag <{name}>",
            start,
            gt + 1,
        )
        if self.text[gt - 1] == "/":
            self._empty(name, start, gt + 1, attributes)
        else:
            self._open(name, start, gt + 1, attributes)

    def _scan_end_tag(self) -> None:
        text = self.text
        start = self.pos
        name_end = self._scan_name(start + 2)
        name = text[start + 2 : name_end]
        i = self._skip_ws(name_end)
        if i >= self.length or text[i] != ">":
            gt = text.find(">", i)
            if gt == -1:
                self._fatal(f"End tag </{name}> is never closed", start)
                return
            self._problem(MarkupProblemKind.STRUCTURE, f"Malformed end tag </{name}>", start, gt + 1)
            i = gt
        end = i + 1
        self.pos = end

        depth = len(self.stack) - 1
        while depth >= 0 and self.stack[depth].name != name:
            depth -= 1
        if depth < 0:
            self._problem(
                MarkupProblemKind.STRUCTURE,
                f"End tag </{name}> has no matching start tag",
                start,
                end,
            )
            return

        while len(self.stack) - 1 > depth:
            unclosed = self.stack[-1]
            self._problem(
                MarkupProblemKind.STRUCTURE,
                f"Element <{unclosed.name}> is not closed before </{name}>",
                unclosed.start,
                unclosed.content_offset,
            )
            self._close(unclosed, start, start)
        self._close(self.stack[-1], start, end)

    # ── Character data ──

    def _scan_reference(self) -> None:
        start = self.pos
        matched = match_reference(self.text, start)
        if matched is None:
            self._problem(
                MarkupProblemKind.UNESCAPED_CHARACTER,
                "Literal '&' must be written as &amp;",
                start,
                start + 1,
            )
            self._append_text("&", start)
            self.pos = start + 1
            return
        decoded, end = matched
        self._append_text(decoded, start)
        self.pos = end

    def _decode(self, raw: str, base_offset: int, in_attribute: bool = False) -> str:
        out: list[str] = []
        i = 0
        while i < len(raw):
            ch = raw[i]
            if ch == "&":
                matched = match_reference(raw, i)
                if matched is not None:
                    out.append(matched[0])
                    i = matched[1]
                    continue
                self._problem(
                    MarkupProblemKind.UNESCAPED_CHARACTER,
                    "Literal '&' must be written as &amp;",
                    base_offset + i,
                    base_offset + i + 1,
                )
            elif ch == "<" and in_attribute:
                self._problem(
                    MarkupProblemKind.UNESCAPED_CHARACTER,
                    "Literal '<' is not allowed in attribute values; write &lt;",
                    base_offset + i,
                    base_offset + i + 1,
                )
            out.append(ch)
            i += 1
        return "".join(out)

    def _append_text(self, chunk: str, offset: int) -> None:
        if self.stack:
            self.stack[-1].text_parts.append(chunk)
        elif chunk.strip():
            self._problem(
                MarkupProblemKind.STRUCTURE,
                "Text outside of any element",
                offset,
                offset + len(chunk),
            )

    # ── Tree building ──

    def _open(
        self, name: str, start: int, content_offset: int, attributes: list[MarkupAttribute]
    ) -> None:
        self.stack.append(_OpenElement(name, start, content_offset, attributes))
        self.pos = content_offset

    def _empty(self, name: str, start: int, end: int, attributes: list[MarkupAttribute]) -> None:
        element = MarkupElement(
            name=name,
            attributes=attributes,
            content_offset=end,
            span=self._span(start, end),
        )
        self._attach(element)
        self.pos = end

    def _close(self, open_element: _OpenElement, content_end: int, end: int) -> None:
        self.stack.pop()
        element = MarkupElement(
            name=open_element.name,
            attributes=open_element.attributes,
            text="".join(open_element.text_parts),
            raw_text=self.text[open_element.content_offset : content_end],
            content_offset=open_element.content_offset,
            span=self._span(open_element.start, end),
            children=open_element.children,
        )
        self._attach(element)

    def _attach(self, element: MarkupElement) -> None:
        if self.stack:
            parent = self.stack[-1]
            parent.children.append(element)
            parent.text_parts.append(element.text)
        else:
            self.roots.append(element)

    # ── Helpers ──

    def _scan_name(self, i: int) -> int:
        while i < self.length and _is_name_char(self.text[i]):
            i += 1
        return i

    def _skip_ws(self, i: int) -> int:
        while i < self.length and self.text[i] in " \t\r\n":
            i += 1
        return i

    def _span(self, start: int, end: int) -> SourceSpan:
        return locate(self.line_starts, start, end)

    def _problem(self, kind: MarkupProblemKind, message: str, start: int, end: int) -> None:
        self.problems.append(MarkupProblem(kind=kind, message=message, span=self._span(start, end)))

    def _fatal(self, message: str, start: int) -> None:
        """Record a problem that ends scanning; the tree built so far is kept."""
        self._problem(MarkupProblemKind.STRUCTURE, message, start, self.length)
        self.pos = self.length


def parse_document(text: str, path: str = "<memory>") -> Document:
    """
    Parse build-file text into a Document.

    Raises:
        MalformedDocumentError: if no element can be recovered.
    """
    return _MarkupScanner(text, path).scan()
