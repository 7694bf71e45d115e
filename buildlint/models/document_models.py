"""
Document Data Models — Parsed build files and the records extracted from them.

These models are the output of the markup scanner and extractor, and the
input to the dialect classifier, property analyzer and rule engine.
All of them are frozen: nothing downstream may mutate a parsed document.
"""

from __future__ import annotations

from bisect import bisect_right
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Dialect(str, Enum):
    """Shell dialect a command fragment is written for."""

    BATCH = "Batch"
    POWERSHELL = "PowerShell"
    POWERSHELL_CORE = "PowerShellCore"
    POSIX_SHELL = "PosixShell"
    UNKNOWN = "Unknown"


class OsGuard(str, Enum):
    """Platform an MSBuild Condition restricts an element to."""

    WINDOWS = "windows"
    NON_WINDOWS = "non_windows"

    @property
    def complement(self) -> OsGuard:
        if self is OsGuard.WINDOWS:
            return OsGuard.NON_WINDOWS
        return OsGuard.WINDOWS


class SourceSpan(BaseModel):
    """A location inside a document. Offsets are character offsets."""

    model_config = ConfigDict(frozen=True)

    line: int = Field(..., ge=1, description="1-based line number")
    column: int = Field(..., ge=1, description="1-based column number")
    offset: int = Field(..., ge=0, description="0-based start offset")
    end_offset: int = Field(..., ge=0, description="0-based end offset (exclusive)")


class MarkupAttribute(BaseModel):
    """A single attribute on a start tag."""

    model_config = ConfigDict(frozen=True)

    name: str
    value: str = Field(..., description="Value with entity references decoded")
    raw_value: str = Field(..., description="Value exactly as written in the source")
    value_offset: int = Field(..., description="Offset of the first value character")
    span: SourceSpan


class MarkupElement(BaseModel):
    """An element of the build file, with its full subtree."""

    model_config = ConfigDict(frozen=True)

    name: str
    attributes: list[MarkupAttribute] = Field(default_factory=list)
    text: str = Field(default="", description="Decoded character data of the whole subtree")
    raw_text: str = Field(default="", description="Inner source between start and end tag")
    content_offset: int = Field(..., description="Offset of the first inner character")
    span: SourceSpan
    children: list[MarkupElement] = Field(default_factory=list)

    def attribute(self, name: str) -> MarkupAttribute | None:
        """Case-insensitive attribute lookup (MSBuild attribute names are case-insensitive)."""
        lowered = name.lower()
        for attr in self.attributes:
            if attr.name.lower() == lowered:
                return attr
        return None


class MarkupProblemKind(str, Enum):
    UNESCAPED_CHARACTER = "unescaped_character"
    STRUCTURE = "structure"


class MarkupProblem(BaseModel):
    """A recoverable problem the scanner stepped over."""

    model_config = ConfigDict(frozen=True)

    kind: MarkupProblemKind
    message: str
    span: SourceSpan


class Document(BaseModel):
    """A parsed build file."""

    model_config = ConfigDict(frozen=True)

    path: str
    length: int = Field(..., ge=0, description="Length of the decoded text in characters")
    elements: list[MarkupElement] = Field(default_factory=list)
    problems: list[MarkupProblem] = Field(default_factory=list)
    line_starts: list[int] = Field(default_factory=lambda: [0])

    def locate(self, offset: int, end_offset: int | None = None) -> SourceSpan:
        """Map an offset (and optional end) to a SourceSpan."""
        return locate(self.line_starts, offset, end_offset)

    def iter_elements(self):
        """Yield (element, ancestors) pairs in document order."""
        stack: list[tuple[MarkupElement, tuple[MarkupElement, ...]]] = [
            (el, ()) for el in reversed(self.elements)
        ]
        while stack:
            element, ancestors = stack.pop()
            yield element, ancestors
            inner = ancestors + (element,)
            for child in reversed(element.children):
                stack.append((child, inner))


class CommandFragment(BaseModel):
    """One executable command string extracted from a build file."""

    model_config = ConfigDict(frozen=True)

    text: str = Field(..., description="Command with entity references decoded")
    raw_text: str = Field(..., description="Command exactly as written in the source")
    raw_offset: int = Field(..., description="Document offset where raw_text starts")
    span: SourceSpan
    element: str = Field(..., description="Name of the containing element")
    attribute: str | None = Field(
        default=None, description="Attribute holding the command, e.g. 'Command' on Exec"
    )
    dialect: Dialect = Dialect.UNKNOWN
    condition: str | None = Field(default=None, description="Element's own Condition")
    ancestor_conditions: list[str] = Field(default_factory=list)
    os_guard: OsGuard | None = None
    scope: str = Field(default="", description="Enclosing Target name, '' at project level")

    @property
    def kind(self) -> str:
        """Element/attribute pair identifying interchangeable commands."""
        if self.attribute:
            return f"{self.element}@{self.attribute}"
        return self.element


class PropertyDefinition(BaseModel):
    """One property assignment inside a property container."""

    model_config = ConfigDict(frozen=True)

    name: str
    value: str = Field(default="", description="Decoded value expression")
    raw_value: str = Field(default="", description="Value expression as written")
    span: SourceSpan
    references: list[str] = Field(
        default_factory=list, description="Property names referenced via $(Name), in order"
    )
    condition: str | None = None
    index: int = Field(..., ge=0, description="Position in document order")


def locate(line_starts: list[int], offset: int, end_offset: int | None = None) -> SourceSpan:
    """Map a character offset to a 1-based line/column span."""
    line_index = bisect_right(line_starts, offset) - 1
    if line_index < 0:
        line_index = 0
    column = offset - line_starts[line_index] + 1
    return SourceSpan(
        line=line_index + 1,
        column=column,
        offset=offset,
        end_offset=offset if end_offset is None else end_offset,
    )
