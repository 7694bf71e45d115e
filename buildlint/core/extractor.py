"""
Extractor — Pulls command fragments and property definitions out of a Document.

Single pass over the element tree in document order:
  - command-carrying elements (PostBuildEvent, ...) and command attributes
    (Exec/@Command) become CommandFragments, dialect-tagged on creation
  - children of property containers (PropertyGroup) become PropertyDefinitions
  - markup problems recorded by the scanner become diagnostics
"""

from __future__ import annotations

from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict, Field

from buildlint.config import settings
from buildlint.core.conditions import effective_os_guard
from buildlint.core.dialect import classify_dialect
from buildlint.core.errors import MalformedDocumentError
from buildlint.core.markup_parser import parse_document
from buildlint.core.placeholders import referenced_names
from buildlint.models.document_models import (
    CommandFragment,
    Document,
    MarkupElement,
    MarkupProblemKind,
    OsGuard,
    PropertyDefinition,
    SourceSpan,
)
from buildlint.models.rule_models import Diagnostic, RuleId, Severity


class ExtractionOptions(BaseModel):
    """Which elements carry commands and properties."""

    model_config = ConfigDict(frozen=True)

    command_elements: frozenset[str]
    command_attributes: dict[str, str]
    property_containers: frozenset[str]

    @classmethod
    def from_settings(cls) -> ExtractionOptions:
        return cls(
            command_elements=frozenset(settings.command_elements),
            command_attributes=dict(settings.command_attributes),
            property_containers=frozenset(settings.property_containers),
        )


class ExtractedDocument(BaseModel):
    """A document plus everything the rules consume."""

    model_config = ConfigDict(frozen=True)

    path: str
    document: Document
    fragments: list[CommandFragment] = Field(default_factory=list)
    properties: list[PropertyDefinition] = Field(default_factory=list)
    diagnostics: list[Diagnostic] = Field(
        default_factory=list, description="Markup diagnostics found while extracting"
    )

    def locate(self, offset: int, end_offset: int | None = None) -> SourceSpan:
        return self.document.locate(offset, end_offset)


def _condition(element: MarkupElement) -> str | None:
    attr = element.attribute("Condition")
    return attr.value if attr is not None else None


def _scope_of(ancestors: Iterable[MarkupElement]) -> str:
    for ancestor in reversed(tuple(ancestors)):
        if ancestor.name == "Target":
            name = ancestor.attribute("Name")
            return f"Target:{name.value if name else ancestor.span.offset}"
    return ""


def _make_fragment(
    element: MarkupElement,
    ancestors: tuple[MarkupElement, ...],
    text: str,
    raw_text: str,
    raw_offset: int,
    span: SourceSpan,
    attribute: str | None = None,
) -> CommandFragment:
    own_condition = _condition(element)
    inherited = [c for c in (_condition(a) for a in ancestors) if c]
    guard = effective_os_guard([own_condition, *inherited])
    return CommandFragment(
        text=text,
        raw_text=raw_text,
        raw_offset=raw_offset,
        span=span,
        element=element.name,
        attribute=attribute,
        dialect=classify_dialect(text, guard),
        condition=own_condition,
        ancestor_conditions=inherited,
        os_guard=guard,
        scope=_scope_of(ancestors),
    )


def _problem_diagnostics(
    document: Document, fragment_ranges: list[tuple[int, int]]
) -> list[Diagnostic]:
    diagnostics: list[Diagnostic] = []
    for problem in document.problems:
        if problem.kind is MarkupProblemKind.UNESCAPED_CHARACTER:
            # Characters inside commands are reported by the UnescapedXmlCharacter rule
            offset = problem.span.offset
            if any(start <= offset < end for start, end in fragment_ranges):
                continue
            diagnostics.append(
                Diagnostic(
                    rule_id=RuleId.UNESCAPED_XML_CHARACTER,
                    severity=Severity.ERROR,
                    message=problem.message,
                    span=problem.span,
                    path=document.path,
                    suggested_fix="Replace the character with its entity reference",
                )
            )
        else:
            diagnostics.append(
                Diagnostic(
                    rule_id=RuleId.MALFORMED_MARKUP,
                    severity=Severity.ERROR,
                    message=problem.message,
                    span=problem.span,
                    path=document.path,
                )
            )
    return diagnostics


def extract(document: Document, options: ExtractionOptions | None = None) -> ExtractedDocument:
    """Extract fragments, property definitions and markup diagnostics from a Document."""
    opts = options or ExtractionOptions.from_settings()
    fragments: list[CommandFragment] = []
    properties: list[PropertyDefinition] = []

    for element, ancestors in document.iter_elements():
        if element.name in opts.command_elements:
            fragments.append(
                _make_fragment(
                    element,
                    ancestors,
                    text=element.text,
                    raw_text=element.raw_text,
                    raw_offset=element.content_offset,
                    span=element.span,
                )
            )
        elif ancestors and ancestors[-1].name in opts.property_containers:
            properties.append(
                PropertyDefinition(
                    name=element.name,
                    value=element.text,
                    raw_value=element.raw_text,
                    span=element.span,
                    references=referenced_names(element.text),
                    condition=_condition(element),
                    index=len(properties),
                )
            )

        attribute_name = opts.command_attributes.get(element.name)
        if attribute_name:
            attr = element.attribute(attribute_name)
            if attr is not None:
                fragments.append(
                    _make_fragment(
                        element,
                        ancestors,
                        text=attr.value,
                        raw_text=attr.raw_value,
                        raw_offset=attr.value_offset,
                        span=attr.span,
                        attribute=attr.name,
                    )
                )

    fragment_ranges = [(f.raw_offset, f.raw_offset + len(f.raw_text)) for f in fragments]
    return ExtractedDocument(
        path=document.path,
        document=document,
        fragments=fragments,
        properties=properties,
        diagnostics=_problem_diagnostics(document, fragment_ranges),
    )


def malformed_document_diagnostic(path: str, error: MalformedDocumentError) -> Diagnostic:
    """The single diagnostic reported for a file nothing could be extracted from."""
    return Diagnostic(
        rule_id=RuleId.MALFORMED_MARKUP,
        severity=Severity.ERROR,
        message=str(error),
        span=SourceSpan(line=error.line, column=error.column, offset=error.offset, end_offset=error.offset),
        path=path,
        suggested_fix="Make sure the file is a well-formed MSBuild project",
    )


def extract_text(
    text: str, path: str = "<memory>", options: ExtractionOptions | None = None
) -> ExtractedDocument:
    """Parse and extract in one step. Raises MalformedDocumentError like parse_document."""
    return extract(parse_document(text, path), options)


def has_guarded_alternate(
    fragment: CommandFragment, guard: OsGuard, fragments: Iterable[CommandFragment]
) -> bool:
    """True if another command in the same scope (Target or project) is guarded for guard."""
    return any(
        other is not fragment and other.scope == fragment.scope and other.os_guard is guard
        for other in fragments
    )
