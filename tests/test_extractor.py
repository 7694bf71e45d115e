"""
Tests for the Extractor — command fragments, property definitions, markup diagnostics.
"""

import pytest

from buildlint.core.errors import MalformedDocumentError
from buildlint.core.extractor import (
    ExtractionOptions,
    extract,
    extract_text,
    has_guarded_alternate,
    malformed_document_diagnostic,
)
from buildlint.core.markup_parser import parse_document
from buildlint.models.document_models import Dialect, OsGuard
from buildlint.models.rule_models import RuleId


def test_command_element_becomes_fragment(caret_in_powershell_project):
    extracted = extract_text(caret_in_powershell_project, "a.csproj")
    assert len(extracted.fragments) == 1
    fragment = extracted.fragments[0]
    assert fragment.element == "PostBuildEvent"
    assert fragment.attribute is None
    assert fragment.kind == "PostBuildEvent"
    assert fragment.dialect is Dialect.POWERSHELL
    assert fragment.raw_text.startswith("powershell.exe")
    assert fragment.span.line == 3
    assert fragment.scope == ""


def test_command_elements_are_not_property_definitions(caret_in_powershell_project):
    extracted = extract_text(caret_in_powershell_project)
    assert extracted.properties == []


def test_raw_offset_points_at_raw_text():
    text = '<Project><Target Name="Copy"><Exec Command="cp a b" /></Target></Project>'
    extracted = extract_text(text)
    fragment = extracted.fragments[0]
    assert fragment.kind == "Exec@Command"
    assert fragment.scope == "Target:Copy"
    assert fragment.text == "cp a b"
    assert text[fragment.raw_offset : fragment.raw_offset + len(fragment.raw_text)] == "cp a b"


def test_fragment_text_decoded_raw_text_escaped():
    extracted = extract_text("<Project><PostBuildEvent>a.cmd &amp;&amp; b.cmd</PostBuildEvent></Project>")
    fragment = extracted.fragments[0]
    assert fragment.text == "a.cmd && b.cmd"
    assert fragment.raw_text == "a.cmd &amp;&amp; b.cmd"


def test_property_definitions_in_document_order():
    text = (
        "<Project>"
        "<PropertyGroup><A>1</A><B>$(A);$(C)</B></PropertyGroup>"
        "<PropertyGroup><C>$([System.IO.Path]::Combine($(A), 'x'))</C></PropertyGroup>"
        "</Project>"
    )
    extracted = extract_text(text)
    assert [p.name for p in extracted.properties] == ["A", "B", "C"]
    assert [p.index for p in extracted.properties] == [0, 1, 2]
    assert extracted.properties[1].references == ["A", "C"]
    assert extracted.properties[2].references == ["A"]


def test_conditions_and_os_guard_inherited_from_target():
    text = (
        "<Project><Target Name=\"Clean\" Condition=\"'$(OS)' != 'Windows_NT'\">"
        '<Exec Command="rm -rf out" /></Target></Project>'
    )
    fragment = extract_text(text).fragments[0]
    assert fragment.condition is None
    assert fragment.ancestor_conditions == ["'$(OS)' != 'Windows_NT'"]
    assert fragment.os_guard is OsGuard.NON_WINDOWS
    assert fragment.dialect is Dialect.POSIX_SHELL


def test_bare_ampersand_outside_commands_is_reported():
    extracted = extract_text("<Project><PropertyGroup><Name>Tom & Jerry</Name></PropertyGroup></Project>")
    assert [d.rule_id for d in extracted.diagnostics] == [RuleId.UNESCAPED_XML_CHARACTER]


def test_bare_ampersand_inside_command_left_to_rule(bare_ampersand_project):
    extracted = extract_text(bare_ampersand_project)
    assert extracted.diagnostics == []


def test_structural_problem_is_malformed_markup():
    extracted = extract_text("<Project><A>x</B></Project>")
    assert {d.rule_id for d in extracted.diagnostics} == {RuleId.MALFORMED_MARKUP}


def test_malformed_document_diagnostic():
    with pytest.raises(MalformedDocumentError) as excinfo:
        parse_document("not a project", "x.proj")
    diagnostic = malformed_document_diagnostic("x.proj", excinfo.value)
    assert diagnostic.rule_id is RuleId.MALFORMED_MARKUP
    assert diagnostic.path == "x.proj"


def test_custom_extraction_options():
    options = ExtractionOptions(
        command_elements=frozenset({"MyHook"}),
        command_attributes={},
        property_containers=frozenset({"Settings"}),
    )
    text = "<Project><MyHook>echo hi</MyHook><Settings><Out>bin</Out></Settings><PostBuildEvent>x</PostBuildEvent></Project>"
    extracted = extract(parse_document(text), options)
    assert [f.element for f in extracted.fragments] == ["MyHook"]
    assert [p.name for p in extracted.properties] == ["Out"]


def test_has_guarded_alternate_same_scope_only():
    text = (
        "<Project>"
        '<Target Name="A"><Exec Command="xcopy a b" />'
        "<Exec Condition=\"'$(OS)' != 'Windows_NT'\" Command=\"cp a b\" /></Target>"
        '<Target Name="B"><Exec Command="xcopy c d" /></Target>'
        "</Project>"
    )
    fragments = extract_text(text).fragments
    in_a, alternate, in_b = fragments
    assert has_guarded_alternate(in_a, OsGuard.NON_WINDOWS, fragments)
    assert not has_guarded_alternate(in_b, OsGuard.NON_WINDOWS, fragments)
    assert not has_guarded_alternate(alternate, OsGuard.NON_WINDOWS, fragments)
