"""
Tests for Rule Engine — end-to-end scenarios, filtering and engine guarantees.
"""

import pytest

from buildlint.core.errors import RuleExecutionError
from buildlint.core.extractor import extract_text
from buildlint.core.reporter import sort_key
from buildlint.core.rule_engine import RULE_CATALOG, RULE_REGISTRY, RuleEngine, parse_rule_ids
from buildlint.models.rule_models import RuleId, Severity


def _run(text: str, engine: RuleEngine | None = None):
    extracted = extract_text(text, "test.csproj")
    return (engine or RuleEngine()).run({"test.csproj": extracted}), extracted


def _by_rule(result, rule_id: RuleId):
    return [d for d in result.diagnostics if d.rule_id is rule_id]


def test_scenario_caret_in_powershell(caret_in_powershell_project):
    result, extracted = _run(caret_in_powershell_project)
    assert len(result.diagnostics) == 1
    diagnostic = result.diagnostics[0]
    assert diagnostic.rule_id is RuleId.MIXED_LINE_CONTINUATION
    assert diagnostic.severity is Severity.ERROR
    assert diagnostic.span == extracted.fragments[0].span


def test_scenario_bare_ampersand(bare_ampersand_project):
    result, _ = _run(bare_ampersand_project)
    assert len(result.diagnostics) == 1
    assert result.diagnostics[0].rule_id is RuleId.UNESCAPED_XML_CHARACTER
    assert result.diagnostics[0].severity is Severity.ERROR


def test_scenario_forward_reference(forward_reference_project, reordered_reference_project):
    result, _ = _run(forward_reference_project)
    found = _by_rule(result, RuleId.PROPERTY_FORWARD_REFERENCE)
    assert len(found) == 1
    assert "AnotherVar" in found[0].message
    assert "MyVar" in found[0].message

    result, _ = _run(reordered_reference_project)
    assert _by_rule(result, RuleId.PROPERTY_FORWARD_REFERENCE) == []


def test_scenario_unquoted_placeholders(unquoted_placeholder_project):
    result, _ = _run(unquoted_placeholder_project)
    found = _by_rule(result, RuleId.UNQUOTED_PATH_WITH_PLACEHOLDER)
    assert len(found) == 1
    assert found[0].severity is Severity.WARNING


def test_scenario_missing_os_pair(windows_only_project):
    result, _ = _run(windows_only_project)
    assert len(result.diagnostics) == 1
    assert result.diagnostics[0].rule_id is RuleId.MISSING_OS_CONDITION_PAIR
    assert result.diagnostics[0].severity is Severity.INFO


def test_clean_project_has_no_diagnostics(clean_project):
    result, _ = _run(clean_project)
    assert result.diagnostics == []
    assert result.total_files_scanned == 1
    assert result.rules_executed == [rule_id.value for rule_id in RULE_REGISTRY]


def test_spans_within_document(
    caret_in_powershell_project, bare_ampersand_project, unquoted_placeholder_project
):
    text = "<Project><PropertyGroup><A>$(B) &amp x</A><B>1</B></PropertyGroup><Broken></Project>"
    for source in (text, caret_in_powershell_project, bare_ampersand_project, unquoted_placeholder_project):
        result, extracted = _run(source)
        assert result.diagnostics
        for d in result.diagnostics:
            assert 0 <= d.span.offset <= d.span.end_offset <= extracted.document.length


def test_rule_order_does_not_change_results(unquoted_placeholder_project, windows_only_project):
    reversed_rules = dict(reversed(list(RULE_REGISTRY.items())))
    for text in (unquoted_placeholder_project, windows_only_project):
        forward, _ = _run(text)
        backward, _ = _run(text, RuleEngine(rules=reversed_rules))
        assert sorted(forward.diagnostics, key=sort_key) == sorted(backward.diagnostics, key=sort_key)


def test_repeated_runs_are_identical(unquoted_placeholder_project):
    extracted = extract_text(unquoted_placeholder_project, "test.csproj")
    engine = RuleEngine()
    first = engine.run({"test.csproj": extracted}).diagnostics
    second = engine.run({"test.csproj": extracted}).diagnostics
    assert first == second


def test_enabled_rules_filter(unquoted_placeholder_project):
    engine = RuleEngine(enabled=[RuleId.NON_PORTABLE_COMMAND])
    result, _ = _run(unquoted_placeholder_project, engine)
    assert result.rules_executed == ["NonPortableCommand"]
    assert {d.rule_id for d in result.diagnostics} == {RuleId.NON_PORTABLE_COMMAND}


def test_markup_diagnostics_survive_rule_filter():
    engine = RuleEngine(enabled=[RuleId.NON_PORTABLE_COMMAND])
    result, _ = _run("<Project><A>x</B></Project>", engine)
    assert {d.rule_id for d in result.diagnostics} == {RuleId.MALFORMED_MARKUP}


def test_crashing_rule_raises():
    def broken(extracted):
        raise KeyError("boom")

    engine = RuleEngine(rules={RuleId.MIXED_LINE_CONTINUATION: broken})
    with pytest.raises(RuleExecutionError) as excinfo:
        _run("<Project/>", engine)
    assert excinfo.value.rule_id == "MixedLineContinuation"
    assert excinfo.value.path == "test.csproj"


def test_run_single_rule(windows_only_project):
    extracted = extract_text(windows_only_project, "test.csproj")
    engine = RuleEngine()
    assert len(engine.run_single_rule("MissingOsConditionPair", extracted)) == 1
    assert engine.run_single_rule(RuleId.MIXED_LINE_CONTINUATION, extracted) == []
    with pytest.raises(ValueError):
        engine.run_single_rule("NoSuchRule", extracted)


def test_parse_rule_ids():
    assert parse_rule_ids(None) is None
    assert parse_rule_ids(["nonportablecommand", " MixedLineContinuation", "NonPortableCommand"]) == [
        RuleId.NON_PORTABLE_COMMAND,
        RuleId.MIXED_LINE_CONTINUATION,
    ]
    with pytest.raises(ValueError, match="Bogus"):
        parse_rule_ids(["Bogus"])


def test_catalog_covers_every_rule_id():
    assert set(RULE_CATALOG) == set(RuleId)
    assert set(RULE_REGISTRY) <= set(RULE_CATALOG)
