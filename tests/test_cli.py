"""
Tests for the command-line interface — discovery, output formats, exit codes.
"""

import json

import pytest

from buildlint.cli import main
from buildlint.core.discovery import discover
from buildlint.core.rule_engine import RULE_CATALOG


def _write(path, text):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def test_error_gives_exit_code_1(tmp_path, capsys, caret_in_powershell_project):
    path = _write(tmp_path / "app.csproj", caret_in_powershell_project)
    assert main(["analyze", str(path)]) == 1
    out = capsys.readouterr().out.splitlines()
    assert out[0].startswith(f"{path}:3:")
    assert "error MixedLineContinuation" in out[0]
    assert out[-1] == "1 diagnostic(s): 1 error(s), 0 warning(s), 0 info"


def test_clean_file_gives_exit_code_0(tmp_path, capsys, clean_project):
    path = _write(tmp_path / "app.csproj", clean_project)
    assert main(["analyze", str(path)]) == 0
    assert capsys.readouterr().out.strip() == "0 diagnostic(s): 0 error(s), 0 warning(s), 0 info"


def test_severity_threshold(tmp_path, unquoted_placeholder_project):
    path = _write(tmp_path / "app.csproj", unquoted_placeholder_project)
    assert main(["analyze", str(path)]) == 0
    assert main(["analyze", str(path), "--severity-threshold", "warning"]) == 1


def test_json_output(tmp_path, capsys, bare_ampersand_project):
    path = _write(tmp_path / "app.csproj", bare_ampersand_project)
    assert main(["analyze", str(path), "--format", "json"]) == 1
    records = json.loads(capsys.readouterr().out)
    assert len(records) == 1
    assert records[0]["ruleId"] == "UnescapedXmlCharacter"
    assert records[0]["path"] == str(path)
    assert records[0]["severity"] == "error"


def test_rules_filter(tmp_path, capsys, unquoted_placeholder_project):
    path = _write(tmp_path / "app.csproj", unquoted_placeholder_project)
    main(["analyze", str(path), "--format", "json", "--rules", "NonPortableCommand"])
    records = json.loads(capsys.readouterr().out)
    assert [r["ruleId"] for r in records] == ["NonPortableCommand"]


def test_unknown_rule_is_a_usage_error(tmp_path, capsys, clean_project):
    path = _write(tmp_path / "app.csproj", clean_project)
    with pytest.raises(SystemExit) as excinfo:
        main(["analyze", str(path), "--rules", "NoSuchRule"])
    assert excinfo.value.code == 2
    assert "NoSuchRule" in capsys.readouterr().err


def test_missing_path_reports_io_error(tmp_path, capsys):
    assert main(["analyze", str(tmp_path / "nope.csproj")]) == 1
    assert "IoError" in capsys.readouterr().out


def test_malformed_file_does_not_stop_siblings(tmp_path, capsys, bare_ampersand_project):
    _write(tmp_path / "a.csproj", "<Project><Broken></Project>")
    _write(tmp_path / "b.csproj", bare_ampersand_project)
    assert main(["analyze", str(tmp_path), "--format", "json"]) == 1
    rules = [r["ruleId"] for r in json.loads(capsys.readouterr().out)]
    assert "MalformedMarkup" in rules
    assert "UnescapedXmlCharacter" in rules


def test_directory_discovery(tmp_path, clean_project):
    a = _write(tmp_path / "src" / "a.csproj", clean_project)
    props = _write(tmp_path / "Directory.Build.props", clean_project)
    _write(tmp_path / "readme.txt", "not a build file")
    custom = _write(tmp_path / "tools" / "build.msbuild", clean_project)

    assert discover([tmp_path], [".csproj", ".props"]) == [props, a]
    assert discover([tmp_path], ["msbuild"]) == [custom]
    assert discover([a, tmp_path], [".csproj"]) == [a]


def test_extensions_option(tmp_path, capsys, caret_in_powershell_project):
    _write(tmp_path / "build.msbuild", caret_in_powershell_project)
    assert main(["analyze", str(tmp_path)]) == 0
    capsys.readouterr()
    assert main(["analyze", str(tmp_path), "--extensions", ".msbuild"]) == 1
    assert "MixedLineContinuation" in capsys.readouterr().out


def test_rules_command_lists_every_rule(capsys):
    assert main(["rules"]) == 0
    out = capsys.readouterr().out
    for rule_id in RULE_CATALOG:
        assert rule_id.value in out


def test_illegal_character_reference_is_reported_not_fatal(tmp_path, capsys, clean_project):
    bad = _write(
        tmp_path / "a.csproj",
        "<Project><PropertyGroup>"
        "<PostBuildEvent>xcopy $(A)b&#xD800;c x</PostBuildEvent>"
        "</PropertyGroup></Project>",
    )
    good = _write(tmp_path / "b.csproj", clean_project)
    assert main(["analyze", str(bad), str(good)]) == 1
    out = capsys.readouterr().out
    assert "\ud800" not in out
    assert "UnescapedXmlCharacter" in out
