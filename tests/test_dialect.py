"""
Tests for the Shell Dialect Classifier — ordered checks, first match wins.
"""

import pytest

from buildlint.core.dialect import (
    classify_dialect,
    executable_name,
    has_batch_expansion,
    invoked_executables,
    split_segments,
)
from buildlint.models.document_models import Dialect, OsGuard


@pytest.mark.parametrize(
    "command, expected",
    [
        ("pwsh -File build.ps1", Dialect.POWERSHELL_CORE),
        ('"C:\\Program Files\\PowerShell\\7\\pwsh.exe" -c Get-Date', Dialect.POWERSHELL_CORE),
        ("powershell -ExecutionPolicy Bypass -File tools\\pack.ps1", Dialect.POWERSHELL),
        ("-Command Write-Host hi", Dialect.POWERSHELL),
        ("-File:build.ps1", Dialect.POWERSHELL),
        ("echo %CONFIG%", Dialect.BATCH),
        ("for %%f in (*.dll) do echo %%f", Dialect.BATCH),
        ("copy a b ^\n  /Y", Dialect.BATCH),
        ("echo hello", Dialect.UNKNOWN),
        ("echo 50%", Dialect.UNKNOWN),
        ("", Dialect.UNKNOWN),
    ],
)
def test_classify_dialect(command, expected):
    assert classify_dialect(command) is expected


def test_executable_checks_run_before_syntax_checks():
    assert classify_dialect("echo %PATH% && pwsh -c x") is Dialect.POWERSHELL_CORE


def test_non_windows_guard_means_posix_shell():
    assert classify_dialect("cp a b", OsGuard.NON_WINDOWS) is Dialect.POSIX_SHELL
    assert classify_dialect("echo %X%", OsGuard.NON_WINDOWS) is Dialect.POSIX_SHELL
    assert classify_dialect("powershell -c x", OsGuard.NON_WINDOWS) is Dialect.POWERSHELL


def test_windows_guard_does_not_imply_a_dialect():
    assert classify_dialect("echo hi", OsGuard.WINDOWS) is Dialect.UNKNOWN


def test_split_segments():
    assert split_segments("a && b || c | d; e\nf & g") == ["a", "b", "c", "d", "e", "f", "g"]
    assert split_segments('echo "a && b" && c') == ['echo "a && b"', "c"]


def test_invoked_executables_skip_launchers():
    assert invoked_executables("call build.cmd && start notepad.exe") == ["build.cmd", "notepad.exe"]


def test_executable_name_strips_quotes_and_directories():
    assert executable_name('"C:\\tools\\PowerShell.EXE"') == "powershell.exe"
    assert executable_name("/usr/bin/pwsh") == "pwsh"


def test_batch_expansion_forms():
    assert has_batch_expansion("%~dp0tool.exe")
    assert has_batch_expansion("echo %OUT_DIR%")
    assert not has_batch_expansion("50% done")
