"""
Test fixtures shared across all buildlint tests.
"""

import pytest

from buildlint.cache.file_cache import FileCache
from buildlint.workers.scan_worker import ScanWorker


@pytest.fixture
def caret_in_powershell_project():
    """PowerShell post-build step continued with a batch caret (line 3)."""
    return (
        "<Project>\n"
        "  <PropertyGroup>\n"
        '    <PostBuildEvent>powershell.exe -NoProfile -Command "Copy-Item a b" ^\n'
        "      -ExecutionPolicy Bypass</PostBuildEvent>\n"
        "  </PropertyGroup>\n"
        "</Project>\n"
    )


@pytest.fixture
def bare_ampersand_project():
    """PowerShell script block with a literal, unescaped '&'."""
    return (
        "<Project>\n"
        "  <PropertyGroup>\n"
        "    <PostBuildEvent>powershell.exe -Command \"& { Write-Host 'done' }\"</PostBuildEvent>\n"
        "  </PropertyGroup>\n"
        "</Project>\n"
    )


@pytest.fixture
def forward_reference_project():
    """MyVar uses AnotherVar before AnotherVar is assigned."""
    return (
        r"<Project><PropertyGroup><MyVar>$(AnotherVar)\bin</MyVar>"
        r"<AnotherVar>C:\Project</AnotherVar></PropertyGroup></Project>"
    )


@pytest.fixture
def reordered_reference_project():
    """Same properties as forward_reference_project, defined in a valid order."""
    return (
        r"<Project><PropertyGroup><AnotherVar>C:\Project</AnotherVar>"
        r"<MyVar>$(AnotherVar)\bin</MyVar></PropertyGroup></Project>"
    )


@pytest.fixture
def unquoted_placeholder_project():
    """xcopy with two unquoted placeholder-built paths."""
    return (
        "<Project>\n"
        "  <PropertyGroup>\n"
        "    <PostBuildEvent>xcopy $(ProjectDir)Resources $(TargetDir)Resources /E /I /Y</PostBuildEvent>\n"
        "  </PropertyGroup>\n"
        "</Project>\n"
    )


@pytest.fixture
def windows_only_project():
    """A Windows-guarded post-build step with no non-Windows counterpart."""
    return (
        "<Project>\n"
        "  <PropertyGroup>\n"
        "    <PostBuildEvent Condition=\"'$(OS)'=='Windows_NT'\">call sign.cmd</PostBuildEvent>\n"
        "  </PropertyGroup>\n"
        "</Project>\n"
    )


@pytest.fixture
def clean_project():
    """Project with nothing to report."""
    return (
        "<Project>\n"
        "  <PropertyGroup>\n"
        "    <OutDir>bin</OutDir>\n"
        "    <DocDir>$(OutDir)\\docs</DocDir>\n"
        "  </PropertyGroup>\n"
        "  <Target Name=\"Stamp\" AfterTargets=\"Build\">\n"
        "    <Exec Command=\"echo built &amp;&amp; echo done\" />\n"
        "  </Target>\n"
        "</Project>\n"
    )


@pytest.fixture
def worker():
    """Scan worker with a private cache."""
    return ScanWorker(cache=FileCache())
