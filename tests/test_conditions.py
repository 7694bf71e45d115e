"""
Tests for OS guard recognition in MSBuild Condition expressions.
"""

import pytest

from buildlint.core.conditions import effective_os_guard, os_guard_of
from buildlint.models.document_models import OsGuard


@pytest.mark.parametrize(
    "condition, expected",
    [
        ("'$(OS)' == 'Windows_NT'", OsGuard.WINDOWS),
        ("'$(OS)'=='Windows_NT'", OsGuard.WINDOWS),
        ("'$(OS)' != 'Windows_NT'", OsGuard.NON_WINDOWS),
        ("$([MSBuild]::IsOSPlatform('Windows'))", OsGuard.WINDOWS),
        ("$([MSBuild]::IsOSPlatform('Linux'))", OsGuard.NON_WINDOWS),
        ("$([MSBuild]::IsOSPlatform('OSX'))", OsGuard.NON_WINDOWS),
        ("$([MSBuild]::IsOSUnixLike())", OsGuard.NON_WINDOWS),
        ("!$([MSBuild]::IsOSPlatform('Windows'))", OsGuard.NON_WINDOWS),
        ("!$([MSBuild]::IsOSPlatform('Linux'))", None),
        ("'$(Configuration)' == 'Release'", None),
        ("'$(Configuration)' == 'Release' and '$(OS)' == 'Windows_NT'", OsGuard.WINDOWS),
        ("'$(Configuration)' == 'Release' or '$(OS)' == 'Windows_NT'", None),
        ("'$(OS)' == 'Windows_NT' Or $([MSBuild]::IsOSPlatform('Windows'))", OsGuard.WINDOWS),
        ("", None),
        (None, None),
    ],
)
def test_os_guard_of(condition, expected):
    assert os_guard_of(condition) is expected


def test_effective_guard_combines_own_and_inherited():
    assert effective_os_guard([None, "'$(OS)' == 'Windows_NT'"]) is OsGuard.WINDOWS
    assert effective_os_guard(["'$(OS)' == 'Windows_NT'", "'$(OS)' != 'Windows_NT'"]) is None
    assert effective_os_guard([]) is None
