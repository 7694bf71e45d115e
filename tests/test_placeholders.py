"""
Tests for $(Name) placeholder scanning.
"""

from buildlint.core.placeholders import (
    find_closing_paren,
    iter_property_references,
    referenced_names,
)


def test_plain_and_property_function_references():
    refs = list(iter_property_references("$(A)\\$(B.Replace('.', '_'))"))
    assert [r.name for r in refs] == ["A", "B"]
    assert refs[0].start == 0
    assert refs[0].end == 4


def test_nested_references_in_static_function():
    text = "$([System.IO.Path]::Combine($(Root), $(Sub)))"
    refs = list(iter_property_references(text))
    assert [(r.name, r.nested) for r in refs] == [("", False), ("Root", True), ("Sub", True)]
    assert refs[0].end == len(text)


def test_unterminated_placeholder_is_literal():
    assert list(iter_property_references("$(A")) == []
    assert referenced_names("cost: $5 (approx)") == []


def test_referenced_names_case_insensitive_dedup():
    assert referenced_names("$(Out)$(OUT)\\$(Other)") == ["Out", "Other"]


def test_closing_paren_ignores_quoted_parens():
    text = "$(A.Replace(')', 'x'))"
    assert find_closing_paren(text, 1) == len(text) - 1


def test_order_is_outer_then_inner_then_following():
    text = "$([MSBuild]::Add($(A), $([MSBuild]::Max($(B), 1)))) $(C)"
    refs = list(iter_property_references(text))
    assert [(r.name, r.nested) for r in refs] == [
        ("", False),
        ("A", True),
        ("", True),
        ("B", True),
        ("C", False),
    ]


def test_deeply_nested_references():
    depth = 3000
    text = "$(" * depth + "A" + ")" * depth
    refs = list(iter_property_references(text))
    assert len(refs) == depth
    assert refs[0].end == len(text)
    assert refs[-1].name == "A"
    assert referenced_names(text) == ["A"]
