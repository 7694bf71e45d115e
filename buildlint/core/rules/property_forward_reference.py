"""
Property Forward Reference Rule — Detects $(Name) used before Name is assigned.

MSBuild evaluates property groups top to bottom in one pass. A reference to
a property assigned further down expands to the empty string (or to a value
inherited from the environment), so '$(AnotherVar)\\bin' silently becomes
'\\bin'.
"""

from __future__ import annotations

from buildlint.config import settings
from buildlint.core.extractor import ExtractedDocument
from buildlint.core.property_graph import build_property_graph, find_forward_references
from buildlint.models.rule_models import Diagnostic, RuleId, RuleInfo, Severity


RULE_ID = RuleId.PROPERTY_FORWARD_REFERENCE

RULE_INFO = RuleInfo(
    rule_id=RULE_ID,
    severity=Severity.ERROR,
    title="Property used before it is defined",
    description=(
        "A property value references another property that is only assigned later "
        "in the file, so the reference expands to an empty or stale value."
    ),
)


def check(extracted: ExtractedDocument) -> list[Diagnostic]:
    """Detect property references to names not defined strictly earlier."""
    diagnostics: list[Diagnostic] = []
    if not extracted.properties:
        return diagnostics

    graph = build_property_graph(extracted.properties)
    forward = find_forward_references(extracted.properties, settings.predefined_properties)

    for ref in forward:
        using = ref.definition.name
        if ref.self_reference:
            message = (
                f"Property '{using}' references itself before any earlier definition "
                f"of '{ref.reference}'"
            )
            fix = f"Give '{ref.reference}' an initial value above this assignment"
        elif graph.is_defined(ref.reference):
            message = (
                f"Property '{ref.reference}' is used by '{using}' before it is defined "
                f"(defined later at line {graph.first_definition_line(ref.reference)})"
            )
            fix = f"Move the definition of '{ref.reference}' above '{using}'"
        else:
            message = (
                f"Property '{ref.reference}' is used by '{using}' but is never defined "
                "before this point"
            )
            also_used_by = [
                graph.nodes[dependent].name
                for dependent in graph.dependents_of(ref.reference)
                if dependent != using.casefold()
            ]
            if also_used_by:
                message += f" (also used by {', '.join(also_used_by)})"
            fix = (
                f"Define '{ref.reference}' above '{using}', or list it in "
                "BUILDLINT_PREDEFINED_PROPERTIES if it comes from the environment"
            )

        diagnostics.append(
            Diagnostic(
                rule_id=RULE_ID,
                severity=Severity.ERROR,
                message=message,
                span=ref.definition.span,
                path=extracted.path,
                suggested_fix=fix,
            )
        )

    return diagnostics
