"""
Property Dependency Analyzer — Builds the property reference graph and finds
uses-before-definition.

MSBuild evaluates properties top to bottom in a single pass, so a $(Name)
reference only sees assignments that appear strictly earlier in the file.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from buildlint.models.document_models import PropertyDefinition
from buildlint.models.graph_models import PropertyEdge, PropertyGraph, PropertyNode


@dataclass(frozen=True)
class ForwardReference:
    """A reference to a property not yet defined at the point of use."""

    definition: PropertyDefinition
    reference: str
    self_reference: bool = False


def build_property_graph(definitions: Iterable[PropertyDefinition]) -> PropertyGraph:
    """
    Build a property graph from definitions in document order.

    Args:
        definitions: PropertyDefinition records, ordered as in the document.

    Returns:
        PropertyGraph with one node per defined name and one edge per reference.
    """
    graph = PropertyGraph()

    for definition in definitions:
        key = definition.name.casefold()
        node = graph.nodes.get(key)
        if node is None:
            node = PropertyNode(id=key, name=definition.name)
            graph.nodes[key] = node
        node.definition_lines.append(definition.span.line)
        node.definition_indexes.append(definition.index)

        for reference in definition.references:
            graph.edges.append(
                PropertyEdge(
                    source=key,
                    target=reference.casefold(),
                    definition_index=definition.index,
                    line=definition.span.line,
                )
            )

    return graph


def find_forward_references(
    definitions: Iterable[PropertyDefinition],
    predefined: Iterable[str] = (),
) -> list[ForwardReference]:
    """
    Walk definitions in document order and report every reference to a
    name not defined by a strictly earlier definition.

    A definition referencing its own name is reported too: the value in
    effect at that point is the previous one, not the one being defined.
    """
    defined = {name.casefold() for name in predefined}
    found: list[ForwardReference] = []

    for definition in definitions:
        own = definition.name.casefold()
        for reference in definition.references:
            if reference.casefold() not in defined:
                found.append(
                    ForwardReference(
                        definition=definition,
                        reference=reference,
                        self_reference=reference.casefold() == own,
                    )
                )
        defined.add(own)

    return found
